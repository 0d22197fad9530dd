import logging
import re

from flask import Blueprint, current_app, jsonify, request

from database import db
from data_tables.user import User
from utils.auth import generate_token, require_user
from utils.errors import ApiError

logger = logging.getLogger(__name__)

"""
sign up, log in, who am i, log out. all routes are under '/api/auth'
"""
auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MIN_PASSWORD_LENGTH = 6


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')
    return data


def _with_auth_cookie(response, token):
    response.set_cookie(
        current_app.config['AUTH_COOKIE_NAME'],
        token,
        httponly=True,
        secure=current_app.config['AUTH_COOKIE_SECURE'],
        samesite='Strict',
        path='/',
    )
    return response


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Create a regular user account and sign it in."""
    data = _json_body()
    email = str(data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    name = str(data.get('name') or '').strip()

    if not email or not password or not name:
        raise ApiError('Email, password, and name are required')

    if not EMAIL_PATTERN.match(email):
        raise ApiError('Please provide a valid email address')

    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ApiError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')

    if User.query.filter_by(email=email).first():
        raise ApiError('User with this email already exists', 409)

    user = User(email=email, name=name, role='user')
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    logger.info("New user signed up: %s", user.email)

    token = generate_token(user)
    return _with_auth_cookie(jsonify({'user': user.to_dict(), 'token': token}), token), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = _json_body()
    email = data.get('email')
    password = data.get('password')

    if not isinstance(email, str) or not isinstance(password, str):
        raise ApiError('Email and password are required')

    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None or not user.check_password(password):
        raise ApiError('Invalid email or password', 401)

    token = generate_token(user)
    return _with_auth_cookie(jsonify({'user': user.to_dict(), 'token': token}), token)


@auth_bp.route('/me')
def me():
    user = require_user()
    return jsonify({'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Revoke every token issued to this user so far."""
    user = require_user()
    User.query.filter_by(id=user.id).update({User.token_version: User.token_version + 1})
    db.session.commit()

    response = jsonify({'message': 'Logged out successfully'})
    response.delete_cookie(current_app.config['AUTH_COOKIE_NAME'], path='/')
    return response
