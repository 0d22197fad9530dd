import logging
from functools import wraps

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from database import db
from data_tables.user import User
from utils.errors import ApiError

logger = logging.getLogger(__name__)

TOKEN_SALT = 'survey-insights-auth'


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def generate_token(user):
    """Signed token carrying the user id, email, role and token version."""
    return _serializer().dumps({
        'userId': user.id,
        'email': user.email,
        'role': user.role,
        'tokenVersion': user.token_version,
    })


def verify_token(token):
    """
    Return the user a token belongs to, or None.

    A token is rejected when the signature is wrong, it is older than
    TOKEN_MAX_AGE, the user is gone, or the user has logged out since
    (token version changed).
    """
    try:
        payload = _serializer().loads(token, max_age=current_app.config['TOKEN_MAX_AGE'])
    except SignatureExpired:
        logger.info("Rejected expired token")
        return None
    except BadSignature:
        return None

    if not isinstance(payload, dict) or not isinstance(payload.get('userId'), int):
        return None

    user = db.session.get(User, payload['userId'])
    if user is None:
        return None

    if payload.get('tokenVersion', 0) != user.token_version:
        return None

    return user


def token_from_request():
    """Bearer header first, then the session cookie."""
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return request.cookies.get(current_app.config['AUTH_COOKIE_NAME'])


def current_user():
    """The signed in user for this request, or None. Looked up once per request."""
    if 'current_user' not in g:
        token = token_from_request()
        g.current_user = verify_token(token) if token else None
    return g.current_user


def require_user():
    user = current_user()
    if user is None:
        if token_from_request():
            raise ApiError('Invalid token', 401)
        raise ApiError('No token provided', 401)
    return user


def require_admin():
    user = require_user()
    if not user.is_admin:
        raise ApiError('Admin access required', 403)
    return user


def login_required(view_func):
    """Reject the request with 401 unless it carries a valid token."""
    @wraps(view_func)
    def _wrapped_view(*args, **kwargs):
        require_user()
        return view_func(*args, **kwargs)
    return _wrapped_view


def allowed_roles(*roles):
    """
    Decorator that checks the signed in user has one of the given roles.

    Returns 401 without a valid token and 403 for any other role.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(*args, **kwargs):
            user = require_user()
            if user.role not in roles:
                raise ApiError('Access denied', 403)
            return view_func(*args, **kwargs)
        return _wrapped_view
    return decorator
