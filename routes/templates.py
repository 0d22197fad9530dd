import logging

from flask import Blueprint, jsonify, request

from database import db
from data_tables.builtin_templates import find_builtin_template, list_builtin_templates
from data_tables.question import normalize_questions
from data_tables.template import SurveyTemplate, TEMPLATE_SLUG_PATTERN
from utils.auth import current_user, login_required
from utils.errors import ApiError

logger = logging.getLogger(__name__)

"""
reusable question sets. built in templates plus the ones users save.
all routes are under '/api/templates'
"""
templates_bp = Blueprint('templates', __name__, url_prefix='/api/templates')


@templates_bp.route('', methods=['GET'])
@login_required
def list_templates():
    """built in templates first, then the user's own, most recently updated first"""
    user = current_user()
    stored = (
        SurveyTemplate.query.filter_by(created_by=user.id)
        .order_by(SurveyTemplate.updated_at.desc(), SurveyTemplate.created_at.desc())
        .all()
    )
    templates = list_builtin_templates() + [template.to_dict() for template in stored]
    return jsonify({'templates': templates})


@templates_bp.route('/<template_id>', methods=['GET'])
def get_template(template_id):
    template = find_builtin_template(template_id)
    if template is None:
        stored = SurveyTemplate.query.filter_by(slug=template_id).first()
        if stored is None:
            raise ApiError('Template not found', 404, payload={'success': False})
        template = stored.to_dict()
    return jsonify({'success': True, 'template': template})


@templates_bp.route('', methods=['POST'])
@login_required
def create_template():
    """
    Save a template. The id is a kebab-case slug that no built in or stored
    template already uses; a name and at least one question are required.
    """
    user = current_user()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')

    slug = str(data.get('id') or '').strip()
    name = str(data.get('name') or '').strip()
    questions = data.get('questions')

    if not slug or not TEMPLATE_SLUG_PATTERN.match(slug):
        raise ApiError('Invalid template id (use kebab-case).')
    if not name or not isinstance(questions, list) or len(questions) == 0:
        raise ApiError('Name and at least one question are required.')

    if find_builtin_template(slug) or SurveyTemplate.query.filter_by(slug=slug).first():
        raise ApiError('Template ID already exists.', 409)

    settings = data.get('settings') or {}
    if not isinstance(settings, dict):
        raise ApiError('Settings must be an object')

    template = SurveyTemplate(
        slug=slug,
        name=name,
        description=data.get('description') or '',
        category=data.get('category'),
        icon=data.get('icon'),
        questions=normalize_questions(questions),
        settings=settings,
        created_by=user.id,
    )
    db.session.add(template)
    db.session.commit()

    logger.info('Template "%s" saved by %s', slug, user.email)
    return jsonify({'success': True, 'template': template.to_dict()}), 201
