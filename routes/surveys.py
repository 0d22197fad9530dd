import copy
import logging

from flask import Blueprint, jsonify, request

from database import db
from data_tables.builtin_templates import find_builtin_template
from data_tables.question import normalize_questions
from data_tables.response import Response
from data_tables.survey import Survey, DEFAULT_SETTINGS
from data_tables.template import SurveyTemplate
from utils.analytics import compute_survey_analytics
from utils.auth import allowed_roles, current_user, login_required, require_user
from utils.errors import ApiError

logger = logging.getLogger(__name__)

"""
survey building for signed in users: list, create, edit, delete, publish,
duplicate, start from a template, and the owner's analytics view.
all routes are under '/api/surveys'
"""
surveys_bp = Blueprint('surveys', __name__, url_prefix='/api/surveys')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')
    return data


def _validated_settings(settings):
    if not isinstance(settings, dict):
        raise ApiError('Settings must be an object')
    return {**DEFAULT_SETTINGS, **settings}


def get_owned_survey_or_404(survey_id, user):
    """The survey, but only if this user created it."""
    survey = Survey.query.filter_by(id=survey_id, created_by=user.id).first()
    if survey is None:
        raise ApiError('Survey not found or access denied', 404)
    return survey


@surveys_bp.route('', methods=['GET'])
@login_required
def list_surveys():
    """the signed in user's surveys, newest first"""
    user = current_user()
    surveys = Survey.query.filter_by(created_by=user.id).order_by(Survey.created_at.desc(), Survey.id.desc()).all()
    return jsonify({'surveys': [survey.to_dict() for survey in surveys]})


@surveys_bp.route('', methods=['POST'])
@login_required
def create_survey():
    user = current_user()
    data = _json_body()

    title = str(data.get('title') or '').strip()
    if not title:
        raise ApiError('Please provide a survey title')

    new_survey = Survey(
        title=title,
        description=data.get('description', ''),
        name=data.get('name'),
        questions=normalize_questions(data.get('questions', [])),
        settings=_validated_settings(data.get('settings', {})),
        status='draft',
        created_by=user.id,
        response_count=0,
    )
    db.session.add(new_survey)
    db.session.commit()

    logger.info('Survey "%s" (%s) created by %s', new_survey.title, new_survey.id, user.email)
    return jsonify({'survey': new_survey.to_dict()}), 201


@surveys_bp.route('/<int:survey_id>', methods=['GET'])
def get_survey(survey_id):
    """
    Public read. The owner gets the whole document, everyone else only the
    parts needed to fill the survey in, and only while it is open.
    """
    survey = Survey.query.get_or_404(survey_id, description='Survey not found')

    user = current_user()
    if user is not None and survey.created_by == user.id:
        return jsonify({'survey': survey.to_dict()})

    if not survey.accepts_responses():
        raise ApiError('Survey not available', 404)

    return jsonify({'survey': survey.to_public_dict()})


@surveys_bp.route('/<int:survey_id>', methods=['PUT'])
@login_required
def update_survey(survey_id):
    """Owner only. Fields left out of the body keep their value."""
    survey = get_owned_survey_or_404(survey_id, current_user())
    data = _json_body()

    if isinstance(data.get('title'), str):
        if not data['title'].strip():
            raise ApiError('Please provide a survey title')
        survey.title = data['title'].strip()
    if 'description' in data:
        survey.description = data['description']
    if 'name' in data:
        survey.name = data['name']
    if data.get('questions') is not None:
        survey.questions = normalize_questions(data['questions'])
    if data.get('settings') is not None:
        survey.settings = _validated_settings(data['settings'])
    if data.get('status'):
        if data['status'] not in Survey.STATUSES:
            raise ApiError(f"Invalid status: {data['status']}")
        survey.status = data['status']

    db.session.commit()
    return jsonify({'survey': survey.to_dict()})


@surveys_bp.route('/<int:survey_id>', methods=['DELETE'])
@login_required
def delete_survey(survey_id):
    """
    Delete a survey and all its responses. The owner or any admin may do this.
    """
    user = current_user()
    survey = Survey.query.get_or_404(survey_id, description='Survey not found')

    if survey.created_by != user.id and not user.is_admin:
        raise ApiError('Access denied', 403)

    survey_title = survey.title

    # cascade='all, delete-orphan' on Survey.responses removes the responses too
    db.session.delete(survey)
    db.session.commit()

    logger.info('Survey "%s" (%s) deleted by %s', survey_title, survey_id, user.email)
    return '', 204


@surveys_bp.route('/<int:survey_id>/publish', methods=['POST'])
@allowed_roles('admin')
def publish_survey(survey_id):
    """Body {"action": "publish"} or {"action": "unpublish"} (back to draft)."""
    data = _json_body()
    action = data.get('action')

    if action not in ('publish', 'unpublish'):
        raise ApiError('Invalid action')

    survey = Survey.query.get_or_404(survey_id, description='Survey not found')

    if action == 'publish' and not survey.get_all_questions():
        raise ApiError('Cannot publish survey without questions')

    survey.status = 'published' if action == 'publish' else 'draft'
    db.session.commit()

    logger.info('Survey %s is now %s', survey.id, survey.status)
    return jsonify({'survey': survey.to_dict()})


@surveys_bp.route('/<int:survey_id>/duplicate', methods=['POST'])
@login_required
def duplicate_survey(survey_id):
    user = current_user()
    existing_survey = get_owned_survey_or_404(survey_id, user)

    duplicated_survey = Survey(
        title=f'{existing_survey.title} (Copy)',
        description=existing_survey.description,
        name=existing_survey.name,
        questions=copy.deepcopy(existing_survey.get_all_questions()),
        settings=copy.deepcopy(existing_survey.settings or {}),
        status='draft',
        created_by=user.id,
        response_count=0,
    )
    db.session.add(duplicated_survey)
    db.session.commit()

    return jsonify({'survey': duplicated_survey.to_dict()}), 201


def find_template(template_id, source='auto'):
    """
    Resolve a template slug. 'local' only checks the built in templates,
    'db' only the stored ones, 'auto' tries built in first.
    """
    if source in ('local', 'auto'):
        template = find_builtin_template(template_id)
        if template is not None:
            return template
    if source in ('db', 'auto'):
        stored = SurveyTemplate.query.filter_by(slug=template_id).first()
        if stored is not None:
            return stored.to_dict()
    return None


@surveys_bp.route('/from-template', methods=['POST'])
@login_required
def create_from_template():
    user = current_user()
    data = _json_body()

    template_id = str(data.get('templateId') or '').strip()
    if not template_id:
        raise ApiError('Template ID is required')

    source = data.get('source', 'auto')
    if source not in ('local', 'db', 'auto'):
        raise ApiError('Invalid template source')

    template = find_template(template_id, source)
    if template is None:
        raise ApiError('Template not found', 404, payload={'triedId': template_id, 'sourceTried': source})

    title = str(data.get('title') or '').strip() or template.get('name') or 'Untitled'

    new_survey = Survey(
        title=title,
        description=template.get('description') or '',
        questions=normalize_questions(copy.deepcopy(template.get('questions') or [])),
        settings=_validated_settings(copy.deepcopy(template.get('settings') or {})),
        status='published',
        created_by=user.id,
        response_count=0,
        template_id=template_id,
    )
    db.session.add(new_survey)
    db.session.commit()

    logger.info('Survey %s created from template "%s"', new_survey.id, template_id)
    return jsonify({'success': True, 'survey': new_survey.to_dict()}), 201


@surveys_bp.route('/<int:survey_id>/analytics', methods=['GET'])
def survey_analytics(survey_id):
    """Owner's analytics view: survey level numbers and per question statistics."""
    survey = get_owned_survey_or_404(survey_id, require_user())
    responses = Response.query.filter_by(survey_id=survey.id).all()
    return jsonify({'analytics': compute_survey_analytics(survey, responses)})
