import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

from database import db, utcnow
from data_tables.question import is_answered
from data_tables.response import Response
from data_tables.survey import Survey
from utils.auth import current_user
from utils.errors import ApiError

logger = logging.getLogger(__name__)

"""
the respondent side: submitting a filled in survey
"""
survey_bp = Blueprint('survey', __name__, url_prefix='/api/surveys')


def find_missing_required(survey, answers):
    """Ids of required questions whose answer is absent, None, '' or []."""
    return [
        question['id']
        for question in survey.get_all_questions()
        if question.get('required') and not is_answered(answers.get(question['id']))
    ]


def parse_start_time(value):
    """ISO timestamp from the client, stored as naive UTC. Falls back to now."""
    if not value:
        return utcnow()
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ApiError('Invalid startTime')
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def client_ip():
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.headers.get('X-Real-IP') or request.remote_addr or 'unknown'


@survey_bp.route('/<int:survey_id>/responses', methods=['POST'])
def submit_response(survey_id):
    """
    Accept one respondent's answers.

    Body: {"responses": {question id: answer}, "respondentInfo": {...}, "startTime": iso}

    Only presence of required answers is checked. A missing required answer
    is a 422 listing the question ids and nothing is stored.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')

    answers = data.get('responses')
    if not isinstance(answers, dict):
        raise ApiError('Response data is required')

    survey = Survey.query.get_or_404(survey_id, description='Survey not found')

    if not survey.accepts_responses():
        raise ApiError('Survey is not available for responses')

    if survey.get_setting('requireAuth') and current_user() is None:
        raise ApiError('Sign in to answer this survey', 401)

    missing = find_missing_required(survey, answers)
    if missing:
        raise ApiError('Required questions not answered', 422, payload={'missingQuestions': missing})

    unknown = sorted(set(answers) - survey.question_ids())
    if unknown:
        raise ApiError('Answers reference unknown questions', payload={'unknownQuestions': unknown})

    respondent = data.get('respondentInfo') if survey.get_setting('collectEmail') else None
    if not isinstance(respondent, dict):
        respondent = {}

    new_response = Response(
        survey_id=survey.id,
        answers=answers,
        ip_address=client_ip() if survey.get_setting('collectIP') else None,
        user_agent=request.headers.get('User-Agent', 'unknown')[:500],
        start_time=parse_start_time(data.get('startTime')),
        end_time=utcnow(),
        is_complete=True,
        respondent_email=respondent.get('email'),
        respondent_name=respondent.get('name'),
    )
    db.session.add(new_response)

    # single UPDATE ... SET response_count = response_count + 1
    Survey.query.filter_by(id=survey.id).update(
        {Survey.response_count: Survey.response_count + 1},
        synchronize_session=False,
    )
    db.session.commit()

    logger.info("Response %s submitted for survey %s", new_response.id, survey.id)
    return jsonify({'message': 'Response submitted successfully', 'responseId': new_response.id}), 201
