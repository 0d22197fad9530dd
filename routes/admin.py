import logging
import os

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.utils import secure_filename

from database import db
from data_tables.contact_message import ContactMessage
from data_tables.question import normalize_questions
from data_tables.response import Response
from data_tables.survey import Survey, DEFAULT_SETTINGS
from utils.analytics import compute_survey_analytics
from utils.auth import current_user, require_admin
from utils.excel_upload import process_excel_file, check_if_excel_file
from utils.exports import (
    export_analytics_pdf,
    export_responses_csv,
    export_responses_excel,
    safe_filename_stem,
)
from utils.narrative import generate_narrative

logger = logging.getLogger(__name__)

# Create blueprint for admin routes
"""
blueprint groups related routes together. This one groups all admin api
endpoints, so all routes will have '/api/admin' in their path
"""
admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

RECENT_RESPONSES_LIMIT = 4


# Protect all admin routes
@admin_bp.before_request
def check_admin_login():
    """Reject the request unless it carries a valid admin token."""
    require_admin()


def _survey_responses(survey_id):
    return Response.query.filter_by(survey_id=survey_id).order_by(Response.created_at.desc(), Response.id.desc()).all()


# route 1) admin dashboard
@admin_bp.route('/surveys')
def dashboard():
    """every survey, newest first"""
    all_surveys = Survey.query.order_by(Survey.created_at.desc(), Survey.id.desc()).all()
    return jsonify({'surveys': [survey.to_dict() for survey in all_surveys]})


@admin_bp.route('/responses')
def all_responses():
    """
    Analytics for every survey that has at least one response, with the
    raw responses attached.
    """
    all_responses = Response.query.order_by(Response.created_at.desc(), Response.id.desc()).all()

    responses_by_survey = {}
    for response in all_responses:
        responses_by_survey.setdefault(response.survey_id, []).append(response)

    analytics = []
    for survey_id, survey_responses in responses_by_survey.items():
        survey = db.session.get(Survey, survey_id)
        if survey is None:
            continue
        survey_analytics = compute_survey_analytics(survey, survey_responses)
        survey_analytics['responses'] = [response.to_dict() for response in survey_responses]
        analytics.append(survey_analytics)

    return jsonify({
        'success': True,
        'analytics': analytics,
        'totalSurveys': len(analytics),
        'totalResponses': len(all_responses),
    })


@admin_bp.route('/responses/recent')
def recent_responses():
    recent = (
        Response.query.order_by(Response.created_at.desc(), Response.id.desc())
        .limit(RECENT_RESPONSES_LIMIT)
        .all()
    )
    return jsonify({
        'success': True,
        'responses': [
            {
                'id': response.id,
                'surveyId': response.survey_id,
                'createdAt': response.created_at.isoformat() if response.created_at else None,
                'respondentEmail': response.respondent_email,
                'answersCount': len(response.answers or {}),
                'surveyTitle': response.survey.title if response.survey else 'Untitled Survey',
            }
            for response in recent
        ],
    })


@admin_bp.route('/surveys/<int:survey_id>/results')
def view_results(survey_id):
    """Statistics for every question of one survey."""
    survey = Survey.query.get_or_404(survey_id, description='Survey not found')
    analytics = compute_survey_analytics(survey, _survey_responses(survey.id))
    return jsonify({'analytics': analytics})


@admin_bp.route('/surveys/<int:survey_id>/responses')
def view_responses(survey_id):
    """Show all individual responses for a survey, newest first."""
    survey = Survey.query.get_or_404(survey_id, description='Survey not found')
    return jsonify({
        'survey': survey.to_dict(),
        'responses': [response.to_dict() for response in _survey_responses(survey.id)],
    })


@admin_bp.route('/responses/<int:response_id>')
def get_response(response_id):
    resp = Response.query.get_or_404(response_id, description='Response not found')
    return jsonify({'response': resp.to_dict(), 'survey': resp.survey.to_dict()})


@admin_bp.route('/responses/<int:response_id>', methods=['DELETE'])
def delete_response(response_id):
    """Delete a single response and take it off the survey's counter."""
    resp = Response.query.get_or_404(response_id, description='Response not found')
    survey_id = resp.survey_id

    db.session.delete(resp)
    Survey.query.filter_by(id=survey_id).update(
        {Survey.response_count: Survey.response_count - 1},
        synchronize_session=False,
    )
    db.session.commit()

    logger.info("Response %s deleted from survey %s by %s", response_id, survey_id, current_user().email)
    return jsonify({'message': 'Response deleted successfully'})


@admin_bp.route('/surveys/<int:survey_id>/narrative', methods=['POST'])
def narrative(survey_id):
    """
    Written analysis of the survey from the language model, returned next
    to the statistics it was based on.
    """
    survey = Survey.query.get_or_404(survey_id, description='Survey not found')
    analytics = compute_survey_analytics(survey, _survey_responses(survey.id))

    logger.info("Narrative requested for survey %s", survey.id)
    result = generate_narrative(analytics)

    return jsonify({
        'success': True,
        'analysis': result['analysis'],
        'model': result['model'],
        'questionAnalytics': analytics['questionAnalytics'],
    })


@admin_bp.route('/surveys/<int:survey_id>/export/<export_format>')
def export_survey(survey_id, export_format):
    """Download responses as csv or xlsx, or the analytics as a pdf report."""
    survey = Survey.query.get_or_404(survey_id, description='Survey not found')
    responses = _survey_responses(survey.id)
    stem = safe_filename_stem(survey.title)

    if export_format == 'csv':
        return send_file(
            export_responses_csv(survey, responses),
            mimetype='text/csv',
            as_attachment=True,
            download_name=f'{stem}_Responses.csv',
        )

    if export_format == 'xlsx':
        return send_file(
            export_responses_excel(survey, responses),
            mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            as_attachment=True,
            download_name=f'{stem}_Responses.xlsx',
        )

    if export_format == 'pdf':
        return send_file(
            export_analytics_pdf(compute_survey_analytics(survey, responses)),
            mimetype='application/pdf',
            as_attachment=True,
            download_name=f'{stem}_Report.pdf',
        )

    return jsonify({'error': f'Unknown export format: {export_format}'}), 400


# upload survey questions from a spreadsheet
@admin_bp.route('/upload', methods=['POST'])
def upload_survey():
    """Upload Excel file and create a draft survey from its rows."""

    if 'file' not in request.files:
        return jsonify({'error': 'No file uploaded'}), 400

    uploaded_file = request.files['file']

    if uploaded_file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    if not check_if_excel_file(uploaded_file.filename, current_app.config['ALLOWED_FILE_TYPES']):
        return jsonify({'error': 'Invalid file type. Please upload Excel (.xlsx or .xls)'}), 400

    upload_folder = current_app.config['UPLOAD_FOLDER']
    if not os.path.exists(upload_folder):
        os.makedirs(upload_folder)

    temp_file_path = os.path.join(upload_folder, secure_filename(uploaded_file.filename))
    uploaded_file.save(temp_file_path)

    try:
        questions_list = process_excel_file(temp_file_path)
    finally:
        os.remove(temp_file_path)

    if len(questions_list) == 0:
        return jsonify({'error': 'No questions found in Excel file'}), 400

    survey_title = request.form.get('title') or 'Imported Survey'

    new_survey = Survey(
        title=survey_title,
        description=request.form.get('description', ''),
        questions=normalize_questions(questions_list),
        settings=dict(DEFAULT_SETTINGS),
        status='draft',
        created_by=current_user().id,
        response_count=0,
    )
    db.session.add(new_survey)
    db.session.commit()

    logger.info('Survey "%s" imported with %s questions', survey_title, len(questions_list))
    return jsonify({'survey': new_survey.to_dict()}), 201


@admin_bp.route('/contact-messages')
def contact_messages():
    messages = ContactMessage.query.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()).all()
    return jsonify({
        'success': True,
        'messages': [message.to_dict() for message in messages],
        'unread': sum(1 for message in messages if not message.is_read),
    })


@admin_bp.route('/contact-messages/<int:message_id>', methods=['PATCH'])
def mark_contact_message(message_id):
    """Body {"isRead": bool}, defaults to marking it read."""
    message = ContactMessage.query.get_or_404(message_id, description='Contact message not found')
    data = request.get_json(silent=True) or {}
    message.is_read = bool(data.get('isRead', True))
    db.session.commit()
    return jsonify({'success': True, 'message': message.to_dict()})


@admin_bp.route('/contact-messages/<int:message_id>', methods=['DELETE'])
def delete_contact_message(message_id):
    message = ContactMessage.query.get_or_404(message_id, description='Contact message not found')
    db.session.delete(message)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Contact message deleted successfully'})
