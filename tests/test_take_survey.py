from database import db
from data_tables.response import Response
from data_tables.survey import Survey

from conftest import auth_header


def stored_counts(app, survey_id):
    with app.app_context():
        survey = db.session.get(Survey, survey_id)
        return survey.response_count, Response.query.filter_by(survey_id=survey_id).count()


def test_submit_response_stores_answers_and_counts(app, user, make_survey, submit):
    survey_id = make_survey(user)

    res = submit(survey_id, {'q1': 'Red', 'q2': 4, 'q4': ['A', 'B']}, startTime='2024-05-01T10:00:00Z')

    assert res.status_code == 201
    assert res.get_json()['message'] == 'Response submitted successfully'
    assert stored_counts(app, survey_id) == (1, 1)

    with app.app_context():
        stored = Response.query.filter_by(survey_id=survey_id).one()
        assert stored.answers == {'q1': 'Red', 'q2': 4, 'q4': ['A', 'B']}
        assert stored.is_complete is True
        assert stored.start_time.isoformat() == '2024-05-01T10:00:00'
        assert stored.end_time is not None
        # survey does not collect IP or email by default
        assert stored.ip_address is None
        assert stored.respondent_email is None


def test_each_submission_increments_the_counter(app, user, make_survey, submit):
    survey_id = make_survey(user)

    for colour in ('Red', 'Blue', 'Red'):
        assert submit(survey_id, {'q1': colour}).status_code == 201

    assert stored_counts(app, survey_id) == (3, 3)


def test_missing_required_answer_is_rejected(app, user, make_survey, submit):
    survey_id = make_survey(user)

    res = submit(survey_id, {'q2': 5})

    assert res.status_code == 422
    body = res.get_json()
    assert body['error'] == 'Required questions not answered'
    assert body['missingQuestions'] == ['q1']
    assert stored_counts(app, survey_id) == (0, 0)


def test_empty_string_and_empty_list_count_as_missing(app, user, make_survey, submit):
    questions = [
        {'id': 'name', 'type': 'text', 'question': 'Name', 'required': True},
        {'id': 'pick', 'type': 'checkbox', 'question': 'Pick', 'required': True, 'options': ['A']},
    ]
    survey_id = make_survey(user, questions=questions)

    res = submit(survey_id, {'name': '', 'pick': []})

    assert res.status_code == 422
    assert res.get_json()['missingQuestions'] == ['name', 'pick']
    assert stored_counts(app, survey_id) == (0, 0)


def test_zero_is_a_valid_answer_for_required_question(user, make_survey, submit):
    questions = [{'id': 'score', 'type': 'nps', 'question': 'Recommend?', 'required': True}]
    survey_id = make_survey(user, questions=questions)

    assert submit(survey_id, {'score': 0}).status_code == 201


def test_numeric_question_accepts_text_at_submission(client, app, user, make_survey, submit):
    survey_id = make_survey(user)

    res = submit(survey_id, {'q1': 'Blue', 'q2': 'not a number'})

    assert res.status_code == 201
    analytics = client.get(f'/api/surveys/{survey_id}/analytics', headers=auth_header(user)).get_json()
    rating = analytics['analytics']['questionAnalytics'][1]
    assert rating['totalResponses'] == 1
    assert rating['average'] is None


def test_answers_for_unknown_questions_are_rejected(app, user, make_survey, submit):
    survey_id = make_survey(user)

    res = submit(survey_id, {'q1': 'Red', 'q99': 'x'})

    assert res.status_code == 400
    assert res.get_json()['unknownQuestions'] == ['q99']
    assert stored_counts(app, survey_id) == (0, 0)


def test_draft_survey_accepts_responses(user, make_survey, submit):
    survey_id = make_survey(user, status='draft')
    assert submit(survey_id, {'q1': 'Red'}).status_code == 201


def test_closed_survey_rejects_responses(app, user, make_survey, submit):
    survey_id = make_survey(user, status='closed')

    res = submit(survey_id, {'q1': 'Red'})

    assert res.status_code == 400
    assert res.get_json()['error'] == 'Survey is not available for responses'
    assert stored_counts(app, survey_id) == (0, 0)


def test_unknown_survey_is_404(submit):
    assert submit(12345, {'q1': 'Red'}).status_code == 404


def test_body_without_answer_map_is_rejected(client, user, make_survey):
    survey_id = make_survey(user)

    res = client.post(f'/api/surveys/{survey_id}/responses', json={'responses': ['Red']})

    assert res.status_code == 400
    assert res.get_json()['error'] == 'Response data is required'


def test_survey_requiring_auth_needs_a_token(client, user, make_survey):
    survey_id = make_survey(user, settings={'requireAuth': True})
    url = f'/api/surveys/{survey_id}/responses'

    assert client.post(url, json={'responses': {'q1': 'Red'}}).status_code == 401
    assert client.post(url, json={'responses': {'q1': 'Red'}}, headers=auth_header(user)).status_code == 201


def test_ip_and_respondent_info_kept_only_when_collected(app, user, make_survey, submit):
    survey_id = make_survey(user, settings={'collectIP': True, 'collectEmail': True})

    res = submit(
        survey_id,
        {'q1': 'Red'},
        respondentInfo={'email': 'r@example.com', 'name': 'Riley'},
    )

    assert res.status_code == 201
    with app.app_context():
        stored = Response.query.filter_by(survey_id=survey_id).one()
        assert stored.ip_address == '127.0.0.1'
        assert stored.respondent_email == 'r@example.com'
        assert stored.respondent_name == 'Riley'
