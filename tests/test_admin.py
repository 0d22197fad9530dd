import io
from types import SimpleNamespace

import openpyxl

import utils.narrative
from database import db
from data_tables.contact_message import ContactMessage
from data_tables.survey import Survey

from conftest import auth_header


def test_admin_routes_need_an_admin_token(client, user):
    assert client.get('/api/admin/surveys').status_code == 401

    forbidden = client.get('/api/admin/surveys', headers=auth_header(user))
    assert forbidden.status_code == 403
    assert forbidden.get_json()['error'] == 'Admin access required'


def test_dashboard_lists_every_survey(client, admin, user, other_user, make_survey):
    make_survey(user, title='First')
    make_survey(other_user, title='Second')

    res = client.get('/api/admin/surveys', headers=auth_header(admin))

    assert res.status_code == 200
    assert {survey['title'] for survey in res.get_json()['surveys']} == {'First', 'Second'}


def test_results_and_responses_for_one_survey(client, admin, user, make_survey, submit):
    survey_id = make_survey(user)
    submit(survey_id, {'q1': 'Red', 'q2': 4})
    submit(survey_id, {'q1': 'Red', 'q2': 2})

    results = client.get(f'/api/admin/surveys/{survey_id}/results', headers=auth_header(admin)).get_json()
    colour = results['analytics']['questionAnalytics'][0]
    assert colour['distribution'] == {'Red': 2}
    assert results['analytics']['questionAnalytics'][1]['average'] == 3.0

    listing = client.get(f'/api/admin/surveys/{survey_id}/responses', headers=auth_header(admin)).get_json()
    assert listing['survey']['id'] == survey_id
    assert len(listing['responses']) == 2
    assert listing['responses'][0]['responses']['q2'] == 2
    assert listing['responses'][0]['metadata']['isComplete'] is True


def test_results_for_unknown_survey(client, admin):
    assert client.get('/api/admin/surveys/999/results', headers=auth_header(admin)).status_code == 404


def test_overview_groups_responses_by_survey(client, admin, user, make_survey, submit):
    first = make_survey(user, title='First')
    second = make_survey(user, title='Second')
    make_survey(user, title='Unanswered')
    submit(first, {'q1': 'Red'})
    submit(first, {'q1': 'Blue'})
    submit(second, {'q1': 'Blue'})

    body = client.get('/api/admin/responses', headers=auth_header(admin)).get_json()

    assert body['totalSurveys'] == 2
    assert body['totalResponses'] == 3
    by_title = {entry['surveyTitle']: entry for entry in body['analytics']}
    assert by_title['First']['totalResponses'] == 2
    assert len(by_title['First']['responses']) == 2
    assert by_title['Second']['questionAnalytics'][0]['distribution'] == {'Blue': 1}


def test_recent_responses_are_limited(client, admin, user, make_survey, submit):
    survey_id = make_survey(user)
    for _ in range(6):
        submit(survey_id, {'q1': 'Red', 'q2': 3})

    recent = client.get('/api/admin/responses/recent', headers=auth_header(admin)).get_json()['responses']

    assert len(recent) == 4
    assert recent[0]['surveyTitle'] == 'Feedback'
    assert recent[0]['answersCount'] == 2


def test_get_and_delete_single_response(app, client, admin, user, make_survey, submit):
    survey_id = make_survey(user)
    response_id = submit(survey_id, {'q1': 'Red'}).get_json()['responseId']
    submit(survey_id, {'q1': 'Blue'})

    fetched = client.get(f'/api/admin/responses/{response_id}', headers=auth_header(admin))
    assert fetched.get_json()['response']['responses'] == {'q1': 'Red'}

    deleted = client.delete(f'/api/admin/responses/{response_id}', headers=auth_header(admin))
    assert deleted.status_code == 200

    with app.app_context():
        assert db.session.get(Survey, survey_id).response_count == 1
    assert client.get(f'/api/admin/responses/{response_id}', headers=auth_header(admin)).status_code == 404


def test_export_csv(client, admin, user, make_survey, submit):
    survey_id = make_survey(user)
    submit(survey_id, {'q1': 'Red', 'q4': ['A', 'C']})

    res = client.get(f'/api/admin/surveys/{survey_id}/export/csv', headers=auth_header(admin))

    assert res.status_code == 200
    assert res.mimetype == 'text/csv'
    lines = res.data.decode('utf-8').splitlines()
    assert lines[0].startswith('Favourite colour?,Rate us,Anything else?,Pick any,Recommend us?,Submitted At')
    assert lines[1].startswith('Red,,,A; C,')


def test_export_excel(client, admin, user, make_survey, submit):
    survey_id = make_survey(user)
    submit(survey_id, {'q1': 'Blue', 'q2': 5})

    res = client.get(f'/api/admin/surveys/{survey_id}/export/xlsx', headers=auth_header(admin))

    assert res.status_code == 200
    sheet = openpyxl.load_workbook(io.BytesIO(res.data))['Responses']
    assert sheet.cell(row=1, column=1).value == 'Favourite colour?'
    assert sheet.cell(row=2, column=1).value == 'Blue'
    assert sheet.cell(row=2, column=2).value == '5'


def test_export_pdf_and_unknown_format(client, admin, user, make_survey, submit):
    survey_id = make_survey(user)
    submit(survey_id, {'q1': 'Blue', 'q3': 'quick & friendly <staff>'})

    pdf = client.get(f'/api/admin/surveys/{survey_id}/export/pdf', headers=auth_header(admin))
    assert pdf.status_code == 200
    assert pdf.data.startswith(b'%PDF')

    assert client.get(f'/api/admin/surveys/{survey_id}/export/docx', headers=auth_header(admin)).status_code == 400


def test_narrative_without_api_key(client, admin, user, make_survey):
    survey_id = make_survey(user)

    res = client.post(f'/api/admin/surveys/{survey_id}/narrative', headers=auth_header(admin))

    assert res.status_code == 503


class FakeCompletions:

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(monkeypatch, completions):
    def _client(api_key, base_url):
        return SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(utils.narrative, 'OpenAI', _client)


def test_narrative_returns_model_text_and_statistics(app, client, admin, user, make_survey, submit, monkeypatch):
    app.config['LLM_API_KEY'] = 'test-key'
    completions = FakeCompletions(reply='## Summary\nMostly red.')
    fake_client(monkeypatch, completions)
    survey_id = make_survey(user)
    submit(survey_id, {'q1': 'Red', 'q5': 9})

    res = client.post(f'/api/admin/surveys/{survey_id}/narrative', headers=auth_header(admin))

    assert res.status_code == 200
    body = res.get_json()
    assert body['analysis'] == '## Summary\nMostly red.'
    assert body['model'] == 'llama-3.1-8b-instant'
    assert body['questionAnalytics'][0]['distribution'] == {'Red': 1}

    call = completions.calls[0]
    assert call['temperature'] == 0.2
    prompt = call['messages'][1]['content']
    assert '"Favourite colour?"' in prompt
    assert '- Red: 1' in prompt
    assert 'NPS: 100' in prompt


def test_narrative_failure_still_returns_statistics(app, client, admin, user, make_survey, submit, monkeypatch):
    app.config['LLM_API_KEY'] = 'test-key'
    fake_client(monkeypatch, FakeCompletions(error=RuntimeError('upstream down')))
    survey_id = make_survey(user)
    submit(survey_id, {'q1': 'Blue'})

    res = client.post(f'/api/admin/surveys/{survey_id}/narrative', headers=auth_header(admin))

    assert res.status_code == 502
    body = res.get_json()
    assert body['error'] == 'Failed to analyze survey'
    assert body['questionAnalytics'][0]['distribution'] == {'Blue': 1}


def _question_sheet(rows):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(['Question', 'Type', 'Required', 'Options'])
    for row in rows:
        ws.append(row)
    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def test_upload_excel_creates_draft_survey(client, admin):
    sheet = _question_sheet([
        ['How was the venue?', 'rating', 'yes', None],
        ['Which day suited you?', 'dropdown', 'no', 'Friday; Saturday'],
        [None, None, None, None],
        ['Anything to add?', None, None, None],
    ])

    res = client.post(
        '/api/admin/upload',
        headers=auth_header(admin),
        data={'file': (sheet, 'questions.xlsx'), 'title': 'Venue survey'},
        content_type='multipart/form-data',
    )

    assert res.status_code == 201
    survey = res.get_json()['survey']
    assert survey['title'] == 'Venue survey'
    assert survey['status'] == 'draft'
    questions = survey['questions']
    assert [q['type'] for q in questions] == ['rating', 'dropdown', 'text']
    assert questions[0]['required'] is True
    assert questions[1]['required'] is False
    assert questions[1]['options'] == ['Friday', 'Saturday']


def test_upload_rejects_missing_and_non_excel_files(client, admin):
    headers = auth_header(admin)

    missing = client.post('/api/admin/upload', headers=headers, data={}, content_type='multipart/form-data')
    assert missing.status_code == 400

    wrong_type = client.post(
        '/api/admin/upload',
        headers=headers,
        data={'file': (io.BytesIO(b'a,b'), 'questions.csv')},
        content_type='multipart/form-data',
    )
    assert wrong_type.status_code == 400
    assert wrong_type.get_json()['error'].startswith('Invalid file type')


def test_contact_messages_inbox(app, client, admin):
    with app.app_context():
        for subject in ('Pricing', 'Bug'):
            db.session.add(ContactMessage(name='Sam', email='sam@example.com', subject=subject, message='Hi'))
        db.session.commit()
        first_id = ContactMessage.query.filter_by(subject='Pricing').one().id

    inbox = client.get('/api/admin/contact-messages', headers=auth_header(admin)).get_json()
    assert inbox['unread'] == 2
    assert len(inbox['messages']) == 2

    marked = client.patch(f'/api/admin/contact-messages/{first_id}', headers=auth_header(admin), json={})
    assert marked.get_json()['message']['isRead'] is True
    assert client.get('/api/admin/contact-messages', headers=auth_header(admin)).get_json()['unread'] == 1

    assert client.delete(f'/api/admin/contact-messages/{first_id}', headers=auth_header(admin)).status_code == 200
    assert len(client.get('/api/admin/contact-messages', headers=auth_header(admin)).get_json()['messages']) == 1


def test_huge_numeric_answer_does_not_break_admin_views(client, admin, user, make_survey, submit):
    survey_id = make_survey(user)
    assert submit(survey_id, {'q1': 'Red', 'q2': '1e200', 'q5': 10 ** 400}).status_code == 201
    submit(survey_id, {'q1': 'Blue', 'q2': 3, 'q5': 9})

    overview = client.get('/api/admin/responses', headers=auth_header(admin))
    assert overview.status_code == 200
    rating = overview.get_json()['analytics'][0]['questionAnalytics'][1]
    assert rating['average'] is None

    results = client.get(f'/api/admin/surveys/{survey_id}/results', headers=auth_header(admin))
    assert results.status_code == 200
    assert b'Infinity' not in results.data
    assert results.get_json()['analytics']['questionAnalytics'][4]['npsScore'] == 100

    pdf = client.get(f'/api/admin/surveys/{survey_id}/export/pdf', headers=auth_header(admin))
    assert pdf.status_code == 200
