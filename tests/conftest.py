import pytest

from app import create_app
from config import TestConfig
from database import db
from data_tables.survey import Survey, DEFAULT_SETTINGS
from data_tables.user import User
from utils.auth import generate_token


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig)
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'upload')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(app, email, role, password='secret123'):
    with app.app_context():
        user = User(email=email, name=email.split('@')[0], role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return {'id': user.id, 'email': email, 'password': password, 'token': generate_token(user)}


@pytest.fixture
def admin(app):
    return _make_user(app, 'admin@example.com', 'admin')


@pytest.fixture
def user(app):
    return _make_user(app, 'user@example.com', 'user')


@pytest.fixture
def other_user(app):
    return _make_user(app, 'other@example.com', 'user')


def auth_header(account):
    return {'Authorization': f"Bearer {account['token']}"}


FEEDBACK_QUESTIONS = [
    {'id': 'q1', 'type': 'multiple-choice', 'question': 'Favourite colour?', 'required': True,
     'options': ['Red', 'Blue']},
    {'id': 'q2', 'type': 'rating', 'question': 'Rate us', 'required': False},
    {'id': 'q3', 'type': 'textarea', 'question': 'Anything else?', 'required': False},
    {'id': 'q4', 'type': 'checkbox', 'question': 'Pick any', 'required': False,
     'options': {'choices': ['A', 'B', 'C']}},
    {'id': 'q5', 'type': 'nps', 'question': 'Recommend us?', 'required': False},
]


@pytest.fixture
def make_survey(app):
    """Factory that stores a survey and returns its id."""
    def _make_survey(owner, questions=None, status='published', settings=None, title='Feedback'):
        with app.app_context():
            survey = Survey(
                title=title,
                description='Tell us how we did',
                questions=FEEDBACK_QUESTIONS if questions is None else questions,
                settings={**DEFAULT_SETTINGS, **(settings or {})},
                status=status,
                created_by=owner['id'],
                response_count=0,
            )
            db.session.add(survey)
            db.session.commit()
            return survey.id
    return _make_survey


@pytest.fixture
def submit(client):
    """Post an answer map to a survey and return the response."""
    def _submit(survey_id, answers, **extra):
        return client.post(f'/api/surveys/{survey_id}/responses', json={'responses': answers, **extra})
    return _submit
