import os

from dotenv import load_dotenv

"""
for all the settings for flask stored in one place such as secret key,
token lifetime, upload limits, the language model endpoint and mail
"""

load_dotenv()


class Config:

    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-later')

    BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    DATABASE_PATH = os.path.join(BASE_DIR, 'database', 'survey_insights.db')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', f'sqlite:///{DATABASE_PATH}')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # auth tokens
    TOKEN_MAX_AGE = int(os.environ.get('TOKEN_MAX_AGE', 60 * 60 * 24 * 7))  # one week
    AUTH_COOKIE_NAME = 'auth_token'
    AUTH_COOKIE_SECURE = os.environ.get('AUTH_COOKIE_SECURE', 'false').lower() in ('true', '1', 'yes')

    # upload settings
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'upload')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB Max
    ALLOWED_FILE_TYPES = ['xlsx', 'xls']

    # narrative generation, any OpenAI compatible endpoint
    LLM_API_KEY = os.environ.get('LLM_API_KEY') or os.environ.get('GROQ_API_KEY')
    LLM_BASE_URL = os.environ.get('LLM_BASE_URL', 'https://api.groq.com/openai/v1')
    LLM_MODEL = os.environ.get('LLM_MODEL', 'llama-3.1-8b-instant')
    LLM_TEMPERATURE = 0.2

    # email configuration
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = True
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_USERNAME')
    CONTACT_NOTIFY_EMAIL = os.environ.get('CONTACT_NOTIFY_EMAIL')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestConfig(Config):

    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AUTH_COOKIE_SECURE = False
    LLM_API_KEY = None
    MAIL_USERNAME = None
    MAIL_PASSWORD = None
    CONTACT_NOTIFY_EMAIL = None
    MAIL_SUPPRESS_SEND = True
