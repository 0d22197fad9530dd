import logging
import os

import click
from flask import Flask, jsonify
from flask_mail import Mail
from werkzeug.exceptions import HTTPException

from database import db
from config import Config
# every model is imported so db.create_all() sees its table
from data_tables.user import User
from data_tables.survey import Survey
from data_tables.response import Response
from data_tables.template import SurveyTemplate
from data_tables.contact_message import ContactMessage
from routes.auth import auth_bp
from routes.surveys import surveys_bp
from routes.take_survey import survey_bp
from routes.templates import templates_bp
from routes.contact import contact_bp
from routes.admin import admin_bp
from utils.errors import ApiError

logger = logging.getLogger(__name__)

mail = Mail()


def configure_logging(app):
    """Send every module logger through one handler at the configured level."""
    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def register_error_handlers(app):

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        return jsonify({'error': 'Internal server error'}), 500


def register_commands(app):

    @app.cli.command('create-admin')
    @click.argument('email')
    @click.argument('name')
    @click.password_option()
    def create_admin(email, name, password):
        """Create an admin account, or promote an existing user to admin."""
        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(email=email, name=name)
            user.set_password(password)
            db.session.add(user)
        user.role = 'admin'
        db.session.commit()
        click.echo(f'{email} is now an admin')


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    # Initialize Flask-Mail
    mail.init_app(app)

    # connect database to app
    db.init_app(app)

    # register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(surveys_bp)
    app.register_blueprint(survey_bp)
    app.register_blueprint(templates_bp)
    app.register_blueprint(contact_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)
    register_commands(app)

    # home route
    @app.route('/')
    def home():
        return jsonify({'name': 'Survey Insights', 'status': 'running'})

    if not app.config.get('TESTING'):
        # create database and upload folders if they dont exist
        database_folder = os.path.join(os.path.dirname(__file__), 'database')
        for folder in [database_folder, app.config['UPLOAD_FOLDER']]:
            if not os.path.exists(folder):
                os.makedirs(folder)

    # create database tables when app starts
    with app.app_context():
        db.create_all()
        logger.info("database tables ready")

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True, port=5001, use_reloader=False)
