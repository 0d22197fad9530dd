import logging
import re

from flask import Blueprint, current_app, jsonify, request
from flask_mail import Message

from database import db
from data_tables.contact_message import ContactMessage
from utils.errors import ApiError

logger = logging.getLogger(__name__)

contact_bp = Blueprint('contact', __name__, url_prefix='/api/contact')

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


@contact_bp.route('', methods=['POST'])
def send_contact_message():
    """Store a contact form message and let the team know by email."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ApiError('Request body must be a JSON object')

    name = str(data.get('name') or '').strip()
    email = str(data.get('email') or '').strip().lower()
    subject = str(data.get('subject') or '').strip()
    message = str(data.get('message') or '').strip()

    if not name or not email or not subject or not message:
        raise ApiError('Name, email, subject, and message are required')

    if not EMAIL_PATTERN.match(email):
        raise ApiError('Please provide a valid email address')

    contact_message = ContactMessage(
        name=name,
        email=email,
        company=str(data.get('company') or '').strip() or None,
        subject=subject,
        message=message,
        ip_address=request.headers.get('X-Forwarded-For') or request.remote_addr or 'unknown',
        user_agent=request.headers.get('User-Agent', 'unknown')[:500],
    )
    db.session.add(contact_message)
    db.session.commit()

    send_contact_notification(contact_message)

    return jsonify({
        'success': True,
        'message': 'Contact message sent successfully',
        'id': contact_message.id,
    }), 201


def send_contact_notification(contact_message):
    """Email the team about a new message. Returns True if sent, False if not configured or failed."""

    recipient = current_app.config.get('CONTACT_NOTIFY_EMAIL')

    # Don't even try if credentials aren't configured
    if not current_app.config.get('MAIL_USERNAME') or not current_app.config.get('MAIL_PASSWORD') or not recipient:
        logger.info("Email not configured: contact message %s stored without notification", contact_message.id)
        return False

    try:
        mail = current_app.extensions['mail']
        msg = Message(
            subject=f'New contact message: {contact_message.subject}',
            recipients=[recipient],
            sender=current_app.config.get('MAIL_DEFAULT_SENDER') or current_app.config['MAIL_USERNAME'],
            reply_to=contact_message.email,
            body=f'''From: {contact_message.name} <{contact_message.email}>
Company: {contact_message.company or '-'}

{contact_message.message}
'''
        )
        mail.send(msg)
        return True

    except Exception:
        logger.exception("Contact notification email failed for message %s", contact_message.id)
        return False
