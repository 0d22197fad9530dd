from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

"""
single SQLAlchemy instance shared by the models and bound to the app in create_app
"""

db = SQLAlchemy()


def utcnow():
    """Naive UTC timestamp, the form SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
