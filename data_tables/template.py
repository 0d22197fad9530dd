import re

from database import db, utcnow

TEMPLATE_SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')


class SurveyTemplate(db.Model):
    """
    a reusable set of questions and settings that a new survey can be
    started from. the slug is the public id ("customer-satisfaction")
    """

    __tablename__ = 'templates'

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default='')
    category = db.Column(db.String(100))
    icon = db.Column(db.String(100))
    questions = db.Column(db.JSON, nullable=False, default=list)
    settings = db.Column(db.JSON, nullable=False, default=dict)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.slug,
            'name': self.name,
            'title': self.name,
            'description': self.description,
            'category': self.category,
            'icon': self.icon,
            'questions': self.questions or [],
            'settings': self.settings or {},
            'isTemplate': True,
            'builtIn': False,
            'createdBy': self.created_by,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<SurveyTemplate {self.slug}>'
