from database import db, utcnow
from utils.analytics import compute_question_analytics

DEFAULT_SETTINGS = {
    'allowAnonymous': True,
    'requireAuth': False,
    'multipleResponses': True,
    'showProgressBar': True,
    'randomizeQuestions': False,
    'collectEmail': False,
    'collectIP': False,
    'thankYouMessage': 'Thank you for completing the survey!',
}


class Survey(db.Model):
    """
    This shows an individual survey and its connections:
        - each survey holds an ordered list of questions (json)
        - each survey is owned by one user
        - each survey is connected to many responses
    """

    __tablename__ = 'surveys'

    STATUSES = ('draft', 'published', 'closed')

    # Columns
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default='')
    name = db.Column(db.String(200))
    questions = db.Column(db.JSON, nullable=False, default=list)
    settings = db.Column(db.JSON, nullable=False, default=dict)
    status = db.Column(db.String(10), nullable=False, default='draft')
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    response_count = db.Column(db.Integer, nullable=False, default=0)
    template_id = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    responses = db.relationship('Response', backref='survey', lazy=True, cascade='all, delete-orphan')

    def get_all_questions(self):
        """Get all questions in order."""
        return list(self.questions or [])

    def get_setting(self, key):
        settings = self.settings or {}
        return settings.get(key, DEFAULT_SETTINGS.get(key))

    def question_ids(self):
        return {q['id'] for q in self.get_all_questions()}

    def accepts_responses(self):
        return self.status in ('published', 'draft')

    def get_all_statistics(self, responses=None):
        """Get statistics for all questions in this survey."""
        if responses is None:
            responses = self.responses
        answer_maps = [response.answers or {} for response in responses]
        return compute_question_analytics(self.get_all_questions(), answer_maps)

    def to_public_dict(self):
        """What a respondent is allowed to see."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'questions': self.get_all_questions(),
            'settings': self.settings or {},
        }

    def to_dict(self):
        survey = self.to_public_dict()
        survey.update({
            'name': self.name,
            'status': self.status,
            'createdBy': self.created_by,
            'responseCount': self.response_count,
            'templateId': self.template_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        })
        return survey

    def __repr__(self):
        return f'<Survey: {self.title}>'
