from database import db, utcnow


class Response(db.Model):
    """
    one persons completed survey: a map of question id to answer plus
    metadata about the submission. written once, never edited
    """

    __tablename__ = 'responses'

    id = db.Column(db.Integer, primary_key=True)
    survey_id = db.Column(db.Integer, db.ForeignKey('surveys.id'), nullable=False, index=True)

    # question id -> string, number, list of strings, row/column map, bool or null
    answers = db.Column(db.JSON, nullable=False, default=dict)

    # metadata
    ip_address = db.Column(db.String(100))
    user_agent = db.Column(db.String(500))
    start_time = db.Column(db.DateTime)
    end_time = db.Column(db.DateTime)
    is_complete = db.Column(db.Boolean, default=True)

    # only kept when the survey collects email
    respondent_email = db.Column(db.String(200))
    respondent_name = db.Column(db.String(200))

    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def completion_seconds(self):
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self):
        respondent = None
        if self.respondent_email or self.respondent_name:
            respondent = {'email': self.respondent_email, 'name': self.respondent_name}

        return {
            'id': self.id,
            'surveyId': self.survey_id,
            'responses': self.answers or {},
            'metadata': {
                'ipAddress': self.ip_address,
                'userAgent': self.user_agent,
                'startTime': self.start_time.isoformat() if self.start_time else None,
                'endTime': self.end_time.isoformat() if self.end_time else None,
                'isComplete': self.is_complete,
            },
            'respondentInfo': respondent,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Response {self.id} for Survey {self.survey_id}>'
