from database import db, utcnow


class ContactMessage(db.Model):
    """A message left through the public contact form."""

    __tablename__ = 'contact_messages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=False)
    company = db.Column(db.String(200))
    subject = db.Column(db.String(300), nullable=False)
    message = db.Column(db.Text, nullable=False)
    ip_address = db.Column(db.String(100))
    user_agent = db.Column(db.String(500))
    is_read = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'company': self.company,
            'subject': self.subject,
            'message': self.message,
            'isRead': self.is_read,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<ContactMessage {self.id}: {self.subject[:30]}>'
