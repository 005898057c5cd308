from datetime import datetime
from models import db

class User(db.Model):
    """Account that can send and receive content items."""
    
    __tablename__ = 'users'
    
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    # Non-owning back-references
    sent_items = db.relationship(
        'ContentItem', foreign_keys='ContentItem.sender_id',
        backref='sender', lazy='dynamic'
    )
    received_items = db.relationship(
        'ContentItem', foreign_keys='ContentItem.recipient_id',
        backref='recipient', lazy='dynamic'
    )
    
    def __repr__(self):
        return f'<User {self.name}>'
    
    def to_dict(self):
        """Public representation; the password hash never leaves the server."""
        return {'id': self.id, 'name': self.name}
