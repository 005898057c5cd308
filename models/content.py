from datetime import datetime
from models import db

class ContentItem(db.Model):
    """An uploaded file stored under the upload folder."""
    
    __tablename__ = 'content_items'
    
    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    recipient_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    
    stored_filename = db.Column(db.String(255), unique=True, nullable=False)
    original_filename = db.Column(db.String(255), nullable=False)
    mime_type = db.Column(db.String(100))
    size = db.Column(db.Integer, nullable=False)  # bytes
    uploaded_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    
    def __repr__(self):
        return f'<ContentItem {self.stored_filename}>'
    
    def involves(self, user_id):
        return user_id in (self.sender_id, self.recipient_id)
    
    def to_dict(self):
        return {
            'id': self.id,
            'filename': self.stored_filename,
            'originalFilename': self.original_filename,
            'senderId': self.sender_id,
            'recipientId': self.recipient_id,
            'mimeType': self.mime_type,
            'size': self.size,
            'uploadedAt': self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
