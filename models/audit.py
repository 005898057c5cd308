from datetime import datetime
from models import db

class AuditLog(db.Model):
    """Append-only trail of authentication and content events."""
    
    __tablename__ = 'audit_logs'
    
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)  # Null for unknown-user failures
    action = db.Column(db.String(50), nullable=False)
    item_id = db.Column(db.Integer, db.ForeignKey('content_items.id'), nullable=True)
    details = db.Column(db.Text)
    ip_address = db.Column(db.String(45))  # IPv6 compatible
    status = db.Column(db.String(20), default='success')  # 'success' or 'failure'
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    
    ACTION_LOGIN = 'login'
    ACTION_LOGIN_FAILED = 'login_failed'
    ACTION_LOGOUT = 'logout'
    ACTION_SIGNUP = 'signup'
    ACTION_UPLOAD = 'upload'
    ACTION_UPLOAD_REJECTED = 'upload_rejected'
    ACTION_DOWNLOAD = 'download'
    
    def __repr__(self):
        return f'<AuditLog {self.action} by User {self.user_id}>'
    
    @classmethod
    def log(cls, action, user_id=None, item_id=None, details=None,
            ip_address=None, status='success'):
        """Create and commit a new audit entry."""
        entry = cls(
            user_id=user_id,
            action=action,
            item_id=item_id,
            details=details,
            ip_address=ip_address,
            status=status
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    
    def to_dict(self):
        return {
            'id': self.id,
            'action': self.action,
            'itemId': self.item_id,
            'details': self.details,
            'ipAddress': self.ip_address,
            'status': self.status,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }
