from . import db
import json
from datetime import datetime

class AuditLog(db.Model):
    """
    Audit Log Model - Append-only record of every mutating operation
    Used by admin to track uploads, hotel edits and check-in activity
    """
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)

    # Who performed the action (None for system jobs)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)

    # What action was performed
    action_type = db.Column(db.String(50), nullable=False, index=True)

    # On what resource
    target_entity = db.Column(db.String(50), nullable=False)
    target_id = db.Column(db.String(100), nullable=True)

    # Structured payload (field-level before/after, counts, ...)
    details = db.Column(db.JSON, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship('User', backref=db.backref('audit_logs', lazy='dynamic'))

    # Action types constants
    ACTION_UPLOAD = 'upload'
    ACTION_CREATE = 'create'
    ACTION_EDIT = 'edit'
    ACTION_DELETE = 'delete'
    ACTION_LOGIN = 'login'
    ACTION_CHECKIN = 'checkin'
    ACTION_CHECKOUT = 'checkout'
    ACTION_EARLY_CHECKOUT = 'early_checkout'

    # Target entity constants
    ENTITY_HOTEL = 'hotel'
    ENTITY_PARTICIPANT = 'participant'
    ENTITY_USER = 'user'

    @classmethod
    def log(cls, user, action_type, target_entity, target_id=None, details=None):
        """
        Create a new audit log entry

        Args:
            user: Acting user object (or None for system)
            action_type: Action type (upload, edit, checkin, ...)
            target_entity: Type of resource (hotel, participant, user)
            target_id: Identifier of the affected resource
            details: JSON-serializable dict
        """
        log_entry = cls(
            user_id=user.id if user else None,
            action_type=action_type,
            target_entity=target_entity,
            target_id=str(target_id) if target_id is not None else None,
            details=json.loads(json.dumps(details, default=str)) if details is not None else None
        )

        db.session.add(log_entry)
        # Note: Commit should be done by the calling code

        return log_entry

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'actionType': self.action_type,
            'targetEntity': self.target_entity,
            'targetId': self.target_id,
            'details': self.details,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f'<AuditLog {self.action_type} {self.target_entity} by {self.user_id}>'
