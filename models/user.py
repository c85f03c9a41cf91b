from . import db
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from datetime import datetime, timezone

# admin: event operations staff (email + password + SMS OTP)
# coach: team coach (mobile number + SMS OTP)
USER_ROLES = {
    'admin': 'Administrator',
    'coach': 'Coach'
}

class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=True)  # admins
    password_hash = db.Column(db.String(256), nullable=True)  # admins
    mobile_number = db.Column(db.String(20), unique=True, nullable=True)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(20), nullable=False)
    coach_id = db.Column(db.String(40), unique=True, nullable=True)  # COA_001 etc.
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
    last_login = db.Column(db.DateTime, nullable=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    # Role checking methods
    def is_admin(self):
        return self.role == 'admin'

    def is_coach(self):
        return self.role == 'coach'

    @property
    def role_label(self):
        return USER_ROLES.get(self.role, self.role)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role,
            'coachId': self.coach_id,
        }

    def __repr__(self):
        return f'<User {self.email or self.mobile_number} ({self.role})>'
