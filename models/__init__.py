from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .user import User, USER_ROLES
from .hotel import HotelInstance, FieldScope, FIELD_SCOPES, HOTEL_STATUS, calculate_hotel_status
from .participant import Participant, PARTICIPANT_ROLES, CHECKIN_STATUS, BOOKING_TYPES
from .audit_log import AuditLog
