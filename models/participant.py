from . import db
from datetime import datetime

PARTICIPANT_ROLES = {
    'coach': 'Coach',
    'official': 'Official',
    'player': 'Player'
}

# pending -> checked_in -> checked_out
CHECKIN_STATUS = {
    'pending': 'Pending',
    'checked_in': 'Checked in',
    'checked_out': 'Checked out'
}

BOOKING_TYPES = {
    'regular': 'Regular',
    'pre_event': 'Pre-event',
    'post_event': 'Post-event'
}


class Participant(db.Model):
    __tablename__ = 'participants'

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.String(40), unique=True, nullable=False, index=True)  # COA_001, OFC_001, PLA_001
    name = db.Column(db.String(200), nullable=False)
    mobile_number = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(20), nullable=False, index=True)
    discipline = db.Column(db.String(100), nullable=False)
    district = db.Column(db.String(100), nullable=True)
    team_name = db.Column(db.String(200), nullable=True)
    coach_id = db.Column(db.String(40), nullable=True, index=True)  # players: owning coach's participant_id

    # Denormalized booking
    hotel_id = db.Column(db.String(40), nullable=False, index=True)
    hotel_name = db.Column(db.String(200), nullable=False)
    stadium = db.Column(db.String(200), nullable=True)
    booking_start_date = db.Column(db.Date, nullable=False)
    booking_end_date = db.Column(db.Date, nullable=False)
    booking_reference = db.Column(db.String(100), nullable=False)
    booking_type = db.Column(db.String(20), default='regular')
    transport_poc = db.Column(db.String(100), nullable=True)  # coaches and officials

    checkin_status = db.Column(db.String(20), default='pending', nullable=False, index=True)
    checkin_time = db.Column(db.DateTime, nullable=True)
    checkout_time = db.Column(db.DateTime, nullable=True)
    actual_checkout_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_owned_by(self, coach_id):
        """A coach may act on their own players and on their own record"""
        return self.coach_id == coach_id or self.participant_id == coach_id

    def to_dict(self):
        return {
            'id': self.id,
            'participantId': self.participant_id,
            'name': self.name,
            'mobileNumber': self.mobile_number,
            'role': self.role,
            'discipline': self.discipline,
            'district': self.district,
            'teamName': self.team_name,
            'coachId': self.coach_id,
            'hotelId': self.hotel_id,
            'hotelName': self.hotel_name,
            'stadium': self.stadium,
            'bookingStartDate': self.booking_start_date.isoformat() if self.booking_start_date else None,
            'bookingEndDate': self.booking_end_date.isoformat() if self.booking_end_date else None,
            'bookingReference': self.booking_reference,
            'bookingType': self.booking_type,
            'transportPoc': self.transport_poc,
            'checkinStatus': self.checkin_status,
            'checkinTime': self.checkin_time.isoformat() if self.checkin_time else None,
            'checkoutTime': self.checkout_time.isoformat() if self.checkout_time else None,
            'actualCheckoutDate': self.actual_checkout_date.isoformat() if self.actual_checkout_date else None,
        }

    def __repr__(self):
        return f'<Participant {self.participant_id} ({self.role}, {self.checkin_status})>'
