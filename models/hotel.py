from . import db
from datetime import datetime
from enum import Enum
from utils.timezone import get_ist_today


class FieldScope(Enum):
    PROPERTY_WIDE = 'property_wide'
    INSTANCE_SPECIFIC = 'instance_specific'


# Which fields follow the physical property and which follow one booking window.
# hotel_name stays instance-specific to match the existing data contract.
FIELD_SCOPES = {
    'address': FieldScope.PROPERTY_WIDE,
    'location': FieldScope.PROPERTY_WIDE,
    'pincode': FieldScope.PROPERTY_WIDE,
    'district': FieldScope.PROPERTY_WIDE,
    'hotel_name': FieldScope.INSTANCE_SPECIFIC,
    'start_date': FieldScope.INSTANCE_SPECIFIC,
    'end_date': FieldScope.INSTANCE_SPECIFIC,
    'total_rooms': FieldScope.INSTANCE_SPECIFIC,
    'occupied_rooms': FieldScope.INSTANCE_SPECIFIC,
    'available_rooms': FieldScope.INSTANCE_SPECIFIC,
}

HOTEL_STATUS = {
    'upcoming': 'Upcoming',
    'active': 'Active',
    'expired': 'Expired'
}


def calculate_hotel_status(start_date, end_date, today=None):
    """
    Derive the booking-window status of a hotel instance.

    Comparison is on calendar dates only, so an instance is active on both
    its start and end day.
    """
    if today is None:
        today = get_ist_today()
    if isinstance(today, datetime):
        today = today.date()
    if isinstance(start_date, datetime):
        start_date = start_date.date()
    if isinstance(end_date, datetime):
        end_date = end_date.date()

    if today < start_date:
        return 'upcoming'
    if today > end_date:
        return 'expired'
    return 'active'


class HotelInstance(db.Model):
    """
    One bookable time window of a physical hotel.

    hotel_id groups the instances of the same property (CHN001, MDU005, ...);
    instance_code tells the windows apart.
    """
    __tablename__ = 'hotels'

    id = db.Column(db.Integer, primary_key=True)
    hotel_id = db.Column(db.String(40), nullable=False, index=True)
    instance_code = db.Column(db.String(20), nullable=False)
    hotel_name = db.Column(db.String(200), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    district = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(500), nullable=False)
    pincode = db.Column(db.String(20), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    total_rooms = db.Column(db.Integer, nullable=False)
    occupied_rooms = db.Column(db.Integer, default=0)
    available_rooms = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('hotel_id', 'instance_code', name='uq_hotel_instance'),
    )

    @property
    def status(self):
        return calculate_hotel_status(self.start_date, self.end_date)

    def property_wide_values(self):
        return {
            field: getattr(self, field)
            for field, scope in FIELD_SCOPES.items()
            if scope is FieldScope.PROPERTY_WIDE
        }

    def to_dict(self, include_status=True):
        data = {
            'id': self.id,
            'hotelId': self.hotel_id,
            'instanceCode': self.instance_code,
            'hotelName': self.hotel_name,
            'location': self.location,
            'district': self.district,
            'address': self.address,
            'pincode': self.pincode,
            'startDate': self.start_date.isoformat() if self.start_date else None,
            'endDate': self.end_date.isoformat() if self.end_date else None,
            'totalRooms': self.total_rooms,
            'occupiedRooms': self.occupied_rooms,
            'availableRooms': self.available_rooms,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_status:
            data['status'] = self.status
        return data

    def __repr__(self):
        return f'<HotelInstance {self.hotel_id}#{self.instance_code}: {self.start_date}..{self.end_date}>'
