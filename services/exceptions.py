"""
Domain errors raised by the accommodation services
Routes translate them to JSON responses
"""


class AccommodationError(Exception):
    """Base class for errors the API reports to the caller"""
    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'message': self.message}


class NotFound(AccommodationError):
    status_code = 404


class ValidationError(AccommodationError):
    """Malformed input: bad field, bad date ordering, missing headers"""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or [message]

    def to_dict(self):
        return {'message': self.message, 'errors': self.errors}


class DateConflict(AccommodationError):
    """Date range overlaps other instances of the same hotel"""

    def __init__(self, conflicts):
        self.conflicts = [
            {
                'id': h.id,
                'instanceCode': h.instance_code,
                'startDate': h.start_date.isoformat(),
                'endDate': h.end_date.isoformat(),
            }
            for h in conflicts
        ]
        details = ', '.join(
            f"Instance {c['instanceCode']} ({c['startDate']} - {c['endDate']})"
            for c in self.conflicts
        )
        super().__init__(
            f'Date range conflicts with existing hotel instances: {details}. '
            'Please choose non-overlapping dates.'
        )

    def to_dict(self):
        return {'message': self.message, 'conflicts': self.conflicts}


class AuthenticationFailed(AccommodationError):
    status_code = 401


class TooManyRequests(AccommodationError):
    status_code = 429


class ServiceUnavailable(AccommodationError):
    status_code = 503


class DuplicateInstance(AccommodationError):
    status_code = 409

    def __init__(self, hotel_id, instance_code):
        super().__init__(f'Hotel {hotel_id} with instance {instance_code} already exists')
        self.hotel_id = hotel_id
        self.instance_code = instance_code
