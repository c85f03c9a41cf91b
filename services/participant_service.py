#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Participant Booking Store
Lookup, listing and admin edits of coach/official/player bookings
"""

import logging
from sqlalchemy import or_
from models import db, AuditLog, Participant, PARTICIPANT_ROLES, CHECKIN_STATUS, BOOKING_TYPES
from services.exceptions import NotFound, ValidationError
from utils.dates import parse_date

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500

# camelCase request key -> column, for admin edits
EDITABLE_FIELDS = {
    'name': 'name',
    'mobileNumber': 'mobile_number',
    'discipline': 'discipline',
    'district': 'district',
    'teamName': 'team_name',
    'coachId': 'coach_id',
    'hotelId': 'hotel_id',
    'hotelName': 'hotel_name',
    'stadium': 'stadium',
    'bookingStartDate': 'booking_start_date',
    'bookingEndDate': 'booking_end_date',
    'bookingReference': 'booking_reference',
    'bookingType': 'booking_type',
    'transportPoc': 'transport_poc',
    'checkinStatus': 'checkin_status',
    'actualCheckoutDate': 'actual_checkout_date',
}

DATE_COLUMNS = {'booking_start_date', 'booking_end_date', 'actual_checkout_date'}
NULLABLE_COLUMNS = {'mobile_number', 'district', 'team_name', 'coach_id', 'stadium',
                    'transport_poc', 'actual_checkout_date'}


class ParticipantStore:
    """Participant persistence. create() leaves the commit to the caller."""

    def get_by_id(self, participant_pk):
        return db.session.get(Participant, participant_pk)

    def get_by_participant_id(self, participant_id):
        return Participant.query.filter_by(participant_id=participant_id).first()

    def list_by_coach(self, coach_id):
        """The coach's own record plus every player assigned to them"""
        return Participant.query.filter(or_(
            Participant.coach_id == coach_id,
            Participant.participant_id == coach_id
        )).order_by(Participant.role.asc(), Participant.name.asc()).all()

    def list(self, filters=None):
        """
        Filtered, paginated participant listing

        Args:
            filters: dict with optional search, discipline, role,
                checkin_status, hotel_id, district, sort_order, page, limit

        Returns:
            dict with participants, total, page, pages
        """
        filters = filters or {}
        role = filters.get('role')
        if role and role != 'all' and role not in PARTICIPANT_ROLES:
            raise ValidationError('Validation error', [f'Invalid role: {role}'])
        query = Participant.query

        search = (filters.get('search') or '').strip()
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(
                Participant.name.ilike(pattern),
                Participant.participant_id.ilike(pattern),
                Participant.mobile_number.ilike(pattern),
            ))

        for key in ('discipline', 'role', 'checkin_status', 'hotel_id', 'district'):
            value = filters.get(key)
            if value and value != 'all':
                query = query.filter(getattr(Participant, key) == value)

        if filters.get('sort_order') == 'desc':
            query = query.order_by(Participant.name.desc())
        else:
            query = query.order_by(Participant.name.asc())

        page = max(int(filters.get('page') or 1), 1)
        limit = min(max(int(filters.get('limit') or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
        pagination = query.paginate(page=page, per_page=limit, error_out=False)

        return {
            'participants': pagination.items,
            'total': pagination.total,
            'page': page,
            'pages': pagination.pages,
        }

    def create(self, fields):
        participant = Participant(**fields)
        db.session.add(participant)
        db.session.flush()
        return participant

    def update(self, participant_pk, data, user):
        """
        Admin edit of one participant

        Returns:
            The updated Participant

        Raises:
            NotFound, ValidationError
        """
        participant = self.get_by_id(participant_pk)
        if not participant:
            raise NotFound('Participant not found')

        fields = self._clean_edit(data)

        start = fields.get('booking_start_date', participant.booking_start_date)
        end = fields.get('booking_end_date', participant.booking_end_date)
        actual = fields.get('actual_checkout_date', participant.actual_checkout_date)
        if end <= start:
            raise ValidationError('Validation error', ['Booking end date must be after start date'])
        if actual and actual > end:
            raise ValidationError(
                'Validation error',
                ['Actual checkout date cannot be after the booking end date']
            )

        changes = {}
        for field, value in fields.items():
            old = getattr(participant, field)
            if old != value:
                changes[field] = {'from': old, 'to': value}
                setattr(participant, field, value)

        if not changes:
            return participant

        try:
            AuditLog.log(
                user=user,
                action_type=AuditLog.ACTION_EDIT,
                target_entity=AuditLog.ENTITY_PARTICIPANT,
                target_id=participant.participant_id,
                details={'changes': changes}
            )
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f'Updating participant {participant_pk} failed: {e}')
            raise

        logger.info(f'Participant {participant.participant_id} edited: {list(changes)}')
        return participant

    def delete(self, participant_pk, user):
        participant = self.get_by_id(participant_pk)
        if not participant:
            raise NotFound('Participant not found')

        snapshot = participant.to_dict()
        try:
            db.session.delete(participant)
            AuditLog.log(
                user=user,
                action_type=AuditLog.ACTION_DELETE,
                target_entity=AuditLog.ENTITY_PARTICIPANT,
                target_id=snapshot['participantId'],
                details={'participant': snapshot}
            )
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f'Deleting participant {participant_pk} failed: {e}')
            raise

        logger.info(f"Participant {snapshot['participantId']} deleted")
        return snapshot

    @staticmethod
    def _clean_edit(data):
        if not isinstance(data, dict):
            raise ValidationError('Request body must be an object')

        errors = []
        fields = {}
        for key, value in data.items():
            column = EDITABLE_FIELDS.get(key)
            if column is None:
                errors.append(f'{key} cannot be edited')
                continue

            if value is None or (isinstance(value, str) and not value.strip()):
                if column in NULLABLE_COLUMNS:
                    fields[column] = None
                else:
                    errors.append(f'{key} is required')
                continue

            if column in DATE_COLUMNS:
                try:
                    fields[column] = parse_date(value)
                except ValueError as e:
                    errors.append(f'{key}: {e}')
            else:
                fields[column] = str(value).strip()

        if fields.get('checkin_status') and fields['checkin_status'] not in CHECKIN_STATUS:
            errors.append(f"Invalid check-in status: {fields['checkin_status']}")
        if fields.get('booking_type') and fields['booking_type'] not in BOOKING_TYPES:
            errors.append(f"Invalid booking type: {fields['booking_type']}")

        if errors:
            raise ValidationError('Validation error', errors)
        return fields
