#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Hotel Update Reconciler
Applies edits to a hotel instance, spreading property-wide fields to every
instance of the same hotel and rejecting booking windows that overlap
another instance.
"""

import logging
from models import db, AuditLog, FieldScope, FIELD_SCOPES
from services.date_conflict_service import find_overlaps
from services.exceptions import AccommodationError, DateConflict, NotFound, ValidationError
from services.hotel_inventory_service import HotelInventoryStore
from utils.dates import parse_date

logger = logging.getLogger(__name__)

# Incoming JSON uses camelCase; snake_case is accepted too
PATCH_FIELD_NAMES = {
    'hotelName': 'hotel_name',
    'location': 'location',
    'district': 'district',
    'address': 'address',
    'pincode': 'pincode',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'totalRooms': 'total_rooms',
    'occupiedRooms': 'occupied_rooms',
    'availableRooms': 'available_rooms',
}

IMMUTABLE_FIELDS = {'id', 'hotelId', 'hotel_id', 'instanceCode', 'instance_code', 'createdAt', 'created_at'}

TEXT_FIELDS = ('hotel_name', 'location', 'district', 'address', 'pincode')
DATE_FIELDS = ('start_date', 'end_date')
ROOM_FIELDS = ('total_rooms', 'occupied_rooms', 'available_rooms')


def _coerce_field(field, value):
    """Convert one incoming value to its column type, raising ValueError"""
    if field in DATE_FIELDS:
        return parse_date(value)

    if field in ROOM_FIELDS:
        if isinstance(value, bool):
            raise ValueError(f'{field} must be a whole number')
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValueError(f'{field} must be a whole number')
        if number < 0:
            raise ValueError(f'{field} cannot be negative')
        return number

    if value is None or not str(value).strip():
        raise ValueError(f'{field} is required')
    return str(value).strip()


def validate_hotel_patch(patch):
    """
    Validate an incoming hotel update

    Args:
        patch: mapping of field name -> new value

    Returns:
        dict of snake_case field -> typed value

    Raises:
        ValidationError listing every problem found
    """
    if not isinstance(patch, dict):
        raise ValidationError('Request body must be an object')

    errors = []
    clean = {}

    for key, value in patch.items():
        if key in IMMUTABLE_FIELDS:
            errors.append(f'{key} cannot be changed')
            continue

        field = PATCH_FIELD_NAMES.get(key, key if key in FIELD_SCOPES else None)
        if field is None:
            errors.append(f'Unknown field: {key}')
            continue

        try:
            clean[field] = _coerce_field(field, value)
        except ValueError as e:
            errors.append(str(e))

    if 'start_date' in clean and 'end_date' in clean and clean['end_date'] <= clean['start_date']:
        errors.append('End date must be after start date')

    if errors:
        raise ValidationError('Validation error', errors)

    return clean


class HotelUpdateResult:
    """Outcome of a reconciled hotel edit"""

    def __init__(self, hotel, changed_fields=None, property_wide_updated=None,
                 affected_instances=0, no_changes=False):
        self.hotel = hotel
        self.changed_fields = changed_fields or []
        self.property_wide_updated = property_wide_updated or []
        self.affected_instances = affected_instances
        self.no_changes = no_changes

    @property
    def message(self):
        if self.no_changes:
            return 'No changes detected'
        if self.affected_instances > 1:
            return f'Hotel updated successfully ({self.affected_instances} instances affected)'
        return 'Hotel updated successfully'

    def to_dict(self):
        data = {
            'message': self.message,
            'hotel': self.hotel.to_dict(),
            'changes': self.changed_fields,
            'affectedInstances': self.affected_instances,
        }
        if self.property_wide_updated:
            data['updatedInstances'] = [h.to_dict() for h in self.property_wide_updated]
        return data


class HotelUpdateReconciler:
    """Classifies and applies hotel edits"""

    def __init__(self, store=None, field_scopes=None):
        self.store = store or HotelInventoryStore()
        self.field_scopes = field_scopes or FIELD_SCOPES

    def apply_patch(self, instance_id, patch, user):
        """
        Apply a patch to one hotel instance

        The whole operation runs in one transaction holding row locks on
        every instance of the hotel, so the overlap check and the write
        cannot interleave with another edit of the same hotel.

        Args:
            instance_id: HotelInstance primary key
            patch: field -> new value (see validate_hotel_patch)
            user: acting user, recorded in the audit log

        Returns:
            HotelUpdateResult

        Raises:
            ValidationError, NotFound, DateConflict (nothing is written)
        """
        clean = validate_hotel_patch(patch)

        try:
            target = self.store.get_by_id(instance_id)
            if not target:
                raise NotFound('Hotel not found')

            # Checks below use the locked rows, not the unlocked lookup
            locked = self.store.instances_of(target.hotel_id, lock=True)
            original = next((h for h in locked if h.id == instance_id), None)
            if not original:
                raise NotFound('Hotel not found')

            new_start = clean.get('start_date', original.start_date)
            new_end = clean.get('end_date', original.end_date)
            if new_end <= new_start:
                raise ValidationError('Validation error', ['End date must be after start date'])

            changes = {
                field: {'from': getattr(original, field), 'to': value}
                for field, value in clean.items()
                if getattr(original, field) != value
            }

            if not changes:
                db.session.rollback()
                return HotelUpdateResult(original, no_changes=True)

            if 'start_date' in changes or 'end_date' in changes:
                conflicts = find_overlaps(
                    original.hotel_id,
                    new_start,
                    new_end,
                    exclude_instance_code=original.instance_code
                )
                if conflicts:
                    raise DateConflict(conflicts)

            property_wide = {}
            instance_specific = {}
            for field, change in changes.items():
                if self.field_scopes.get(field) is FieldScope.PROPERTY_WIDE:
                    property_wide[field] = change
                else:
                    instance_specific[field] = change

            hotel_id = original.hotel_id
            instance_code = original.instance_code
            updated_hotels = []

            if property_wide:
                updated_hotels = self.store.update_all_instances_of_hotel(
                    hotel_id,
                    {field: change['to'] for field, change in property_wide.items()}
                )
                AuditLog.log(
                    user=user,
                    action_type=AuditLog.ACTION_EDIT,
                    target_entity=AuditLog.ENTITY_HOTEL,
                    target_id=hotel_id,
                    details={
                        'hotelId': hotel_id,
                        'action': 'property_wide_update',
                        'affectedInstances': len(updated_hotels),
                        'changes': property_wide,
                        'changedFields': list(property_wide),
                    }
                )

            updated_hotel = original
            if instance_specific:
                updated_hotel = self.store.update_fields(
                    original.id,
                    {field: change['to'] for field, change in instance_specific.items()}
                )
                AuditLog.log(
                    user=user,
                    action_type=AuditLog.ACTION_EDIT,
                    target_entity=AuditLog.ENTITY_HOTEL,
                    target_id=original.id,
                    details={
                        'hotelId': hotel_id,
                        'instanceCode': instance_code,
                        'action': 'instance_specific_update',
                        'changes': instance_specific,
                        'changedFields': list(instance_specific),
                    }
                )

            db.session.commit()

        except AccommodationError:
            db.session.rollback()
            raise
        except Exception as e:
            db.session.rollback()
            logger.error(f'Hotel update failed for instance {instance_id}: {e}')
            raise

        affected = len(updated_hotels) if property_wide else 1
        logger.info(
            f'Hotel {hotel_id}#{instance_code} updated: {list(changes)} '
            f'({affected} instance(s) affected)'
        )

        return HotelUpdateResult(
            updated_hotel,
            changed_fields=list(changes),
            property_wide_updated=updated_hotels,
            affected_instances=affected
        )


NEW_HOTEL_REQUIRED = ('hotel_id', 'start_date', 'end_date', 'total_rooms')


def create_hotel_instance(data, user, store=None):
    """
    Explicitly add a hotel instance

    Property-wide fields left out are copied from existing instances of the
    same hotel. Supplied values that differ from them are rejected. The instance code defaults
    to the next free number.

    Returns:
        The created HotelInstance

    Raises:
        ValidationError, DateConflict, DuplicateInstance
    """
    store = store or HotelInventoryStore()
    data = dict(data or {})

    hotel_id = str(data.pop('hotelId', data.pop('hotel_id', '')) or '').strip()
    instance_code = str(data.pop('instanceCode', data.pop('instance_code', '')) or '').strip()

    # Contact fields from the add-hotel form are not stored on the instance
    data.pop('pointOfContact', None)
    data.pop('contactPhoneNumber', None)

    if not hotel_id:
        raise ValidationError('Validation error', ['hotelId is required'])

    clean = validate_hotel_patch(data)

    try:
        siblings = store.instances_of(hotel_id, lock=True)

        if siblings:
            mismatched = []
            for field, value in siblings[0].property_wide_values().items():
                if field not in clean:
                    clean[field] = value
                elif clean[field] != value:
                    mismatched.append(f'{field} must match existing instances of {hotel_id} ({value})')
            if mismatched:
                raise ValidationError('Validation error', mismatched)

        clean.setdefault('occupied_rooms', 0)
        if 'total_rooms' in clean:
            clean.setdefault('available_rooms', max(clean['total_rooms'] - clean['occupied_rooms'], 0))

        missing = [f for f in NEW_HOTEL_REQUIRED[1:] + TEXT_FIELDS if f not in clean]
        if missing:
            raise ValidationError('Validation error', [f'{f} is required' for f in missing])

        if clean['end_date'] <= clean['start_date']:
            raise ValidationError('Validation error', ['End date must be after start date'])

        if not instance_code:
            instance_code = store.next_instance_code(hotel_id)

        conflicts = find_overlaps(hotel_id, clean['start_date'], clean['end_date'])
        if conflicts:
            raise DateConflict(conflicts)

        instance = store.create(dict(clean, hotel_id=hotel_id, instance_code=instance_code))

        AuditLog.log(
            user=user,
            action_type=AuditLog.ACTION_CREATE,
            target_entity=AuditLog.ENTITY_HOTEL,
            target_id=instance.id,
            details={'hotelId': hotel_id, 'instanceCode': instance_code, 'values': clean}
        )
        db.session.commit()

    except AccommodationError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        logger.error(f'Creating hotel {hotel_id} failed: {e}')
        raise

    logger.info(f'Hotel instance {hotel_id}#{instance_code} created')
    return instance
