#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Hotel Inventory Store
Persistence of hotel instances keyed by (hotel_id, instance_code)
"""

import re
from sqlalchemy import or_
from models import db, HotelInstance, HOTEL_STATUS, calculate_hotel_status
from services.exceptions import DuplicateInstance, ValidationError

SORTABLE_FIELDS = {
    'hotel_id': HotelInstance.hotel_id,
    'hotel_name': HotelInstance.hotel_name,
    'district': HotelInstance.district,
    'start_date': HotelInstance.start_date,
    'end_date': HotelInstance.end_date,
    'total_rooms': HotelInstance.total_rooms,
    'available_rooms': HotelInstance.available_rooms,
}


class HotelInventoryStore:
    """Query and write hotel instances. Callers own the commit."""

    def get(self, hotel_id, instance_code):
        return HotelInstance.query.filter_by(
            hotel_id=hotel_id,
            instance_code=instance_code
        ).first()

    def get_by_id(self, instance_id):
        return db.session.get(HotelInstance, instance_id)

    def instances_of(self, hotel_id, lock=False):
        """
        All instances of one physical hotel

        Args:
            hotel_id: Grouping key
            lock: If True, SELECT ... FOR UPDATE so concurrent edits of the
                same hotel serialize until the caller commits. Locked rows are
                reloaded, replacing anything read earlier in the session
        """
        query = HotelInstance.query.filter_by(hotel_id=hotel_id)
        if lock:
            query = query.with_for_update().populate_existing()
        return query.order_by(HotelInstance.start_date.asc()).all()

    def hotel_exists(self, hotel_id):
        return db.session.query(
            HotelInstance.query.filter_by(hotel_id=hotel_id).exists()
        ).scalar()

    def list(self, filters=None):
        """
        List hotel instances

        Args:
            filters: dict with optional hotel_id, district, search, status,
                sort_by and sort_order

        Returns:
            List of HotelInstance objects
        """
        filters = filters or {}
        query = HotelInstance.query

        if filters.get('hotel_id'):
            query = query.filter(HotelInstance.hotel_id == filters['hotel_id'])

        if filters.get('district'):
            query = query.filter(HotelInstance.district == filters['district'])

        search = filters.get('search')
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(
                HotelInstance.hotel_id.ilike(pattern),
                HotelInstance.hotel_name.ilike(pattern),
                HotelInstance.location.ilike(pattern),
                HotelInstance.district.ilike(pattern),
            ))

        sort_column = SORTABLE_FIELDS.get(filters.get('sort_by'))
        if sort_column is not None:
            if filters.get('sort_order') == 'desc':
                query = query.order_by(sort_column.desc(), HotelInstance.id.asc())
            else:
                query = query.order_by(sort_column.asc(), HotelInstance.id.asc())
        else:
            query = query.order_by(HotelInstance.hotel_id.asc(), HotelInstance.instance_code.asc())

        hotels = query.all()

        # Status is derived from "today", so it is filtered in Python
        status = filters.get('status')
        if status and status != 'all':
            if status not in HOTEL_STATUS:
                raise ValidationError('Validation error', [f'Invalid status: {status}'])
            hotels = [h for h in hotels if calculate_hotel_status(h.start_date, h.end_date) == status]

        return hotels

    def create(self, fields):
        """
        Add a new instance

        Raises:
            DuplicateInstance if (hotel_id, instance_code) already exists
        """
        if self.get(fields['hotel_id'], fields['instance_code']):
            raise DuplicateInstance(fields['hotel_id'], fields['instance_code'])

        instance = HotelInstance(**fields)
        if instance.occupied_rooms is None:
            instance.occupied_rooms = 0
        db.session.add(instance)
        db.session.flush()
        return instance

    def update_fields(self, instance_id, fields):
        """Apply fields to one instance; returns None if the id is unknown"""
        instance = self.get_by_id(instance_id)
        if not instance:
            return None

        for field, value in fields.items():
            setattr(instance, field, value)
        db.session.flush()
        return instance

    def update_all_instances_of_hotel(self, hotel_id, fields):
        """Apply property-wide fields to every instance of hotel_id"""
        instances = self.instances_of(hotel_id)
        for instance in instances:
            for field, value in fields.items():
                setattr(instance, field, value)
        db.session.flush()
        return instances

    def next_instance_code(self, hotel_id):
        """Suggest the next numeric instance code for a hotel"""
        codes = [h.instance_code for h in self.instances_of(hotel_id)]
        numbers = [int(c) for c in codes if re.fullmatch(r'\d+', c or '')]
        return str(max(numbers) + 1) if numbers else str(len(codes) + 1)
