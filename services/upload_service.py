#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Bulk Upload Service
Import hotel inventory, coach/official and player sheets.

Sheets are pipe-separated text with a header row. Every data row is
validated and written on its own savepoint, so one bad row never leaves
partial data behind and never blocks the rows after it.
"""

import logging
import pandas as pd
from models import db, User
from services.date_conflict_service import find_overlaps
from services.hotel_inventory_service import HotelInventoryStore
from services.participant_service import ParticipantStore
from services.exceptions import DuplicateInstance
from utils.dates import parse_date, meets_minimum_stay, MINIMUM_STAY_DAYS

logger = logging.getLogger(__name__)

HOTEL_HEADERS = [
    'HotelID', 'InstanceCode', 'HotelName', 'Location', 'District',
    'Address', 'Pincode', 'StartDate', 'EndDate', 'TotalRooms',
    'OccupiedRooms', 'AvailableRooms'
]

COACH_OFFICIAL_HEADERS = [
    'ROLE', 'COACH_id', 'Name', 'Mobile_Number', 'Discipline',
    'Hotel_ID', 'Hotel_Name', 'Stadium', 'Booking_Start_Date',
    'Booking_End_Date', 'Booking_Reference_Number', 'Transport POC'
]

PLAYER_HEADERS = [
    'COACH_ID', 'PlayerID', 'Player_Name', 'Mobilenumber',
    'Discipline', 'District', 'Team_Name', 'Location',
    'HOTEL_id', 'BOOKING_REFERENCE', 'Booking_Start_Date', 'Booking_End_Date'
]


class UploadResult:
    def __init__(self):
        self.success = True
        self.created = 0
        self.errors = []
        self.warnings = []

    def to_dict(self):
        return {
            'success': self.success,
            'created': self.created,
            'errors': self.errors,
            'warnings': self.warnings,
        }


class RowRejected(Exception):
    """Row is invalid; reported as an error"""


class RowSkipped(Exception):
    """Row duplicates existing data; reported as a warning"""


def parse_psv(content):
    """
    Split pipe-separated text into headers and a DataFrame of data rows

    The DataFrame index is the 1-based line number in the sheet. A row
    with a different number of cells than the header holds NaN (too few)
    or extra columns (too many).
    """
    if content is None or not content.strip():
        raise ValueError('File is empty')

    lines = pd.Series(content.strip().splitlines())
    table = lines.str.split('|', expand=True)
    table = table.apply(lambda column: column.str.strip())
    table.index = table.index + 1

    headers = table.iloc[0].dropna().tolist()
    rows = table.iloc[1:]
    rows = rows[lines.iloc[1:].str.strip().values != '']
    return headers, rows


def _text(record, key):
    value = record.get(key)
    if value is None or pd.isna(value):
        return ''
    return str(value).strip()


def _require(record, *keys):
    missing = [key for key in keys if not _text(record, key)]
    if missing:
        raise RowRejected(f"Missing {', '.join(missing)}")


def _date(record, key):
    try:
        return parse_date(_text(record, key))
    except ValueError:
        raise RowRejected(f"Invalid {key} '{_text(record, key)}'")


def _rooms(record, key, default=None):
    text = _text(record, key)
    if not text:
        if default is None:
            raise RowRejected(f'Missing {key}')
        return default
    try:
        number = float(text)
    except ValueError:
        raise RowRejected(f"{key} must be a whole number, got '{text}'")
    if not number.is_integer() or number < 0:
        raise RowRejected(f"{key} must be a whole number, got '{text}'")
    return int(number)


def _booking_window(record, start_key, end_key):
    start_date = _date(record, start_key)
    end_date = _date(record, end_key)
    if not meets_minimum_stay(start_date, end_date):
        raise RowRejected(f'Booking duration must be at least {MINIMUM_STAY_DAYS} days')
    return start_date, end_date


class BulkUploader:
    """Shared sheet walk: header check, per-row savepoint, result tally"""

    expected_headers = []
    sheet_name = 'sheet'

    def __init__(self, hotel_store=None, participant_store=None):
        self.hotel_store = hotel_store or HotelInventoryStore()
        self.participant_store = participant_store or ParticipantStore()
        self.result = UploadResult()

    def upload(self, content):
        result = self.result
        try:
            headers, rows = parse_psv(content)
        except Exception as e:
            result.errors.append(f'Parse error: {e}')
            result.success = False
            return result

        missing = [h for h in self.expected_headers if h not in headers]
        if missing:
            result.errors.append(f"Missing headers: {', '.join(missing)}")
            result.success = False
            return result

        for row_number, row in rows.iterrows():
            if row.notna().sum() != len(headers):
                result.errors.append(f'Row {row_number}: Invalid column count')
                continue

            record = dict(zip(headers, row.iloc[:len(headers)]))
            self._run_row(row_number, record)

        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f'{self.sheet_name} upload commit failed: {e}')
            result.errors.append(f'Commit failed: {e}')
            result.success = False
            result.created = 0
            return result

        logger.info(
            f'{self.sheet_name} upload: {result.created} created, '
            f'{len(result.errors)} errors, {len(result.warnings)} warnings'
        )
        return result

    def _run_row(self, row_number, record):
        nested = db.session.begin_nested()
        try:
            self.process_row(record)
            nested.commit()
            self.result.created += 1
        except RowSkipped as w:
            nested.rollback()
            self.result.warnings.append(f'Row {row_number}: {w}')
        except RowRejected as e:
            nested.rollback()
            self.result.errors.append(f'Row {row_number}: {e}')
        except Exception as e:
            nested.rollback()
            logger.warning(f'{self.sheet_name} row {row_number} failed: {e}')
            self.result.errors.append(f'Row {row_number}: {e}')

    def process_row(self, record):
        raise NotImplementedError

    def _hotel_name(self, hotel_id):
        instances = self.hotel_store.instances_of(hotel_id)
        return instances[0].hotel_name if instances else hotel_id


class HotelInventoryUploader(BulkUploader):
    expected_headers = HOTEL_HEADERS
    sheet_name = 'Hotel inventory'

    def process_row(self, record):
        hotel_id = _text(record, 'HotelID')
        instance_code = _text(record, 'InstanceCode')
        if not hotel_id or not instance_code:
            raise RowRejected('Missing HotelID or InstanceCode')

        _require(record, 'HotelName', 'Location', 'District', 'Address', 'Pincode')

        start_date = _date(record, 'StartDate')
        end_date = _date(record, 'EndDate')
        if end_date <= start_date:
            raise RowRejected('EndDate must be after StartDate')

        total_rooms = _rooms(record, 'TotalRooms')
        occupied_rooms = _rooms(record, 'OccupiedRooms', default=0)
        available_rooms = _rooms(record, 'AvailableRooms', default=max(total_rooms - occupied_rooms, 0))

        if self.hotel_store.get(hotel_id, instance_code):
            raise RowSkipped(f'Hotel {hotel_id} with instance {instance_code} already exists')

        if find_overlaps(hotel_id, start_date, end_date):
            raise RowRejected(f'Hotel {hotel_id} has overlapping dates with existing records')

        fields = {
            'hotel_id': hotel_id,
            'instance_code': instance_code,
            'hotel_name': _text(record, 'HotelName'),
            'location': _text(record, 'Location'),
            'district': _text(record, 'District'),
            'address': _text(record, 'Address'),
            'pincode': _text(record, 'Pincode'),
            'start_date': start_date,
            'end_date': end_date,
            'total_rooms': total_rooms,
            'occupied_rooms': occupied_rooms,
            'available_rooms': available_rooms,
        }

        siblings = self.hotel_store.instances_of(hotel_id)
        if siblings:
            existing = siblings[0].property_wide_values()
            differing = sorted(f for f, v in existing.items() if fields[f] != v)
            if differing:
                self.result.warnings.append(
                    f"Hotel {hotel_id} instance {instance_code}: {', '.join(differing)} "
                    f'differ from existing instances; existing values kept'
                )
            fields.update(existing)

        try:
            self.hotel_store.create(fields)
        except DuplicateInstance as e:
            raise RowSkipped(e.message)


class CoachOfficialUploader(BulkUploader):
    expected_headers = COACH_OFFICIAL_HEADERS
    sheet_name = 'Coach/official'

    def process_row(self, record):
        role = _text(record, 'ROLE').upper()
        if role not in ('COACH', 'OFFICIAL'):
            raise RowRejected(f"Invalid ROLE '{_text(record, 'ROLE')}' (expected COACH or OFFICIAL)")

        participant_id = _text(record, 'COACH_id')
        _require(record, 'COACH_id', 'Name', 'Discipline', 'Hotel_ID', 'Booking_Reference_Number')

        hotel_id = _text(record, 'Hotel_ID')
        if not self.hotel_store.hotel_exists(hotel_id):
            raise RowRejected(f'Hotel {hotel_id} not found in inventory')

        start_date, end_date = _booking_window(record, 'Booking_Start_Date', 'Booking_End_Date')

        if self.participant_store.get_by_participant_id(participant_id):
            raise RowSkipped(f'Participant {participant_id} already exists')

        mobile_number = _text(record, 'Mobile_Number') or None

        if role == 'COACH' and not User.query.filter_by(coach_id=participant_id).first():
            if mobile_number and User.query.filter_by(mobile_number=mobile_number).first():
                raise RowRejected(f'Mobile number {mobile_number} is already registered to another user')
            coach_user = User(
                mobile_number=mobile_number,
                name=_text(record, 'Name'),
                role='coach',
                coach_id=participant_id,
                is_active=True
            )
            db.session.add(coach_user)

        self.participant_store.create({
            'participant_id': participant_id,
            'name': _text(record, 'Name'),
            'mobile_number': mobile_number,
            'role': role.lower(),
            'discipline': _text(record, 'Discipline'),
            'hotel_id': hotel_id,
            'hotel_name': _text(record, 'Hotel_Name') or self._hotel_name(hotel_id),
            'stadium': _text(record, 'Stadium') or None,
            'booking_start_date': start_date,
            'booking_end_date': end_date,
            'booking_reference': _text(record, 'Booking_Reference_Number'),
            'transport_poc': _text(record, 'Transport POC') or None,
            # Officials arrive with the organising team
            'checkin_status': 'checked_in' if role == 'OFFICIAL' else 'pending',
        })


class PlayerUploader(BulkUploader):
    expected_headers = PLAYER_HEADERS
    sheet_name = 'Player'

    def process_row(self, record):
        _require(record, 'PlayerID', 'Player_Name', 'COACH_ID', 'Discipline', 'HOTEL_id', 'BOOKING_REFERENCE')

        coach_id = _text(record, 'COACH_ID')
        if not User.query.filter_by(coach_id=coach_id).first():
            raise RowRejected(f'Coach {coach_id} not found')

        hotel_id = _text(record, 'HOTEL_id')
        if not self.hotel_store.hotel_exists(hotel_id):
            raise RowRejected(f'Hotel {hotel_id} not found in inventory')

        start_date, end_date = _booking_window(record, 'Booking_Start_Date', 'Booking_End_Date')

        player_id = _text(record, 'PlayerID')
        if self.participant_store.get_by_participant_id(player_id):
            raise RowSkipped(f'Player {player_id} already exists')

        self.participant_store.create({
            'participant_id': player_id,
            'name': _text(record, 'Player_Name'),
            'mobile_number': _text(record, 'Mobilenumber') or None,
            'role': 'player',
            'discipline': _text(record, 'Discipline'),
            'district': _text(record, 'District') or None,
            'team_name': _text(record, 'Team_Name') or None,
            'coach_id': coach_id,
            'hotel_id': hotel_id,
            'hotel_name': self._hotel_name(hotel_id),
            'booking_start_date': start_date,
            'booking_end_date': end_date,
            'booking_reference': _text(record, 'BOOKING_REFERENCE'),
            'checkin_status': 'pending',
        })


def upload_hotel_inventory(content):
    return HotelInventoryUploader().upload(content)


def upload_coaches_officials(content):
    return CoachOfficialUploader().upload(content)


def upload_players(content):
    return PlayerUploader().upload(content)
