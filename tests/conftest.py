#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Shared fixtures: an in-memory app per test, seeded users, factories for
hotel instances and participants, and signed-in API clients.
"""

import os
import sys
from datetime import date

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from config import TestingConfig
from models import db as _db, User, HotelInstance, Participant

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'Admin@12345'
ADMIN_MOBILE = '+919000000001'
COACH_MOBILE = '+919000000002'


class RecordingNotifier:
    """Stands in for NotificationService and keeps every message"""

    def __init__(self, succeed=True):
        self.succeed = succeed
        self.messages = []

    def send_sms(self, to, message):
        self.messages.append({'to': to, 'message': message})
        return self.succeed

    def send_bulk(self, messages):
        sent = sum(1 for m in messages if self.send_sms(m['to'], m['message']))
        return {'sent': sent, 'failed': len(messages) - sent}

    def send_otp(self, mobile_number, otp, purpose, ttl_seconds=300):
        return self.send_sms(mobile_number, f'OTP {otp}')

    def send_checkin_notification(self, transport_poc, coach_id, player_count, checkin_time):
        return self.send_sms(transport_poc, f'{coach_id} checked in {player_count} players')


@pytest.fixture
def app():
    """Create test app"""
    flask_app = create_app(TestingConfig)

    with flask_app.app_context():
        _db.create_all()
        yield flask_app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    return _db.session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(succeed=False)


@pytest.fixture
def admin_user(db_session):
    user = User(
        email=ADMIN_EMAIL,
        mobile_number=ADMIN_MOBILE,
        name='Event Admin',
        role='admin',
        is_active=True
    )
    user.set_password(ADMIN_PASSWORD)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def coach_user(db_session):
    user = User(
        mobile_number=COACH_MOBILE,
        name='Coach One',
        role='coach',
        coach_id='COA_001',
        is_active=True
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def make_hotel(db_session):
    """Factory: make_hotel('CHN001', '1', date(...), date(...), total_rooms=10)"""

    def _make(hotel_id='CHN001', instance_code='1',
              start_date=date(2025, 9, 1), end_date=date(2025, 9, 10), **overrides):
        fields = {
            'hotel_id': hotel_id,
            'instance_code': instance_code,
            'hotel_name': 'Hotel Marina',
            'location': 'Marina Beach',
            'district': 'Chennai',
            'address': '1 Beach Road',
            'pincode': '600001',
            'start_date': start_date,
            'end_date': end_date,
            'total_rooms': 20,
            'occupied_rooms': 0,
            'available_rooms': 20,
        }
        fields.update(overrides)
        hotel = HotelInstance(**fields)
        db_session.add(hotel)
        db_session.commit()
        return hotel

    return _make


@pytest.fixture
def make_participant(db_session):
    """Factory: make_participant('PLA_001', role='player', coach_id='COA_001')"""

    def _make(participant_id, role='player', **overrides):
        fields = {
            'participant_id': participant_id,
            'name': f'Participant {participant_id}',
            'mobile_number': None,
            'role': role,
            'discipline': 'Athletics',
            'hotel_id': 'CHN001',
            'hotel_name': 'Hotel Marina',
            'booking_start_date': date(2025, 9, 1),
            'booking_end_date': date(2025, 9, 5),
            'booking_reference': f'REF-{participant_id}',
            'checkin_status': 'pending',
        }
        fields.update(overrides)
        participant = Participant(**fields)
        db_session.add(participant)
        db_session.commit()
        return participant

    return _make


def _otp_for(app, purpose, mobile_number):
    return app.extensions['otp_store'].get(f'otp:{purpose}:{mobile_number}')


@pytest.fixture
def otp_for(app):
    return lambda purpose, mobile_number: _otp_for(app, purpose, mobile_number)


@pytest.fixture
def admin_client(app, client, admin_user):
    """Test client signed in as the admin through the OTP flow"""
    response = client.post('/api/auth/admin/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200

    otp = _otp_for(app, 'admin_login', ADMIN_MOBILE)
    response = client.post('/api/auth/admin/verify-otp', json={'mobileNumber': ADMIN_MOBILE, 'otp': otp})
    assert response.status_code == 200
    return client


@pytest.fixture
def coach_client(app, coach_user):
    """Separate test client signed in as COA_001"""
    client = app.test_client()
    response = client.post('/api/auth/coach/login', json={'mobileNumber': COACH_MOBILE})
    assert response.status_code == 200

    otp = _otp_for(app, 'coach_login', COACH_MOBILE)
    response = client.post('/api/auth/coach/verify-otp', json={'mobileNumber': COACH_MOBILE, 'otp': otp})
    assert response.status_code == 200
    return client
