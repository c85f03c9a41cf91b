#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Auth Service
Admin login: email + password, then an SMS OTP.
Coach login: mobile number, then an SMS OTP.
"""

import logging
import secrets
from flask import current_app
from models import db, User, AuditLog
from services.exceptions import (
    AuthenticationFailed, NotFound, ServiceUnavailable, TooManyRequests, ValidationError
)
from services.notification_service import NotificationService
from utils.timezone import utc_now

logger = logging.getLogger(__name__)

PURPOSE_ADMIN = 'admin_login'
PURPOSE_COACH = 'coach_login'

PURPOSE_ROLES = {
    PURPOSE_ADMIN: 'admin',
    PURPOSE_COACH: 'coach',
}


def generate_otp():
    return str(secrets.randbelow(900000) + 100000)


def mask_mobile(mobile_number):
    if not mobile_number or len(mobile_number) < 4:
        return mobile_number
    return '*' * (len(mobile_number) - 4) + mobile_number[-4:]


class AuthService:
    """
    OTP issue/verify on top of an ExpiringStore.

    Keys are per (purpose, mobile number): issuing a new code replaces the
    previous one, and a verified code is removed so it cannot be reused.
    """

    def __init__(self, store=None, notifier=None, ttl_seconds=None, resend_interval=None):
        config = current_app.config
        self.store = store or current_app.extensions['otp_store']
        self._notifier = notifier
        self.ttl_seconds = ttl_seconds or config.get('OTP_TTL_SECONDS', 300)
        self.resend_interval = resend_interval or config.get('OTP_RESEND_INTERVAL_SECONDS', 60)

    @property
    def notifier(self):
        if self._notifier is None:
            self._notifier = NotificationService()
        return self._notifier

    @staticmethod
    def _otp_key(purpose, mobile_number):
        return f'otp:{purpose}:{mobile_number}'

    @staticmethod
    def _throttle_key(purpose, mobile_number):
        return f'otp-sent:{purpose}:{mobile_number}'

    def send_otp(self, mobile_number, purpose):
        """
        Issue a new OTP and text it

        Raises:
            TooManyRequests if one was sent within the resend interval
        """
        if not self.store.add(self._throttle_key(purpose, mobile_number), 1, self.resend_interval):
            raise TooManyRequests(
                f'Please wait {self.resend_interval} seconds before requesting a new OTP'
            )

        otp = generate_otp()
        self.store.set(self._otp_key(purpose, mobile_number), otp, self.ttl_seconds)

        if not self.notifier.send_otp(mobile_number, otp, purpose, self.ttl_seconds):
            self.store.delete(self._otp_key(purpose, mobile_number))
            self.store.delete(self._throttle_key(purpose, mobile_number))
            raise ServiceUnavailable('Failed to send OTP. Please try again.')

        if current_app.debug or current_app.testing:
            logger.info(f'{purpose} OTP for {mask_mobile(mobile_number)}: {otp}')
        else:
            logger.info(f'{purpose} OTP sent to {mask_mobile(mobile_number)}')
        return otp

    def verify_otp(self, mobile_number, otp, purpose):
        """Consume the stored code; returns True only on an exact match"""
        key = self._otp_key(purpose, mobile_number)
        stored = self.store.get(key)
        if stored is None or not secrets.compare_digest(str(stored), str(otp or '').strip()):
            return False
        # pop() so two concurrent verifications cannot both succeed
        return self.store.pop(key) is not None

    # Admin

    def admin_login(self, email, password):
        email = (email or '').strip().lower()
        if not email or not password:
            raise ValidationError('Validation error', ['Email and password are required'])

        user = User.query.filter_by(email=email, role='admin').first()
        if not user or not user.check_password(password):
            logger.warning(f'Failed admin login for {email}')
            raise AuthenticationFailed('Invalid credentials')

        if not user.is_active:
            raise AuthenticationFailed('Account is inactive. Please contact administrator')

        if not user.mobile_number:
            raise ValidationError('Admin mobile number not configured for 2FA')

        self.send_otp(user.mobile_number, PURPOSE_ADMIN)
        return {
            'message': 'OTP sent to your registered mobile number',
            'requiresOTP': True,
            'mobileNumber': user.mobile_number,
        }

    def verify_admin(self, mobile_number, otp):
        return self._verify(mobile_number, otp, PURPOSE_ADMIN)

    # Coach

    def coach_login(self, mobile_number):
        mobile_number = (mobile_number or '').strip()
        if not mobile_number:
            raise ValidationError('Validation error', ['Mobile number is required'])

        user = User.query.filter_by(mobile_number=mobile_number, role='coach').first()
        if not user:
            raise NotFound('Coach not found with this mobile number')
        if not user.is_active:
            raise AuthenticationFailed('Account is inactive. Please contact administrator')

        self.send_otp(mobile_number, PURPOSE_COACH)
        return {
            'message': 'OTP sent to your mobile number',
            'requiresOTP': True,
            'mobileNumber': mobile_number,
        }

    def verify_coach(self, mobile_number, otp):
        return self._verify(mobile_number, otp, PURPOSE_COACH)

    def resend_otp(self, mobile_number, purpose):
        if purpose not in PURPOSE_ROLES:
            raise ValidationError('Validation error', [f'Invalid purpose: {purpose}'])

        user = User.query.filter_by(mobile_number=(mobile_number or '').strip(),
                                    role=PURPOSE_ROLES[purpose]).first()
        if not user:
            raise NotFound('User not found with this mobile number')

        self.send_otp(user.mobile_number, purpose)
        return {'message': 'OTP sent successfully'}

    def _verify(self, mobile_number, otp, purpose):
        """Returns the User to log in, or raises AuthenticationFailed"""
        mobile_number = (mobile_number or '').strip()
        if not mobile_number or not otp:
            raise ValidationError('Validation error', ['Mobile number and OTP are required'])

        if not self.verify_otp(mobile_number, otp, purpose):
            logger.warning(f'Invalid OTP for {mask_mobile(mobile_number)} ({purpose})')
            raise AuthenticationFailed('Invalid or expired OTP')

        user = User.query.filter_by(mobile_number=mobile_number, role=PURPOSE_ROLES[purpose]).first()
        if not user or not user.is_active:
            raise AuthenticationFailed('User not found')

        user.last_login = utc_now()
        AuditLog.log(
            user=user,
            action_type=AuditLog.ACTION_LOGIN,
            target_entity=AuditLog.ENTITY_USER,
            target_id=user.id,
            details={'role': user.role, 'method': purpose}
        )
        db.session.commit()
        return user


def ensure_default_admin(email, password, mobile_number, name='Event Administrator'):
    """
    Create the bootstrap admin if no admin exists yet

    Returns:
        The created User, or None when an admin already exists
    """
    if User.query.filter_by(role='admin').first():
        return None

    if not email or not password:
        raise ValueError('ADMIN_EMAIL and ADMIN_INITIAL_PASSWORD must be set to create the admin user')

    admin = User(
        email=email.strip().lower(),
        mobile_number=mobile_number,
        name=name,
        role='admin',
        is_active=True
    )
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    logger.info(f'Default admin {admin.email} created')
    return admin
