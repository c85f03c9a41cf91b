#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Notification Service
SMS messages to participants, coaches and transport contacts
"""

import logging
import requests
from flask import current_app

logger = logging.getLogger(__name__)

SIGNATURE = 'Ievolve Events'


def format_otp_message(otp, purpose, ttl_seconds=300):
    purpose_text = 'Admin Login' if purpose == 'admin_login' else 'Coach Login'
    minutes = max(ttl_seconds // 60, 1)
    return (
        f'Your Ievolve Sports Event Management {purpose_text} OTP is: {otp}. '
        f'Valid for {minutes} minutes. Do not share this code.'
    )


def format_checkin_message(coach_id, player_count, checkin_time):
    return (
        f'CM Trophy Update: Coach {coach_id} has checked in {player_count} players '
        f'at {checkin_time}. - {SIGNATURE}'
    )


def format_early_checkout_message(new_checkout_date):
    return (
        f'CM Trophy Update: Your checkout date has been updated to {new_checkout_date}. '
        f'Please plan accordingly. - {SIGNATURE}'
    )


def format_player_checkout_message(player_name, new_checkout_date):
    """Sent to the coach of a player whose stay was shortened"""
    return (
        f"CM Trophy Update: Player {player_name}'s checkout date has been updated to "
        f'{new_checkout_date}. - {SIGNATURE}'
    )


class NotificationService:
    """
    Deliver SMS through the configured HTTP gateway.
    Without SMS_API_URL the messages are only logged (development mode).
    """

    def __init__(self, api_url=None, api_key=None, timeout=None):
        config = current_app.config
        self.api_url = api_url if api_url is not None else config.get('SMS_API_URL')
        self.api_key = api_key if api_key is not None else config.get('SMS_API_KEY')
        self.timeout = timeout or config.get('SMS_TIMEOUT_SECONDS', 10)
        self.sender_id = config.get('SMS_SENDER_ID')

    def send_sms(self, to, message):
        """
        Send one SMS

        Returns:
            True if the gateway accepted it (or it was logged in dev mode)
        """
        if not to:
            logger.warning('SMS skipped: no recipient number')
            return False

        if not self.api_url:
            logger.info(f'SMS to {to} (gateway not configured): {message}')
            return True

        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'

        payload = {'to': to, 'message': message}
        if self.sender_id:
            payload['sender'] = self.sender_id

        try:
            response = requests.post(self.api_url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f'SMS to {to} failed: {e}')
            return False

        if 200 <= response.status_code < 300:
            logger.info(f'SMS sent to {to}')
            return True

        logger.error(f'SMS gateway returned {response.status_code} for {to}: {response.text[:200]}')
        return False

    def send_bulk(self, messages):
        """
        Send a batch of {to, message} dicts

        Returns:
            dict with sent and failed counts
        """
        sent = 0
        failed = 0
        for msg in messages:
            if self.send_sms(msg.get('to'), msg.get('message')):
                sent += 1
            else:
                failed += 1

        if messages:
            logger.info(f'Bulk SMS: {sent} sent, {failed} failed')
        return {'sent': sent, 'failed': failed}

    def send_otp(self, mobile_number, otp, purpose, ttl_seconds=300):
        return self.send_sms(mobile_number, format_otp_message(otp, purpose, ttl_seconds))

    def send_checkin_notification(self, transport_poc, coach_id, player_count, checkin_time):
        return self.send_sms(transport_poc, format_checkin_message(coach_id, player_count, checkin_time))
