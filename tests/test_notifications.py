"""
Tests for SMS formatting and delivery through the HTTP gateway
"""
import pytest
import requests

from services import notification_service
from services.notification_service import (
    NotificationService,
    format_otp_message,
    format_early_checkout_message,
    format_player_checkout_message,
)


class FakeResponse:
    def __init__(self, status_code=200, text='ok'):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def posted(monkeypatch):
    """Capture gateway calls instead of sending them"""
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({'url': url, 'headers': headers, 'json': json, 'timeout': timeout})
        return FakeResponse()

    monkeypatch.setattr(notification_service.requests, 'post', fake_post)
    return calls


class TestMessageFormats:

    def test_otp_message(self):
        text = format_otp_message('123456', 'admin_login', 300)
        assert text == (
            'Your Ievolve Sports Event Management Admin Login OTP is: 123456. '
            'Valid for 5 minutes. Do not share this code.'
        )

    def test_coach_otp_message(self):
        assert 'Coach Login OTP is: 654321' in format_otp_message('654321', 'coach_login')

    def test_early_checkout_message(self):
        assert format_early_checkout_message('2025-09-03') == (
            'CM Trophy Update: Your checkout date has been updated to 2025-09-03. '
            'Please plan accordingly. - Ievolve Events'
        )

    def test_player_checkout_message(self):
        assert format_player_checkout_message('Arun', '2025-09-03') == (
            "CM Trophy Update: Player Arun's checkout date has been updated to 2025-09-03. - Ievolve Events"
        )


class TestNotificationService:

    def test_without_gateway_messages_are_logged(self, app, posted):
        service = NotificationService()

        assert service.send_sms('+919000000001', 'hello')
        assert posted == []

    def test_no_recipient(self, app, posted):
        assert not NotificationService(api_url='https://sms.example.com/send').send_sms('', 'hello')
        assert posted == []

    def test_gateway_call(self, app, posted):
        service = NotificationService(api_url='https://sms.example.com/send', api_key='secret', timeout=3)

        assert service.send_sms('+919000000001', 'hello')
        assert posted[0]['url'] == 'https://sms.example.com/send'
        assert posted[0]['headers']['Authorization'] == 'Bearer secret'
        assert posted[0]['json'] == {'to': '+919000000001', 'message': 'hello'}
        assert posted[0]['timeout'] == 3

    def test_gateway_error_status(self, app, monkeypatch):
        monkeypatch.setattr(notification_service.requests, 'post',
                            lambda *args, **kwargs: FakeResponse(500, 'down'))

        assert not NotificationService(api_url='https://sms.example.com/send').send_sms('+919000000001', 'x')

    def test_network_error(self, app, monkeypatch):
        def boom(*args, **kwargs):
            raise requests.ConnectionError('unreachable')

        monkeypatch.setattr(notification_service.requests, 'post', boom)

        assert not NotificationService(api_url='https://sms.example.com/send').send_sms('+919000000001', 'x')

    def test_bulk_counts(self, app, posted):
        service = NotificationService(api_url='https://sms.example.com/send')

        outcome = service.send_bulk([
            {'to': '+919000000001', 'message': 'a'},
            {'to': None, 'message': 'b'},
        ])

        assert outcome == {'sent': 1, 'failed': 1}
        assert len(posted) == 1
