"""
Tests for the /api/auth endpoints:
- Admin: email + password, then OTP
- Coach: mobile number, then OTP
- Session, logout and role guards
"""
import pytest

from models import AuditLog, User
from services.auth_service import ensure_default_admin

ADMIN_PASSWORD = 'Admin@12345'


class TestAdminLogin:

    def test_password_then_otp(self, app, client, admin_user, otp_for):
        response = client.post('/api/auth/admin/login', json={
            'email': admin_user.email.upper(), 'password': ADMIN_PASSWORD
        })

        assert response.status_code == 200
        body = response.get_json()
        assert body['requiresOTP'] is True
        assert body['mobileNumber'] == admin_user.mobile_number

        otp = otp_for('admin_login', admin_user.mobile_number)
        response = client.post('/api/auth/admin/verify-otp', json={
            'mobileNumber': admin_user.mobile_number, 'otp': otp
        })

        assert response.status_code == 200
        assert response.get_json()['user']['role'] == 'admin'
        assert AuditLog.query.filter_by(action_type='login').count() == 1

        me = client.get('/api/auth/me')
        assert me.status_code == 200
        assert me.get_json()['user']['name'] == 'Event Admin'

    def test_wrong_password(self, app, client, admin_user):
        response = client.post('/api/auth/admin/login', json={
            'email': admin_user.email, 'password': 'wrong'
        })

        assert response.status_code == 401
        assert response.get_json()['message'] == 'Invalid credentials'

    def test_missing_fields(self, app, client):
        response = client.post('/api/auth/admin/login', json={'email': ''})
        assert response.status_code == 400

    def test_wrong_otp(self, app, client, admin_user):
        client.post('/api/auth/admin/login', json={'email': admin_user.email, 'password': ADMIN_PASSWORD})

        response = client.post('/api/auth/admin/verify-otp', json={
            'mobileNumber': admin_user.mobile_number, 'otp': '000000'
        })

        assert response.status_code == 401
        assert client.get('/api/auth/me').status_code == 401

    def test_second_login_request_is_throttled(self, app, client, admin_user):
        payload = {'email': admin_user.email, 'password': ADMIN_PASSWORD}
        assert client.post('/api/auth/admin/login', json=payload).status_code == 200

        response = client.post('/api/auth/admin/login', json=payload)

        assert response.status_code == 429


class TestCoachLogin:

    def test_mobile_then_otp(self, app, client, coach_user, otp_for):
        response = client.post('/api/auth/coach/login', json={'mobileNumber': coach_user.mobile_number})
        assert response.status_code == 200

        otp = otp_for('coach_login', coach_user.mobile_number)
        response = client.post('/api/auth/coach/verify-otp', json={
            'mobileNumber': coach_user.mobile_number, 'otp': otp
        })

        assert response.status_code == 200
        assert response.get_json()['user']['coachId'] == 'COA_001'

    def test_unknown_mobile(self, app, client):
        response = client.post('/api/auth/coach/login', json={'mobileNumber': '+919999999999'})
        assert response.status_code == 404

    def test_otp_not_reusable(self, app, client, coach_user, otp_for):
        client.post('/api/auth/coach/login', json={'mobileNumber': coach_user.mobile_number})
        otp = otp_for('coach_login', coach_user.mobile_number)
        payload = {'mobileNumber': coach_user.mobile_number, 'otp': otp}

        assert client.post('/api/auth/coach/verify-otp', json=payload).status_code == 200
        assert client.post('/api/auth/coach/verify-otp', json=payload).status_code == 401

    def test_resend_invalid_purpose(self, app, client, coach_user):
        response = client.post('/api/auth/resend-otp', json={
            'mobileNumber': coach_user.mobile_number, 'purpose': 'root'
        })
        assert response.status_code == 400


class TestSessionAndGuards:

    def test_logout(self, app, admin_client):
        assert admin_client.post('/api/auth/logout').status_code == 200
        assert admin_client.get('/api/auth/me').status_code == 401

    def test_admin_routes_need_login(self, app, client):
        response = client.get('/api/admin/dashboard/stats')
        assert response.status_code == 401

    def test_coach_cannot_use_admin_routes(self, app, coach_client):
        response = coach_client.get('/api/admin/dashboard/stats')
        assert response.status_code == 403

    def test_admin_cannot_use_coach_routes(self, app, admin_client):
        response = admin_client.get('/api/coach/dashboard')
        assert response.status_code == 403

    def test_csrf_token_endpoint(self, app, client):
        response = client.get('/api/auth/csrf-token')
        assert response.status_code == 200
        assert response.get_json()['csrfToken']

    def test_health(self, app, client):
        assert client.get('/api/health').get_json()['status'] == 'ok'


class TestDefaultAdmin:

    def test_created_once(self, app):
        admin = ensure_default_admin('Ops@Example.com', 'S3cret!pass', '+919000000010', name='Ops')

        assert admin.email == 'ops@example.com'
        assert admin.check_password('S3cret!pass')
        assert ensure_default_admin('other@example.com', 'x', '+919000000011') is None
        assert User.query.filter_by(role='admin').count() == 1

    def test_requires_credentials(self, app):
        with pytest.raises(ValueError):
            ensure_default_admin(None, None, None)
