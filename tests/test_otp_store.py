"""
Tests for the OTP stores and the OTP flow in AuthService
"""
import pytest

from services.auth_service import AuthService, generate_otp, mask_mobile
from services.exceptions import ServiceUnavailable, TooManyRequests
from services.otp_store import MemoryExpiringStore, RedisExpiringStore, create_expiring_store


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryExpiringStore(clock=clock)


class TestMemoryExpiringStore:

    def test_value_expires(self, store, clock):
        store.set('k', '123456', 300)
        assert store.get('k') == '123456'

        clock.now += 300
        assert store.get('k') is None

    def test_add_only_when_absent(self, store, clock):
        assert store.add('k', 1, 60)
        assert not store.add('k', 2, 60)
        assert store.get('k') == 1

        clock.now += 61
        assert store.add('k', 3, 60)

    def test_pop_removes(self, store):
        store.set('k', 'v', 60)
        assert store.pop('k') == 'v'
        assert store.pop('k') is None

    def test_delete_missing_key(self, store):
        store.delete('nothing')
        assert store.get('nothing') is None


class TestCreateExpiringStore:

    def test_memory_by_default(self):
        assert isinstance(create_expiring_store(None), MemoryExpiringStore)
        assert isinstance(create_expiring_store('memory://'), MemoryExpiringStore)

    def test_redis_url(self):
        # redis-py connects lazily, so no server is needed here
        assert isinstance(create_expiring_store('redis://localhost:6379/0'), RedisExpiringStore)

    def test_unsupported_url(self):
        with pytest.raises(ValueError):
            create_expiring_store('memcached://localhost')


class TestOtpFlow:

    def test_generate_otp_is_six_digits(self):
        for _ in range(20):
            otp = generate_otp()
            assert len(otp) == 6 and otp.isdigit()

    def test_mask_mobile(self):
        assert mask_mobile('+919000000001') == '*********0001'

    def test_code_is_single_use(self, app, store, notifier):
        service = AuthService(store=store, notifier=notifier)
        otp = service.send_otp('+919000000001', 'admin_login')

        assert service.verify_otp('+919000000001', otp, 'admin_login')
        assert not service.verify_otp('+919000000001', otp, 'admin_login')

    def test_code_bound_to_purpose(self, app, store, notifier):
        service = AuthService(store=store, notifier=notifier)
        otp = service.send_otp('+919000000001', 'admin_login')

        assert not service.verify_otp('+919000000001', otp, 'coach_login')

    def test_expired_code_rejected(self, app, store, clock, notifier):
        service = AuthService(store=store, notifier=notifier, ttl_seconds=300)
        otp = service.send_otp('+919000000001', 'coach_login')

        clock.now += 301
        assert not service.verify_otp('+919000000001', otp, 'coach_login')

    def test_resend_throttled(self, app, store, clock, notifier):
        service = AuthService(store=store, notifier=notifier, resend_interval=60)
        service.send_otp('+919000000001', 'coach_login')

        with pytest.raises(TooManyRequests):
            service.send_otp('+919000000001', 'coach_login')

        clock.now += 60
        service.send_otp('+919000000001', 'coach_login')
        assert len(notifier.messages) == 2

    def test_send_failure_clears_state(self, app, store, failing_notifier):
        service = AuthService(store=store, notifier=failing_notifier)

        with pytest.raises(ServiceUnavailable):
            service.send_otp('+919000000001', 'coach_login')

        assert store.get('otp:coach_login:+919000000001') is None
        # A retry is allowed straight away
        assert store.add('otp-sent:coach_login:+919000000001', 1, 60)
