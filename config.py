import os
import secrets
import logging
from dotenv import load_dotenv

load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))

# Determine environment safely
FLASK_ENV = os.environ.get('FLASK_ENV', 'production')  # Default to production (secure)
IS_PRODUCTION = FLASK_ENV == 'production'
IS_DEVELOPMENT = FLASK_ENV == 'development'

class Config:
    _env_secret_key = os.environ.get('SECRET_KEY')
    if IS_PRODUCTION and not _env_secret_key:
        logging.warning(
            "SECRET_KEY not set in production environment! "
            "Sessions will be invalidated on server restart. "
            "Set SECRET_KEY environment variable for persistent sessions."
        )
    SECRET_KEY = _env_secret_key or secrets.token_hex(32)

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'database', 'accommodation.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }

    # Upload security (PSV sheets are small text files)
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB max file size

    # Admin bootstrap (use ENV in production)
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL')
    ADMIN_INITIAL_PASSWORD = os.environ.get('ADMIN_INITIAL_PASSWORD')
    ADMIN_MOBILE = os.environ.get('ADMIN_MOBILE')
    ADMIN_NAME = os.environ.get('ADMIN_NAME', 'Event Administrator')

    # OTP login
    OTP_STORE_URL = os.environ.get('OTP_STORE_URL', 'memory://')  # redis://host:6379/0 for multiple workers
    OTP_TTL_SECONDS = int(os.environ.get('OTP_TTL_SECONDS', 300))
    OTP_RESEND_INTERVAL_SECONDS = int(os.environ.get('OTP_RESEND_INTERVAL_SECONDS', 60))

    # SMS gateway; without a URL messages are only logged
    SMS_API_URL = os.environ.get('SMS_API_URL')
    SMS_API_KEY = os.environ.get('SMS_API_KEY')
    SMS_SENDER_ID = os.environ.get('SMS_SENDER_ID')
    SMS_TIMEOUT_SECONDS = int(os.environ.get('SMS_TIMEOUT_SECONDS', 10))

    # CSRF Protection (JSON clients send X-CSRFToken from /api/auth/csrf-token)
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # 1 hour CSRF token validity

    # Session Security - Secure by Default
    SESSION_COOKIE_SECURE = not IS_DEVELOPMENT  # True unless explicitly in development
    SESSION_COOKIE_HTTPONLY = True  # Prevent JavaScript access to session cookie
    SESSION_COOKIE_SAMESITE = 'Strict' if IS_PRODUCTION else 'Lax'
    PERMANENT_SESSION_LIFETIME = 12 * 3600  # one event day

    REMEMBER_COOKIE_SECURE = not IS_DEVELOPMENT
    REMEMBER_COOKIE_HTTPONLY = True

    # Rate Limiting - Use Redis in production if available
    RATELIMIT_DEFAULT = "200 per minute"
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', 'memory://')

    JSON_AS_ASCII = False


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False
    OTP_STORE_URL = 'memory://'
    SMS_API_URL = None
