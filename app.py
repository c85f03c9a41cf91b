#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Event Accommodation Coordination Service
Flask Application Entry Point
"""

import os
import logging
import sqlite3
from datetime import datetime
from flask import Flask, jsonify
from flask_login import LoginManager
from flask_wtf.csrf import CSRFError
from sqlalchemy import event
from sqlalchemy.engine import Engine
from werkzeug.exceptions import HTTPException
from config import Config
from models import db, User
from routes import register_blueprints
from services.exceptions import AccommodationError
from services.otp_store import create_expiring_store
from utils.extensions import csrf, limiter
from utils.timezone import IST_TZ, get_ist_now

# Custom logging formatter with India timezone
class ISTFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=IST_TZ)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.strftime('%Y-%m-%d %H:%M:%S')

    def format(self, record):
        record.ist_time = datetime.fromtimestamp(record.created, tz=IST_TZ).strftime('%Y-%m-%d %H:%M:%S')
        return super().format(record)

# Configure logging with IST timestamps
formatter = ISTFormatter(
    '%(ist_time)s [IST] - %(name)s - %(levelname)s - %(message)s'
)

console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)

file_handler = logging.FileHandler('app.log', encoding='utf-8')
file_handler.setFormatter(formatter)

logging.basicConfig(
    level=logging.INFO,
    handlers=[console_handler, file_handler]
)
logger = logging.getLogger(__name__)


# SQLite pragmas for WAL mode and better concurrency
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def register_error_handlers(app):
    """Every error leaves the API as JSON"""

    @app.errorhandler(AccommodationError)
    def handle_domain_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return jsonify({'message': f'CSRF validation failed: {error.description}'}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception(f'Unhandled error: {error}')
        return jsonify({'message': 'Internal server error'}), 500


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///') and ':memory:' not in app.config['SQLALCHEMY_DATABASE_URI']:
        db_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'database')
        if not os.path.exists(db_dir):
            os.makedirs(db_dir)

    db.init_app(app)
    csrf.init_app(app)

    limiter.init_app(app)
    if app.config.get('RATELIMIT_ENABLED', True):
        logger.info(f"Rate limiting enabled: {app.config['RATELIMIT_DEFAULT']}")

    app.extensions['otp_store'] = create_expiring_store(app.config.get('OTP_STORE_URL'))

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'message': 'Authentication required'}), 401

    register_blueprints(app)
    register_error_handlers(app)

    @app.route('/api/health')
    def health():
        return jsonify({'status': 'ok', 'time': get_ist_now().isoformat()})

    # Security Headers - Protect against common attacks
    @app.after_request
    def add_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none';"
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

        # HSTS only when HTTPS is actually enabled
        if app.config.get('SESSION_COOKIE_SECURE') and app.config.get('PREFERRED_URL_SCHEME') == 'https':
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        # API responses carry personal data
        response.headers['Cache-Control'] = 'no-store'
        return response

    return app

app = create_app()

if __name__ == '__main__':
    # Debug should be False by default, only True in development
    flask_env = os.environ.get('FLASK_ENV', 'production')
    debug_mode = flask_env == 'development'

    ist_time = get_ist_now()

    print("\n" + "="*60)
    print("Event Accommodation Coordination Service")
    print("="*60)
    print(f"\nEnvironment: {flask_env}")
    print(f"Debug Mode: {debug_mode}")
    print(f"Current IST Time: {ist_time.strftime('%Y-%m-%d %H:%M:%S')}")
    print("\nAccess URL: http://localhost:5000")
    print("="*60 + "\n")

    logger.info(f"Application starting in {flask_env} mode")
    logger.info(f"CSRF protection: {app.config.get('WTF_CSRF_ENABLED', False)}")

    app.run(host='0.0.0.0', port=5000, debug=debug_mode)
