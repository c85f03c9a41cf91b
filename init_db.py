#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Database initialization script
Creates the tables and the default admin account from the environment
(ADMIN_EMAIL, ADMIN_INITIAL_PASSWORD, ADMIN_MOBILE).

Usage:
    python init_db.py           # create missing tables, keep data
    python init_db.py --reset   # drop everything first
"""

import sys
import logging

from app import create_app
from models import db
from services.auth_service import ensure_default_admin

logger = logging.getLogger(__name__)


def init_database(reset=False):
    app = create_app()

    with app.app_context():
        if reset:
            db.drop_all()
            logger.warning("All tables dropped.")
        db.create_all()
        print("Database tables created.")

        try:
            admin = ensure_default_admin(
                app.config.get('ADMIN_EMAIL'),
                app.config.get('ADMIN_INITIAL_PASSWORD'),
                app.config.get('ADMIN_MOBILE'),
                name=app.config.get('ADMIN_NAME', 'Event Administrator'),
            )
        except ValueError as e:
            print(f"Admin not created: {e}")
            return 1

        if admin:
            print(f"Admin created: {admin.email} (OTP to {admin.mobile_number})")
        else:
            print("Admin already exists, left unchanged.")
    return 0


if __name__ == '__main__':
    sys.exit(init_database(reset='--reset' in sys.argv[1:]))
