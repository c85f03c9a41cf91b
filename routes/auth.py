from flask import Blueprint, jsonify, request, session
from flask_login import login_user, logout_user, current_user
from flask_wtf.csrf import generate_csrf
import logging

from services.auth_service import AuthService
from utils.decorators import login_required_json
from utils.extensions import limiter

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _body():
    return request.get_json(silent=True) or {}


def _start_session(user):
    session.clear()
    login_user(user)
    session.permanent = True
    logger.info(f'{user.role} {user.id} signed in')
    return jsonify({'message': 'Login successful', 'user': user.to_dict()})


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    return jsonify({'csrfToken': generate_csrf()})


@auth_bp.route('/admin/login', methods=['POST'])
@limiter.limit("10 per minute")
def admin_login():
    data = _body()
    result = AuthService().admin_login(data.get('email'), data.get('password'))
    return jsonify(result)


@auth_bp.route('/admin/verify-otp', methods=['POST'])
@limiter.limit("10 per minute")
def admin_verify_otp():
    data = _body()
    user = AuthService().verify_admin(data.get('mobileNumber'), data.get('otp'))
    return _start_session(user)


@auth_bp.route('/coach/login', methods=['POST'])
@limiter.limit("10 per minute")
def coach_login():
    result = AuthService().coach_login(_body().get('mobileNumber'))
    return jsonify(result)


@auth_bp.route('/coach/verify-otp', methods=['POST'])
@limiter.limit("10 per minute")
def coach_verify_otp():
    data = _body()
    user = AuthService().verify_coach(data.get('mobileNumber'), data.get('otp'))
    return _start_session(user)


@auth_bp.route('/resend-otp', methods=['POST'])
@limiter.limit("5 per minute")
def resend_otp():
    data = _body()
    result = AuthService().resend_otp(data.get('mobileNumber'), data.get('purpose'))
    return jsonify(result)


@auth_bp.route('/logout', methods=['POST'])
@login_required_json
def logout():
    logger.info(f'User {current_user.id} signed out')
    logout_user()
    session.clear()
    return jsonify({'message': 'Logged out successfully'})


@auth_bp.route('/me', methods=['GET'])
def me():
    if not current_user.is_authenticated:
        return jsonify({'message': 'Not authenticated'}), 401
    return jsonify({'user': current_user.to_dict()})
