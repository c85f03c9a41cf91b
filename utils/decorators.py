"""
Access Control Decorators
Role checks for the JSON API; failures answer 401/403 instead of redirecting
"""
from functools import wraps
from flask import jsonify
from flask_login import current_user


def role_required(role):
    """
    Decorator factory to require a specific role
    Usage: @role_required('coach')
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'message': 'Authentication required'}), 401

            if not current_user.is_active:
                return jsonify({'message': 'Account is inactive'}), 403

            if current_user.role != role:
                return jsonify({'message': f'{role.capitalize()} access required'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator


admin_required = role_required('admin')

coach_required = role_required('coach')


def login_required_json(f):
    """Any signed-in user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'message': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function
