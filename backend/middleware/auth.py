# backend/middleware/auth.py

from functools import wraps
from flask import jsonify, request
from flask_login import current_user
import logging

from services.errors import UnauthenticatedError, ForbiddenError

logger = logging.getLogger(__name__)


def _reject(error):
    return jsonify(error.to_dict()), error.status_code


def admin_required(f):
    """
    Decorator to ensure a user is logged in and has the 'admin' role.
    This must be placed AFTER the @login_required decorator.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            logger.warning(f"Unauthenticated access attempt to admin route: {request.endpoint}")
            return _reject(UnauthenticatedError('Authentication required'))

        if getattr(current_user, 'role', None) != 'admin':
            logger.warning(f"Employee '{current_user.username}' (role: {getattr(current_user, 'role', 'N/A')}) "
                           f"attempted to access admin route: {request.endpoint}")
            return _reject(ForbiddenError('Admin access required'))

        return f(*args, **kwargs)
    return decorated_function


def active_user_required(f):
    """
    Decorator to ensure the logged-in employee's account is active.
    This must be placed AFTER the @login_required decorator.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return _reject(UnauthenticatedError('Authentication required'))

        if not getattr(current_user, 'is_active', False):
            logger.warning(f"Inactive employee '{current_user.username}' attempted to access {request.endpoint}")
            return _reject(ForbiddenError('Your account is disabled. Please contact an administrator.'))

        return f(*args, **kwargs)
    return decorated_function
