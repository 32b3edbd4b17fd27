# backend/routes/auth.py
from flask import Blueprint, request, jsonify, session
from flask_login import login_user, logout_user, login_required, current_user
from datetime import datetime
import logging

from models import db, Employee

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


def create_error_response(message, status_code=500, code=None):
    """Create standardized error response"""
    response_data = {
        'error': message,
        'status_code': status_code,
        'timestamp': datetime.utcnow().isoformat()
    }
    if code:
        response_data['code'] = code
    return jsonify(response_data), status_code


@auth_bp.route('/login', methods=['POST'])
def login():
    """Log an employee in by username or email"""
    logger.info(f"Login attempt from {request.remote_addr}, Origin: {request.headers.get('Origin')}")

    data = request.get_json(silent=True)
    if not data:
        logger.warning("Login request with no JSON data")
        return create_error_response("No data provided", 400, 'VALIDATION_ERROR')

    username = (data.get('username') or data.get('email') or '').strip()
    password = data.get('password') or ''

    if not username or not password:
        logger.warning("Login validation failed: missing username or password")
        return create_error_response("Username and password are required", 400, 'VALIDATION_ERROR')

    try:
        employee = Employee.query.filter(
            (Employee.username == username) | (Employee.email == username)
        ).first()
    except Exception as db_error:
        logger.error(f"Database error during employee lookup: {db_error}")
        return create_error_response("Database error during authentication", 500)

    if not employee or not employee.check_password(password):
        logger.warning(f"Login failed for '{username}'")
        return create_error_response("Invalid username or password", 401, 'UNAUTHORIZED')

    if not employee.is_active:
        logger.warning(f"Login failed: employee '{username}' is inactive")
        return create_error_response("Account is disabled", 401, 'UNAUTHORIZED')

    try:
        employee.last_login = datetime.utcnow()
        db.session.commit()
    except Exception as update_error:
        db.session.rollback()
        # Don't fail login for this error
        logger.error(f"Database error updating last login: {update_error}")

    login_user(employee, remember=True)
    logger.info(f"Login successful for employee '{employee.username}' (ID: {employee.id})")

    return jsonify({
        'message': 'Login successful',
        'user': employee.to_dict(),
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Log out and clear the session"""
    was_authenticated = current_user.is_authenticated
    if was_authenticated:
        logger.info(f"Logout for employee {current_user.username} (ID: {current_user.id})")

    logout_user()
    session.clear()

    return jsonify({
        'message': 'Logout successful',
        'success': True,
        'was_authenticated': was_authenticated,
        'timestamp': datetime.utcnow().isoformat()
    }), 200


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """Return the logged-in employee"""
    return jsonify({'user': current_user.to_dict()}), 200


@auth_bp.route('/change-password', methods=['POST'])
@login_required
def change_password():
    """Change the logged-in employee's password"""
    data = request.get_json(silent=True) or {}
    current_password = data.get('current_password') or ''
    new_password = data.get('new_password') or ''

    if not current_password or not new_password:
        return create_error_response("Current and new password are required", 400, 'VALIDATION_ERROR')
    if len(new_password) < 8:
        return create_error_response("New password must be at least 8 characters", 400, 'VALIDATION_ERROR')
    if not current_user.check_password(current_password):
        logger.warning(f"Password change rejected for {current_user.username}: wrong current password")
        return create_error_response("Current password is incorrect", 401, 'UNAUTHORIZED')

    try:
        current_user.set_password(new_password)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error changing password for {current_user.username}: {e}")
        return create_error_response("Failed to change password", 500)

    logger.info(f"Password changed for employee {current_user.username}")
    return jsonify({'message': 'Password changed successfully', 'success': True}), 200
