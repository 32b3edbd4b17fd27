# backend/routes/employees.py
from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError
import logging
import math
import re

from models import db, Employee
from models.employee import ROLES
from middleware.auth import admin_required

employees_bp = Blueprint('employees', __name__)
logger = logging.getLogger(__name__)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def parse_hourly_rate(value):
    """Return a finite, non-negative float or raise ValueError."""
    rate = float(value)
    if not math.isfinite(rate):
        raise ValueError('Hourly rate must be a finite number')
    if rate < 0:
        raise ValueError('Hourly rate cannot be negative')
    return rate


def parse_active_flag(value):
    """Accept only JSON booleans for is_active."""
    if not isinstance(value, bool):
        raise ValueError('is_active must be true or false')
    return value


@employees_bp.route('', methods=['GET'])
@login_required
def get_employees():
    """List employees, optionally only active ones"""
    try:
        query = Employee.query
        if request.args.get('active') == 'true':
            query = query.filter(Employee.is_active.is_(True))
        employees = query.order_by(Employee.last_name.asc(), Employee.first_name.asc()).all()
        return jsonify([employee.to_dict() for employee in employees])
    except Exception as e:
        logger.error(f"Error retrieving employees: {str(e)}")
        return jsonify({'error': 'Failed to retrieve employees'}), 500


@employees_bp.route('', methods=['POST'])
@login_required
@admin_required
def create_employee():
    """Create a new employee"""
    data = request.get_json(silent=True) or {}

    username = (data.get('username') or '').strip()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not username or not email or not password:
        return jsonify({'error': 'Username, email and password are required'}), 400
    if not re.match(EMAIL_PATTERN, email):
        return jsonify({'error': 'Please enter a valid email address'}), 400

    role = data.get('role', 'employee')
    if role not in ROLES:
        return jsonify({'error': f"Role must be one of: {', '.join(ROLES)}"}), 400

    try:
        hourly_rate = parse_hourly_rate(data.get('hourly_rate', 0))
    except (TypeError, ValueError) as e:
        return jsonify({'error': f'Invalid hourly rate: {e}'}), 400

    try:
        is_active = parse_active_flag(data.get('is_active', True))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    try:
        employee = Employee(
            username=username,
            email=email,
            first_name=(data.get('first_name') or '').strip() or None,
            last_name=(data.get('last_name') or '').strip() or None,
            role=role,
            hourly_rate=hourly_rate,
            is_active=is_active
        )
        employee.set_password(password)
        db.session.add(employee)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning(f"Duplicate username or email for new employee '{username}'")
        return jsonify({'error': 'Username or email already exists'}), 409
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating employee: {str(e)}")
        return jsonify({'error': 'Failed to create employee'}), 500

    logger.info(f"Admin {current_user.username} created employee {employee.username} (ID: {employee.id})")
    return jsonify(employee.to_dict()), 201


@employees_bp.route('/<int:employee_id>', methods=['GET'])
@login_required
def get_employee(employee_id):
    """Get a specific employee"""
    employee = db.session.get(Employee, employee_id)
    if not employee:
        return jsonify({'error': 'Employee not found', 'code': 'NOT_FOUND'}), 404
    return jsonify(employee.to_dict())


@employees_bp.route('/<int:employee_id>', methods=['PUT'])
@login_required
@admin_required
def update_employee(employee_id):
    """Update rate, role, active flag or names of an employee"""
    employee = db.session.get(Employee, employee_id)
    if not employee:
        return jsonify({'error': 'Employee not found', 'code': 'NOT_FOUND'}), 404

    data = request.get_json(silent=True) or {}

    if 'hourly_rate' in data:
        try:
            employee.hourly_rate = parse_hourly_rate(data['hourly_rate'])
        except (TypeError, ValueError) as e:
            return jsonify({'error': f'Invalid hourly rate: {e}'}), 400

    if 'role' in data:
        if data['role'] not in ROLES:
            return jsonify({'error': f"Role must be one of: {', '.join(ROLES)}"}), 400
        employee.role = data['role']

    if 'is_active' in data:
        try:
            employee.is_active = parse_active_flag(data['is_active'])
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

    for field in ('first_name', 'last_name'):
        if field in data:
            setattr(employee, field, (data[field] or '').strip() or None)

    if 'email' in data:
        email = (data['email'] or '').strip()
        if not re.match(EMAIL_PATTERN, email):
            return jsonify({'error': 'Please enter a valid email address'}), 400
        employee.email = email

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'Email already exists'}), 409
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating employee {employee_id}: {str(e)}")
        return jsonify({'error': 'Failed to update employee'}), 500

    logger.info(f"Employee {employee_id} updated by {current_user.username}")
    return jsonify(employee.to_dict())
