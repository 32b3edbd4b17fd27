"""
Routes package for the Auto Body Shop API.
This package contains all the Flask blueprints for the API endpoints.
"""

import logging
from flask import jsonify

from services.cost import present_summary
from services.errors import ValidationError

logger = logging.getLogger(__name__)

# (module, blueprint variable, url prefix)
BLUEPRINTS = [
    ('routes.auth', 'auth_bp', '/api/auth'),
    ('routes.employees', 'employees_bp', '/api/employees'),
    ('routes.customers', 'customers_bp', '/api/customers'),
    ('routes.work_orders', 'work_orders_bp', '/api/work-orders'),
    ('routes.timers', 'timers_bp', '/api/timers'),
    ('routes.dashboard', 'dashboard_bp', '/api/dashboard'),
    ('routes.quotes', 'quotes_bp', '/api/quotes'),
    ('routes.health', 'health_bp', '/api'),
]


def error_response(error):
    """JSON response for a ServiceError raised by the service layer."""
    return jsonify(error.to_dict()), error.status_code


def parse_int(value, field):
    """Parse an optional integer from a query string or JSON body."""
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def session_payload(session, summary):
    """Session dict with employee/order labels and its rounded cost summary."""
    payload = session.to_dict()
    payload['employee_name'] = session.employee.get_full_name() if session.employee else None
    payload['order_number'] = session.work_order.order_number if session.work_order else None
    payload['summary'] = present_summary(summary)
    return payload
