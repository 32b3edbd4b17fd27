# backend/routes/dashboard.py
from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
import logging

from middleware.auth import admin_required
from routes import error_response, parse_int
from services.aggregation import live_snapshot, stats_for_period
from services.cost import round_money
from services.errors import ServiceError, ValidationError, ForbiddenError
from services.live_feed import clamp_interval
from services.time_utils import utcnow, parse_datetime, start_of_month

dashboard_bp = Blueprint('dashboard', __name__)
logger = logging.getLogger(__name__)


def _round_fields(row, *fields):
    return {**row, **{field: round_money(row[field]) for field in fields if field in row}}


def present_snapshot(snapshot):
    """Round hours and money in a live snapshot."""
    employees = []
    for row in snapshot['employees']:
        row = _round_fields(row, 'hourly_rate')
        if row['active_session']:
            row['active_session'] = _round_fields(row['active_session'], 'duration_hours', 'current_cost')
        employees.append(row)

    return {
        **snapshot,
        'employees': employees,
        'totals': _round_fields(snapshot['totals'], 'hours_in_progress', 'cost_in_progress'),
    }


def present_stats(result):
    """Round hours and money in a period stats result."""
    return {
        **result,
        'stats': [_round_fields(row, 'hourly_rate', 'total_hours', 'total_cost')
                  for row in result['stats']],
        'summary': _round_fields(result['summary'], 'total_hours', 'total_cost'),
    }


@dashboard_bp.route('/live', methods=['GET'])
@login_required
@admin_required
def get_live_dashboard():
    """
    Live view of who is working on what, with running cost.

    Clients poll this endpoint; `refresh_interval_seconds` tells them how
    often. An optional `interval` query arg is clamped to the allowed range.
    """
    try:
        interval = parse_int(request.args.get('interval'), 'interval')
        snapshot = present_snapshot(live_snapshot())
        snapshot['refresh_interval_seconds'] = clamp_interval(interval, current_app.config)
        return jsonify(snapshot)
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error building live dashboard: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to load live dashboard'}), 500


@dashboard_bp.route('/stats', methods=['GET'])
@login_required
def get_stats():
    """
    Per-employee hours and cost for a period.

    Query params:
        start_date: defaults to the start of the current month (shop time)
        end_date: defaults to now; a bare date covers that whole day
        employee_id: optional; non-admins always get their own figures
    """
    try:
        employee_id = parse_int(request.args.get('employee_id'), 'employee_id')
        if not current_user.is_admin:
            if employee_id and employee_id != current_user.id:
                raise ForbiddenError("You can only view your own statistics")
            employee_id = current_user.id

        now = utcnow()
        try:
            start = parse_datetime(request.args.get('start_date')) or start_of_month(now)
            end = parse_datetime(request.args.get('end_date'), end_of_day=True) or now
        except ValueError as e:
            raise ValidationError(str(e))
        if start > end:
            raise ValidationError('start_date must be before end_date')

        return jsonify(present_stats(stats_for_period(start, end, employee_id=employee_id, now=now)))
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error building stats: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to load statistics'}), 500
