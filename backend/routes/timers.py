# backend/routes/timers.py
from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
import logging

from models import db, WorkSession
from middleware.auth import admin_required, active_user_required
from routes import error_response, parse_int, session_payload
from services.cost import session_summary
from services.errors import ServiceError, ValidationError, ForbiddenError
from services.time_utils import parse_datetime
from services.timer_service import start_timer, stop_session, list_sessions, list_active_sessions

timers_bp = Blueprint('timers', __name__)
logger = logging.getLogger(__name__)


def _parse_period_arg(name, end_of_day=False):
    try:
        return parse_datetime(request.args.get(name), end_of_day=end_of_day)
    except ValueError as e:
        raise ValidationError(f"{name}: {e}")


@timers_bp.route('', methods=['GET'])
@login_required
def get_sessions():
    """
    List work sessions, newest first.

    Query params: employee_id, work_order_id, active=true, start_date,
    end_date. Non-admins only ever see their own sessions.
    """
    try:
        employee_id = parse_int(request.args.get('employee_id'), 'employee_id')
        work_order_id = parse_int(request.args.get('work_order_id'), 'work_order_id')
        if not current_user.is_admin:
            if employee_id and employee_id != current_user.id:
                raise ForbiddenError("You can only view your own sessions")
            employee_id = current_user.id

        rows = list_sessions(
            employee_id=employee_id,
            work_order_id=work_order_id,
            active_only=request.args.get('active') == 'true',
            start=_parse_period_arg('start_date'),
            end=_parse_period_arg('end_date', end_of_day=True)
        )
        return jsonify([session_payload(session, summary) for session, summary in rows])
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error retrieving sessions: {str(e)}")
        return jsonify({'error': 'Failed to retrieve sessions'}), 500


@timers_bp.route('', methods=['POST'])
@login_required
@active_user_required
def create_session():
    """Start a timer for employee_id on work_order_id"""
    data = request.get_json(silent=True) or {}

    try:
        employee_id = parse_int(data.get('employee_id'), 'employee_id')
        work_order_id = parse_int(data.get('work_order_id'), 'work_order_id')
        if employee_id and not current_user.is_admin and employee_id != current_user.id:
            logger.warning(f"Employee {current_user.id} tried to start a timer for employee {employee_id}")
            raise ForbiddenError("You can only start your own timers")

        session = start_timer(employee_id, work_order_id)
        return jsonify({
            'message': 'Timer started',
            'session': session_payload(session, session_summary(session))
        }), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error starting timer: {str(e)}")
        return jsonify({'error': 'Failed to start timer'}), 500


@timers_bp.route('/<int:session_id>', methods=['PATCH'])
@login_required
def stop_session_by_id(session_id):
    """Stop a session by id; employees may only stop their own"""
    try:
        session = db.session.get(WorkSession, session_id)
        if session and not current_user.is_admin and session.employee_id != current_user.id:
            raise ForbiddenError("You can only stop your own timers")

        session, summary = stop_session(session_id)
        payload = session_payload(session, summary)
        return jsonify({
            'message': 'Timer stopped',
            'session': payload,
            'summary': payload['summary']
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error stopping session {session_id}: {str(e)}")
        return jsonify({'error': 'Failed to stop timer'}), 500


@timers_bp.route('/active', methods=['GET'])
@login_required
@admin_required
def get_active_sessions():
    """All running timers with live cost"""
    try:
        rows = list_active_sessions()
        return jsonify([session_payload(session, summary) for session, summary in rows])
    except Exception as e:
        logger.error(f"Error retrieving active sessions: {str(e)}")
        return jsonify({'error': 'Failed to retrieve active sessions'}), 500
