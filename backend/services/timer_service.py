# backend/services/timer_service.py
"""
Start/stop control for work-session timers.

An employee may hold one open session per work order. The partial unique
index on work_sessions backs this up when two starts race past the
pre-check.
"""
import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from models import db, Employee, WorkOrder, WorkSession
from services.cost import session_minutes, session_summary
from services.errors import (ValidationError, NotFoundError, ConflictError,
                             AlreadyClosedError)
from services.time_utils import utcnow

logger = logging.getLogger(__name__)


def _require_ids(employee_id, work_order_id):
    if not employee_id or not work_order_id:
        raise ValidationError('employee_id and work_order_id are required')


def find_open_session(employee_id, work_order_id):
    return WorkSession.query.filter_by(
        employee_id=employee_id,
        work_order_id=work_order_id,
        end_time=None
    ).first()


def start_timer(employee_id, work_order_id, now=None):
    """Open a session for the pair. Returns the new WorkSession."""
    _require_ids(employee_id, work_order_id)

    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise NotFoundError('Employee not found')
    if not employee.is_active:
        raise ValidationError('Employee is not active')

    work_order = db.session.get(WorkOrder, work_order_id)
    if not work_order:
        raise NotFoundError('Work order not found')

    if find_open_session(employee_id, work_order_id):
        raise ConflictError('A timer is already running for this work order')

    session = WorkSession(
        employee_id=employee_id,
        work_order_id=work_order_id,
        start_time=now or utcnow()
    )
    db.session.add(session)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning(f"Concurrent timer start rejected for employee {employee_id} on order {work_order_id}")
        raise ConflictError('A timer is already running for this work order')

    logger.info(f"Employee {employee_id} started timer {session.id} on work order {work_order_id}")
    return session


def close_session(session, now=None):
    """Close an open session and return (session, summary)."""
    if session.end_time is not None:
        raise AlreadyClosedError('This session has already been stopped')

    end_time = now or utcnow()
    session.end_time = end_time
    session.duration_minutes = session_minutes(session.start_time, end_time)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info(f"Session {session.id} stopped after {session.duration_minutes} minutes")
    return session, session_summary(session)


def stop_timer(employee_id, work_order_id, now=None):
    """Stop the open session for the pair."""
    _require_ids(employee_id, work_order_id)

    session = find_open_session(employee_id, work_order_id)
    if not session:
        raise NotFoundError('No active timer found for this work order')
    return close_session(session, now=now)


def stop_session(session_id, now=None):
    """Stop a session by id."""
    if not session_id:
        raise ValidationError('session_id is required')

    session = db.session.get(WorkSession, session_id)
    if not session:
        raise NotFoundError('Session not found')
    return close_session(session, now=now)


def get_active_timer(employee_id, work_order_id, now=None):
    """Return (session, live summary) for the pair, or (None, None)."""
    _require_ids(employee_id, work_order_id)

    session = find_open_session(employee_id, work_order_id)
    if not session:
        return None, None
    return session, session_summary(session, now=now or utcnow())


def list_sessions(employee_id=None, work_order_id=None, active_only=False,
                  start=None, end=None, now=None):
    """Sessions matching the filters, newest first, each paired with its summary."""
    now = now or utcnow()
    query = WorkSession.query.options(
        joinedload(WorkSession.employee),
        joinedload(WorkSession.work_order)
    )

    if employee_id:
        query = query.filter(WorkSession.employee_id == employee_id)
    if work_order_id:
        query = query.filter(WorkSession.work_order_id == work_order_id)
    if active_only:
        query = query.filter(WorkSession.end_time.is_(None))
    if start:
        query = query.filter(WorkSession.start_time >= start)
    if end:
        query = query.filter(WorkSession.start_time <= end)

    sessions = query.order_by(WorkSession.start_time.desc()).all()
    return [(s, session_summary(s, now=now)) for s in sessions]


def list_active_sessions(now=None):
    return list_sessions(active_only=True, now=now)
