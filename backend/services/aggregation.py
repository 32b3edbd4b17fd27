# backend/services/aggregation.py
"""
Read-time rollups of work sessions: the live dashboard snapshot, the
per-period statistics and the per-order labor summary.

Nothing here is cached; every call rescans the sessions it needs. A
failed fetch is logged and treated as an empty result so the dashboard
degrades to zeros instead of erroring.
"""
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from models import db, Employee, WorkOrder, WorkSession
from services.cost import effective_minutes, hours_from_minutes, cost_for_minutes
from services.time_utils import utcnow, to_iso

logger = logging.getLogger(__name__)

ORDERS_IN_PROGRESS_LIMIT = 10


def _safe_fetch(description, fetch):
    try:
        return fetch()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error fetching {description}: {e}")
        return []


def group_by_employee(sessions, now=None):
    """
    Group sessions per employee.

    Returns a dict keyed by employee id. Each entry holds the employee,
    total minutes, hours and cost, and session counts. Open sessions are
    measured against `now`.
    """
    now = now or utcnow()
    groups = {}
    for session in sessions:
        employee = session.employee
        entry = groups.get(session.employee_id)
        if entry is None:
            entry = groups[session.employee_id] = {
                'employee': employee,
                'hourly_rate': (employee.hourly_rate if employee else 0.0) or 0.0,
                'total_minutes': 0,
                'session_count': 0,
                'active_sessions': 0,
                'completed_sessions': 0,
            }

        entry['total_minutes'] += effective_minutes(session, now=now)
        entry['session_count'] += 1
        if session.end_time is None:
            entry['active_sessions'] += 1
        else:
            entry['completed_sessions'] += 1

    for entry in groups.values():
        entry['total_hours'] = hours_from_minutes(entry['total_minutes'])
        entry['total_cost'] = cost_for_minutes(entry['total_minutes'], entry['hourly_rate'])
        entry['average_session_minutes'] = (
            entry['total_minutes'] // entry['session_count'] if entry['session_count'] else 0
        )
    return groups


def _fetch_open_sessions():
    return (WorkSession.query
            .options(joinedload(WorkSession.employee),
                     joinedload(WorkSession.work_order).joinedload(WorkOrder.vehicle))
            .filter(WorkSession.end_time.is_(None))
            .order_by(WorkSession.start_time.desc())
            .all())


def live_snapshot(now=None):
    """Who is working right now, on what, and what it is costing."""
    now = now or utcnow()

    employees = _safe_fetch('active employees', lambda: (
        Employee.query
        .filter(Employee.is_active.is_(True))
        .order_by(Employee.last_name.asc(), Employee.first_name.asc())
        .all()
    ))
    open_sessions = _safe_fetch('open sessions', _fetch_open_sessions)

    # Sessions arrive newest first; keep every one but show the latest per employee
    sessions_by_employee = {}
    for session in open_sessions:
        sessions_by_employee.setdefault(session.employee_id, []).append(session)

    # Totals include sessions of employees deactivated while their timer ran
    hours_in_progress = 0.0
    cost_in_progress = 0.0
    for session in open_sessions:
        minutes = effective_minutes(session, now=now)
        rate = session.employee.hourly_rate if session.employee else 0.0
        hours_in_progress += hours_from_minutes(minutes)
        cost_in_progress += cost_for_minutes(minutes, rate)

    employee_rows = []
    working = 0

    for employee in employees:
        row = {
            'id': employee.id,
            'first_name': employee.first_name,
            'last_name': employee.last_name,
            'email': employee.email,
            'role': employee.role,
            'hourly_rate': employee.hourly_rate or 0.0,
            'status': 'available',
            'active_session': None,
            'open_sessions': 0,
        }
        sessions = sessions_by_employee.get(employee.id, [])
        if sessions:
            working += 1
            row['status'] = 'working'
            row['open_sessions'] = len(sessions)

            latest = sessions[0]
            order = latest.work_order
            minutes = effective_minutes(latest, now=now)
            row['active_session'] = {
                'id': latest.id,
                'work_order_id': latest.work_order_id,
                'order_number': order.order_number if order else None,
                'description': order.description if order else None,
                'vehicle': order.vehicle_label() if order else None,
                'start_time': to_iso(latest.start_time),
                'duration_minutes': minutes,
                'duration_hours': hours_from_minutes(minutes),
                'current_cost': cost_for_minutes(minutes, employee.hourly_rate),
            }
        employee_rows.append(row)

    orders = _safe_fetch('orders in progress', lambda: (
        WorkOrder.query
        .filter(WorkOrder.status.in_(['in_progress', 'waiting']))
        .order_by(WorkOrder.start_date.desc(), WorkOrder.id.desc())
        .limit(ORDERS_IN_PROGRESS_LIMIT)
        .all()
    ))
    order_rows = []
    for order in orders:
        active_employees = [
            {
                'id': s.employee.id,
                'first_name': s.employee.first_name,
                'last_name': s.employee.last_name,
            }
            for s in open_sessions if s.work_order_id == order.id and s.employee
        ]
        order_rows.append({
            'id': order.id,
            'order_number': order.order_number,
            'description': order.description,
            'status': order.status,
            'start_date': to_iso(order.start_date),
            'vehicle': order.vehicle_label(),
            'customer_name': order.customer.get_full_name() if order.customer else None,
            'active_employees': active_employees,
        })

    return {
        'employees': employee_rows,
        'totals': {
            'total_employees': len(employee_rows),
            'employees_working': working,
            'employees_available': len(employee_rows) - working,
            'hours_in_progress': hours_in_progress,
            'cost_in_progress': cost_in_progress,
        },
        'orders_in_progress': order_rows,
        'timestamp': to_iso(now),
    }


def _fetch_sessions_in_period(start, end, employee_id=None):
    query = (WorkSession.query
             .options(joinedload(WorkSession.employee))
             .filter(WorkSession.start_time >= start,
                     WorkSession.start_time <= end))
    if employee_id:
        query = query.filter(WorkSession.employee_id == employee_id)
    return query.all()


def stats_for_period(start, end, employee_id=None, now=None):
    """Per-employee totals for sessions whose start_time falls in [start, end]."""
    now = now or utcnow()
    sessions = _safe_fetch('sessions for period',
                           lambda: _fetch_sessions_in_period(start, end, employee_id))
    groups = group_by_employee(sessions, now=now)

    stats = []
    for emp_id, entry in groups.items():
        employee = entry['employee']
        stats.append({
            'employee_id': emp_id,
            'first_name': employee.first_name if employee else None,
            'last_name': employee.last_name if employee else None,
            'email': employee.email if employee else None,
            'hourly_rate': entry['hourly_rate'],
            'total_minutes': entry['total_minutes'],
            'total_hours': entry['total_hours'],
            'total_cost': entry['total_cost'],
            'session_count': entry['session_count'],
            'active_sessions': entry['active_sessions'],
            'completed_sessions': entry['completed_sessions'],
            'average_session_minutes': entry['average_session_minutes'],
        })

    stats.sort(key=lambda row: row['total_hours'], reverse=True)

    return {
        'period': {
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
        },
        'stats': stats,
        'summary': {
            'total_employees': len(stats),
            'total_hours': sum(row['total_hours'] for row in stats),
            'total_cost': sum(row['total_cost'] for row in stats),
            'total_sessions': sum(row['session_count'] for row in stats),
            'active_sessions': sum(row['active_sessions'] for row in stats),
        }
    }


def order_labor_summary(work_order_id, now=None):
    """Labor totals for a single work order, broken down per employee."""
    now = now or utcnow()
    sessions = _safe_fetch(f'sessions for work order {work_order_id}', lambda: (
        WorkSession.query
        .options(joinedload(WorkSession.employee))
        .filter(WorkSession.work_order_id == work_order_id)
        .all()
    ))
    groups = group_by_employee(sessions, now=now)

    employees = []
    for emp_id, entry in groups.items():
        employee = entry['employee']
        employees.append({
            'employee_id': emp_id,
            'name': employee.get_full_name() if employee else None,
            'hourly_rate': entry['hourly_rate'],
            'total_minutes': entry['total_minutes'],
            'total_hours': entry['total_hours'],
            'total_cost': entry['total_cost'],
            'active_sessions': entry['active_sessions'],
            'completed_sessions': entry['completed_sessions'],
        })

    total_minutes = sum(e['total_minutes'] for e in employees)
    return {
        'work_order_id': work_order_id,
        'total_minutes': total_minutes,
        'total_hours': hours_from_minutes(total_minutes),
        'total_cost': sum(e['total_cost'] for e in employees),
        'session_count': len(sessions),
        'active_sessions': sum(e['active_sessions'] for e in employees),
        'employees': employees,
    }
