# backend/services/cost.py
"""Pure pricing helpers for work sessions."""
import math

from services.time_utils import utcnow


def session_minutes(start_time, end_time=None, now=None):
    """Whole minutes between start and end (or now), truncated, never negative."""
    end = end_time or now or utcnow()
    seconds = (end - start_time).total_seconds()
    return max(0, int(math.floor(seconds / 60)))


def hours_from_minutes(minutes):
    return (minutes or 0) / 60


def cost_for_minutes(minutes, hourly_rate):
    return hours_from_minutes(minutes) * (hourly_rate or 0)


def round_money(value):
    """Two-decimal rounding, applied only when building responses."""
    return round(value or 0.0, 2)


def effective_minutes(session, now=None):
    """Stored duration for closed sessions, live duration for open ones."""
    if session.duration_minutes is not None:
        return session.duration_minutes
    return session_minutes(session.start_time, session.end_time, now=now)


def session_summary(session, now=None):
    minutes = effective_minutes(session, now=now)
    hourly_rate = session.employee.hourly_rate if session.employee else 0.0
    return {
        'duration_minutes': minutes,
        'duration_hours': hours_from_minutes(minutes),
        'hourly_rate': hourly_rate or 0.0,
        'total_cost': cost_for_minutes(minutes, hourly_rate),
    }


def present_summary(summary):
    """Round hour and money fields of a summary for the UI."""
    if summary is None:
        return None
    return {
        **summary,
        'duration_hours': round_money(summary['duration_hours']),
        'hourly_rate': round_money(summary['hourly_rate']),
        'total_cost': round_money(summary['total_cost']),
    }
