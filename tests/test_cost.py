from datetime import datetime, timedelta
from types import SimpleNamespace

from services.cost import (session_minutes, cost_for_minutes, effective_minutes,
                           session_summary, present_summary, round_money)

START = datetime(2026, 3, 2, 8, 0)


def test_minutes_are_truncated():
    assert session_minutes(START, START + timedelta(minutes=90, seconds=59)) == 90


def test_minutes_never_negative():
    assert session_minutes(START, START - timedelta(minutes=5)) == 0


def test_open_session_measured_against_now():
    assert session_minutes(START, None, now=START + timedelta(minutes=45)) == 45


def test_cost_is_hours_times_rate():
    assert cost_for_minutes(90, 20.0) == 30.0
    assert cost_for_minutes(0, 20.0) == 0.0
    assert cost_for_minutes(60, None) == 0.0


def test_stored_duration_wins_for_closed_sessions():
    session = SimpleNamespace(start_time=START, end_time=START + timedelta(hours=5), duration_minutes=120)
    assert effective_minutes(session) == 120


def test_live_summary_for_open_session():
    session = SimpleNamespace(start_time=START, end_time=None, duration_minutes=None,
                              employee=SimpleNamespace(hourly_rate=20.0))
    summary = session_summary(session, now=START + timedelta(minutes=45))
    assert summary['duration_minutes'] == 45
    assert summary['duration_hours'] == 0.75
    assert summary['total_cost'] == 15.0


def test_present_summary_rounds_money_only():
    summary = {'duration_minutes': 20, 'duration_hours': 1 / 3, 'hourly_rate': 70 / 3, 'total_cost': 7.777}
    presented = present_summary(summary)
    assert presented == {'duration_minutes': 20, 'duration_hours': 0.33,
                         'hourly_rate': 23.33, 'total_cost': 7.78}
    assert present_summary(None) is None
    assert round_money(None) == 0.0
