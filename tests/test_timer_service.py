from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from models import db, Employee, WorkSession
from services.errors import ValidationError, NotFoundError, ConflictError, AlreadyClosedError
from services.timer_service import (start_timer, stop_timer, stop_session, get_active_timer,
                                    list_sessions, list_active_sessions)

T0 = datetime(2026, 3, 2, 8, 0)


def test_stop_after_ninety_minutes(ctx, seed):
    start_timer(seed.mario_id, seed.order_id, now=T0)
    session, summary = stop_timer(seed.mario_id, seed.order_id, now=T0 + timedelta(minutes=90))

    assert session.end_time == T0 + timedelta(minutes=90)
    assert session.duration_minutes == 90
    assert summary['duration_minutes'] == 90
    assert summary['hourly_rate'] == 20.0
    assert summary['total_cost'] == pytest.approx(30.0)


def test_second_start_for_same_pair_conflicts(ctx, seed):
    start_timer(seed.mario_id, seed.order_id, now=T0)
    with pytest.raises(ConflictError):
        start_timer(seed.mario_id, seed.order_id, now=T0 + timedelta(minutes=1))


def test_stop_without_open_session(ctx, seed):
    with pytest.raises(NotFoundError):
        stop_timer(seed.mario_id, seed.order_id, now=T0)


def test_stopping_twice_is_rejected(ctx, seed):
    session = start_timer(seed.mario_id, seed.order_id, now=T0)
    stop_session(session.id, now=T0 + timedelta(minutes=10))

    with pytest.raises(AlreadyClosedError) as exc:
        stop_session(session.id, now=T0 + timedelta(minutes=20))
    assert exc.value.status_code == 409
    assert exc.value.code == 'ALREADY_CLOSED'
    assert db.session.get(WorkSession, session.id).duration_minutes == 10


def test_unique_index_rejects_second_open_session(ctx, seed):
    start_timer(seed.mario_id, seed.order_id, now=T0)

    # Bypass the service pre-check entirely
    db.session.add(WorkSession(employee_id=seed.mario_id, work_order_id=seed.order_id, start_time=T0))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_closed_sessions_do_not_block_a_new_start(ctx, seed):
    start_timer(seed.mario_id, seed.order_id, now=T0)
    stop_timer(seed.mario_id, seed.order_id, now=T0 + timedelta(minutes=30))

    session = start_timer(seed.mario_id, seed.order_id, now=T0 + timedelta(hours=1))
    assert session.is_active


def test_open_sessions_on_different_orders_are_allowed(ctx, seed):
    start_timer(seed.mario_id, seed.order_id, now=T0)
    start_timer(seed.mario_id, seed.other_order_id, now=T0 + timedelta(minutes=5))

    assert len(list_active_sessions(now=T0 + timedelta(minutes=10))) == 2


def test_start_validates_input(ctx, seed):
    with pytest.raises(ValidationError):
        start_timer(None, seed.order_id)
    with pytest.raises(NotFoundError):
        start_timer(seed.mario_id, 9999)
    with pytest.raises(NotFoundError):
        start_timer(9999, seed.order_id)


def test_inactive_employee_cannot_start(ctx, seed):
    db.session.get(Employee, seed.luigi_id).is_active = False
    db.session.commit()

    with pytest.raises(ValidationError):
        start_timer(seed.luigi_id, seed.order_id, now=T0)


def test_active_timer_has_live_summary(ctx, seed):
    assert get_active_timer(seed.mario_id, seed.order_id) == (None, None)

    start_timer(seed.mario_id, seed.order_id, now=T0)
    session, summary = get_active_timer(seed.mario_id, seed.order_id, now=T0 + timedelta(minutes=45))
    assert session.end_time is None
    assert summary['duration_minutes'] == 45
    assert summary['total_cost'] == pytest.approx(15.0)


def test_list_sessions_filters(ctx, seed):
    start_timer(seed.mario_id, seed.order_id, now=T0)
    stop_timer(seed.mario_id, seed.order_id, now=T0 + timedelta(minutes=60))
    start_timer(seed.luigi_id, seed.order_id, now=T0 + timedelta(hours=2))
    start_timer(seed.mario_id, seed.other_order_id, now=T0 + timedelta(days=2))

    now = T0 + timedelta(days=3)
    assert len(list_sessions(now=now)) == 3
    assert len(list_sessions(employee_id=seed.mario_id, now=now)) == 2
    assert len(list_sessions(work_order_id=seed.order_id, now=now)) == 2
    assert len(list_sessions(active_only=True, now=now)) == 2
    assert len(list_sessions(start=T0, end=T0 + timedelta(days=1), now=now)) == 2

    newest_first = [session.start_time for session, _ in list_sessions(now=now)]
    assert newest_first == sorted(newest_first, reverse=True)
