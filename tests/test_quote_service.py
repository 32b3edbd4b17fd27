from datetime import datetime, timedelta

import pytest

from models import db, Quote, WorkSession
from services.errors import NotFoundError
from services.quote_service import generate_quote_from_order, line_total

T0 = datetime(2026, 3, 2, 8, 0)
NOW = datetime(2026, 3, 5, 17, 0)


def _add_closed(employee_id, order_id, start, minutes):
    db.session.add(WorkSession(employee_id=employee_id, work_order_id=order_id, start_time=start,
                               end_time=start + timedelta(minutes=minutes), duration_minutes=minutes))
    db.session.commit()


def test_line_total_includes_vat():
    assert line_total(2, 50.0, 22.0) == pytest.approx(122.0)
    assert line_total(1, 10.0, 0) == 10.0


def test_quote_from_two_employees(ctx, seed):
    _add_closed(seed.mario_id, seed.order_id, T0, 120)
    _add_closed(seed.luigi_id, seed.order_id, T0 + timedelta(hours=3), 60)
    # Still running, must not be billed
    db.session.add(WorkSession(employee_id=seed.luigi_id, work_order_id=seed.order_id,
                               start_time=NOW - timedelta(minutes=30)))
    db.session.commit()

    quote, summary = generate_quote_from_order(seed.order_id, now=NOW)

    assert summary['total_hours'] == pytest.approx(3.0)
    assert summary['total_cost'] == pytest.approx(70.0)
    assert summary['session_count'] == 2

    assert quote.quote_number == 'PREV-2026-001'
    assert quote.status == 'draft'
    assert quote.customer_id == seed.customer_id
    assert quote.vehicle_id == seed.vehicle_id
    assert quote.work_order_id == seed.order_id
    assert quote.title == 'Completed work - Front bumper repair'
    assert quote.expires_at == NOW + timedelta(days=30)

    assert len(quote.line_items) == 1
    line = quote.line_items[0]
    assert line.description == 'Labor – 3.00 hours'
    assert line.quantity == pytest.approx(3.0)
    assert line.unit_price == pytest.approx(70.0 / 3)
    assert line.vat_rate == 22.0
    assert line.total == pytest.approx(70.0 * 1.22)
    assert quote.total_amount == pytest.approx(70.0 * 1.22)
    assert quote.to_dict()['line_items'][0]['unit_price'] == 23.33

    assert 'Order: ORD-2026-001' in quote.notes
    assert 'Vehicle: Fiat Panda (AB123CD)' in quote.notes
    assert 'Mario Rossi: 2.00h × €20.00/h = €40.00' in quote.notes
    assert 'Luigi Bianchi: 1.00h × €30.00/h = €30.00' in quote.notes


def test_quote_numbers_increase(ctx, seed):
    _add_closed(seed.mario_id, seed.order_id, T0, 60)

    first, _ = generate_quote_from_order(seed.order_id, now=NOW)
    second, _ = generate_quote_from_order(seed.order_id, now=NOW)

    assert first.quote_number == 'PREV-2026-001'
    assert second.quote_number == 'PREV-2026-002'
    assert Quote.query.count() == 2


def test_quote_without_closed_sessions_has_no_labor_line(ctx, seed):
    quote, summary = generate_quote_from_order(seed.other_order_id, now=NOW)

    assert quote.line_items == []
    assert quote.total_amount == 0
    assert summary['total_hours'] == 0
    assert summary['employees'] == []


def test_quote_for_missing_order(ctx, seed):
    with pytest.raises(NotFoundError):
        generate_quote_from_order(9999, now=NOW)
    assert Quote.query.count() == 0
