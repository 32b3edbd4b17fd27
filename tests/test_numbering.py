import re

from models import db, Quote, WorkOrder, DocumentCounter
from services.numbering import format_document_number, parse_document_number, next_document_number


def test_format_and_parse():
    assert format_document_number('PREV', 2026, 7) == 'PREV-2026-007'
    assert format_document_number('PREV', 2026, 1234) == 'PREV-2026-1234'
    assert parse_document_number('PREV', 2026, 'PREV-2026-042') == 42
    assert parse_document_number('PREV', 2026, 'PREV-2025-042') is None
    assert parse_document_number('PREV', 2026, 'ORD-2026-042') is None
    assert parse_document_number('PREV', 2026, None) is None


def test_numbers_strictly_increase_within_a_year(ctx, seed):
    numbers = [next_document_number('PREV', Quote.quote_number, year=2026) for _ in range(3)]
    db.session.commit()

    assert numbers == ['PREV-2026-001', 'PREV-2026-002', 'PREV-2026-003']
    assert all(re.fullmatch(r'PREV-\d{4}-\d{3}', n) for n in numbers)


def test_each_year_has_its_own_sequence(ctx, seed):
    assert next_document_number('PREV', Quote.quote_number, year=2026) == 'PREV-2026-001'
    assert next_document_number('PREV', Quote.quote_number, year=2027) == 'PREV-2027-001'
    assert next_document_number('PREV', Quote.quote_number, year=2026) == 'PREV-2026-002'
    db.session.commit()
    assert DocumentCounter.query.count() == 2


def test_counter_seeded_from_existing_numbers(ctx, seed):
    # The seed data already holds ORD-2026-001 and ORD-2026-002
    assert next_document_number('ORD', WorkOrder.order_number, year=2026) == 'ORD-2026-003'

    db.session.add(Quote(quote_number='PREV-2026-007', customer_id=seed.customer_id, title='Imported'))
    db.session.commit()
    assert next_document_number('PREV', Quote.quote_number, year=2026) == 'PREV-2026-008'


def test_counter_rolls_back_with_the_transaction(ctx, seed):
    next_document_number('PREV', Quote.quote_number, year=2026)
    db.session.commit()
    next_document_number('PREV', Quote.quote_number, year=2026)
    db.session.rollback()

    assert next_document_number('PREV', Quote.quote_number, year=2026) == 'PREV-2026-002'
