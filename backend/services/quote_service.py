# backend/services/quote_service.py
import logging
from datetime import timedelta
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from models import db, WorkOrder, WorkSession, Quote, QuoteLineItem
from services.aggregation import group_by_employee
from services.errors import NotFoundError
from services.numbering import next_document_number
from services.time_utils import utcnow

logger = logging.getLogger(__name__)


def line_total(quantity, unit_price, vat_rate):
    """Line amount including VAT."""
    return quantity * unit_price * (1 + vat_rate / 100)


def _labor_notes(order, breakdown, currency):
    notes = f"Order: {order.order_number}\n"
    if order.vehicle:
        notes += f"Vehicle: {order.vehicle.label()}\n"
    notes += "\nLabor detail:\n"
    for row in breakdown:
        notes += (f"- {row['name']}: {row['hours']:.2f}h × {currency}{row['hourly_rate']:.2f}/h"
                  f" = {currency}{row['total']:.2f}\n")
    return notes


def generate_quote_from_order(work_order_id, now=None):
    """
    Build a draft quote from the closed labor sessions of a work order.

    One labor line priced at the blended hourly cost (total cost / total
    hours) is added when any hours were logged. Each employee's hours and
    subtotal are itemized in the notes.

    Returns:
        tuple: (Quote, summary dict with raw totals and employee breakdown)

    Raises:
        NotFoundError: if the work order does not exist
    """
    now = now or utcnow()
    order = db.session.get(WorkOrder, work_order_id)
    if not order:
        raise NotFoundError('Work order not found')

    sessions = (WorkSession.query
                .options(joinedload(WorkSession.employee))
                .filter(WorkSession.work_order_id == order.id,
                        WorkSession.end_time.isnot(None))
                .order_by(WorkSession.start_time.asc())
                .all())

    groups = group_by_employee(sessions, now=now)
    breakdown = [
        {
            'employee_id': emp_id,
            'name': entry['employee'].get_full_name() if entry['employee'] else f"Employee {emp_id}",
            'hours': entry['total_hours'],
            'hourly_rate': entry['hourly_rate'],
            'total': entry['total_cost'],
        }
        for emp_id, entry in groups.items()
    ]
    total_hours = sum(row['hours'] for row in breakdown)
    total_cost = sum(row['total'] for row in breakdown)

    config = current_app.config
    vat_rate = config.get('DEFAULT_VAT_RATE', 22.0)
    currency = config.get('CURRENCY_SYMBOL', '€')

    line_items = []
    if total_hours > 0:
        unit_price = total_cost / total_hours
        line_items.append(QuoteLineItem(
            description=f"Labor – {total_hours:.2f} hours",
            quantity=total_hours,
            unit_price=unit_price,
            vat_rate=vat_rate,
            total=line_total(total_hours, unit_price, vat_rate)
        ))
    else:
        logger.warning(f"Work order {order.id} has no closed sessions, quote will have no labor line")

    try:
        quote_number = next_document_number(config.get('QUOTE_NUMBER_PREFIX', 'PREV'),
                                            Quote.quote_number, year=now.year)
        quote = Quote(
            quote_number=quote_number,
            customer_id=order.customer_id,
            vehicle_id=order.vehicle_id,
            work_order_id=order.id,
            title=f"Completed work - {order.description}",
            description=order.description,
            status='draft',
            expires_at=now + timedelta(days=config.get('QUOTE_VALIDITY_DAYS', 30)),
            total_amount=sum(item.total for item in line_items),
            notes=_labor_notes(order, breakdown, currency),
            line_items=line_items
        )
        db.session.add(quote)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info(f"Generated quote {quote.quote_number} from work order {order.order_number} "
                f"({len(sessions)} sessions, {total_hours:.2f} hours)")

    summary = {
        'total_hours': total_hours,
        'total_cost': total_cost,
        'session_count': len(sessions),
        'employees': breakdown,
    }
    return quote, summary
