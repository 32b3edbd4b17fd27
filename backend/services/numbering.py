# backend/services/numbering.py
"""
Per-year document numbers such as PREV-2026-007.

Each (prefix, year) pair owns a row in document_counters that is
incremented with a single UPDATE inside the caller's transaction, so two
requests can never be handed the same value. The caller commits.
"""
import re
import logging
from sqlalchemy import update, select
from sqlalchemy.exc import IntegrityError

from models import db, DocumentCounter
from services.errors import ConflictError
from services.time_utils import utcnow

logger = logging.getLogger(__name__)


def format_document_number(prefix, year, value):
    return f"{prefix}-{year}-{value:03d}"


def parse_document_number(prefix, year, number):
    """Sequence part of `number` when it belongs to (prefix, year), else None."""
    if not number:
        return None
    match = re.fullmatch(rf"{re.escape(prefix)}-{year}-(\d+)", number)
    return int(match.group(1)) if match else None


def _highest_existing(prefix, year, number_column):
    """Largest sequence already issued for (prefix, year), scanning stored numbers."""
    numbers = db.session.execute(
        select(number_column).where(number_column.like(f"{prefix}-{year}-%"))
    ).scalars().all()
    values = [parse_document_number(prefix, year, n) for n in numbers]
    return max([v for v in values if v is not None], default=0)


def next_document_number(prefix, number_column, year=None):
    """
    Reserve the next number for (prefix, year).

    Args:
        prefix (str): e.g. 'PREV' or 'ORD'
        number_column: mapped column holding issued numbers, used to seed
            a counter that does not exist yet
        year (int, optional): defaults to the current UTC year

    Returns:
        str: formatted number, e.g. 'PREV-2026-001'
    """
    year = year or utcnow().year
    criteria = (DocumentCounter.prefix == prefix, DocumentCounter.year == year)

    result = db.session.execute(
        update(DocumentCounter)
        .where(*criteria)
        .values(last_value=DocumentCounter.last_value + 1)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        seed = _highest_existing(prefix, year, number_column)
        db.session.add(DocumentCounter(prefix=prefix, year=year, last_value=seed + 1))
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            logger.warning(f"Counter {prefix}-{year} was created concurrently")
            raise ConflictError('Document numbering is busy, please retry')
        logger.info(f"Created counter {prefix}-{year} starting after {seed}")

    value = db.session.execute(select(DocumentCounter.last_value).where(*criteria)).scalar_one()
    return format_document_number(prefix, year, value)
