# backend/services/time_utils.py
import pytz
import logging
from datetime import datetime, date, time, timezone
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 'Europe/Rome'


def utcnow():
    """Current time as a naive UTC datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def shop_timezone():
    name = DEFAULT_TIMEZONE
    if has_app_context():
        name = current_app.config.get('TIMEZONE', DEFAULT_TIMEZONE)
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone '{name}', falling back to {DEFAULT_TIMEZONE}")
        return pytz.timezone(DEFAULT_TIMEZONE)


def to_iso(value):
    """Format a stored datetime for API responses."""
    if not value:
        return None
    return value.isoformat()


def parse_datetime(value, end_of_day=False):
    """
    Parse an ISO date or datetime string into a naive UTC datetime.

    Accepts a trailing 'Z'. Values with an offset are converted to UTC,
    naive values are taken as UTC already. A bare date becomes midnight,
    or the last instant of that day when `end_of_day` is set.

    Raises:
        ValueError: if the string cannot be parsed
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)
    else:
        date_str = str(value).strip()
        try:
            return parse_datetime(date.fromisoformat(date_str), end_of_day=end_of_day)
        except ValueError:
            pass
        if date_str.endswith('Z'):
            date_str = date_str[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(date_str)
        except ValueError as e:
            logger.error(f"Error parsing datetime '{value}': {e}")
            raise ValueError(f"Invalid date format: {value}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(pytz.utc).replace(tzinfo=None)
    return parsed


def start_of_month(now=None):
    """First instant of the current month in the shop timezone, as naive UTC."""
    now = now or utcnow()
    tz = shop_timezone()
    local_now = pytz.utc.localize(now).astimezone(tz)
    local_start = tz.localize(datetime(local_now.year, local_now.month, 1))
    return local_start.astimezone(pytz.utc).replace(tzinfo=None)
