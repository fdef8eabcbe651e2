"""
Timestamp helpers. All stored timestamps are naive UTC.
"""
import re
from datetime import datetime, timezone, timedelta

_DATE_ONLY = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime string into naive UTC.

    Raises ValueError for anything that is not a string in ISO format.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError('Expected an ISO 8601 string')
    return to_naive_utc(datetime.fromisoformat(value.strip().replace('Z', '+00:00')))


def parse_range_end(value: str) -> datetime:
    """Parse the upper bound of a date range.

    A bare date (YYYY-MM-DD) covers the whole day, so it is moved to the
    last microsecond of that day.
    """
    parsed = parse_iso_datetime(value)
    if _DATE_ONLY.match(value.strip()):
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    return parsed


def isoformat_or_none(value):
    return value.isoformat() if value else None
