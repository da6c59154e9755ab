"""Timezone utilities.

All instants are handled as timezone-aware UTC. The store keeps naive UTC
values, so repositories convert with ``to_storage`` / ``from_storage``.
"""

from datetime import datetime, time
from typing import Optional

import pytz
from dateutil import parser as date_parser

UTC = pytz.utc


def now_utc() -> datetime:
    """Return current time in UTC."""
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC."""
    if dt.tzinfo is None:
        # Assume naive datetime is already UTC
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def parse_datetime_utc(value: str, default_tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """
    Parse a datetime string and return it in UTC.

    If no timezone is provided in the string, assumes UTC.
    """
    dt = date_parser.parse(value)
    if dt.tzinfo is None:
        tz = default_tz or UTC
        dt = tz.localize(dt)
    return to_utc(dt)


def end_of_day_utc(dt: datetime) -> datetime:
    """Return the last representable instant of dt's UTC calendar day."""
    day = to_utc(dt).date()
    return UTC.localize(datetime.combine(day, time(23, 59, 59, 999999)))


def to_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert an instant to the naive UTC form kept in the database."""
    if dt is None:
        return None
    return to_utc(dt).replace(tzinfo=None)


def from_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert a naive UTC database value back to an aware instant."""
    if dt is None:
        return None
    return to_utc(dt)
