"""
US/Eastern time helpers.

Cache timestamps, filing dates and earnings estimates are all compared as
aware Eastern datetimes, the market's reporting clock.
"""

from datetime import datetime
from typing import Optional

import pytz
from dateutil import parser as date_parser

EASTERN_TZ = pytz.timezone("US/Eastern")


def now_eastern() -> datetime:
    """Default clock for the cache."""
    return datetime.now(EASTERN_TZ)


def localize_naive(dt: datetime) -> datetime:
    """Read a datetime as Eastern wall-clock time, dropping any tzinfo (DST-correct)."""
    return EASTERN_TZ.localize(dt.replace(tzinfo=None))


def to_eastern(dt: datetime) -> datetime:
    """Convert an aware datetime to Eastern; naive values are taken as Eastern already."""
    if dt.tzinfo is None:
        return localize_naive(dt)
    return dt.astimezone(EASTERN_TZ)


def parse_datetime_eastern(value: str) -> datetime:
    """
    Parse an ISO timestamp or a bare date such as "2024-05-01".

    Values without an offset are taken as Eastern. Raises ValueError or
    OverflowError on unparseable input.
    """
    return to_eastern(date_parser.parse(value))


def try_parse_datetime_eastern(value: object) -> Optional[datetime]:
    """Like parse_datetime_eastern, but None for blanks, non-strings and garbage."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return parse_datetime_eastern(value)
    except (ValueError, OverflowError):
        return None
