"""Calendar date helpers.

Dates are plain calendar days with no time component. Parsing is lenient:
anything that cannot be read as a date falls back to today instead of raising.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Iterator

from habitloop.core.clock import get_clock

logger = logging.getLogger(__name__)

_ISO_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def resolve_today(today: date | None = None) -> date:
    return today if today is not None else get_clock().today()


def parse_local_date(value: object, today: date | None = None) -> date:
    """Read ``value`` as a calendar date.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` strings and full ISO
    timestamps (only the leading date part is used, so no timezone shift is
    applied). Missing or malformed input returns today.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        match = _ISO_DATE_PREFIX.match(value.strip())
        if match:
            try:
                return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
            except ValueError:
                pass
        if value:
            logger.debug("Unparseable date %r, falling back to today", value)
    return resolve_today(today)


def local_date_string(value: date | None = None) -> str:
    return (value or get_clock().today()).isoformat()


def iter_days(start: date, count: int) -> Iterator[date]:
    for offset in range(max(0, count)):
        yield start + timedelta(days=offset)


def js_weekday(day: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7
