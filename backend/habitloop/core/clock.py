"""Swappable source of "today" and "now"."""
from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from habitloop.core.config import settings


class Clock:
    """Base interface for clocks."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall clock in the configured timezone."""

    def __init__(self, timezone: str | None = None):
        self.tz = ZoneInfo(timezone or settings.timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock frozen at a given instant; used by tests and replays."""

    def __init__(self, moment: datetime | date):
        if not isinstance(moment, datetime):
            moment = datetime(moment.year, moment.month, moment.day, 12, 0)
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Return the process-wide clock (also used as a FastAPI dependency)."""
    return _clock


def set_clock(clock: Clock) -> Clock:
    """Replace the process-wide clock and return the previous one."""
    global _clock
    previous = _clock
    _clock = clock
    return previous
