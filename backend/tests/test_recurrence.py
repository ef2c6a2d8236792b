from __future__ import annotations

from datetime import date, timedelta

from habitloop.services.dates import iter_days, js_weekday
from habitloop.services.recurrence import is_due
from habitloop.services.types import Agenda, AgendaKind, RecurrencePattern

MONDAY = date(2024, 1, 1)


def _agenda(pattern: RecurrencePattern, days=None, kind: AgendaKind = AgendaKind.BOOLEAN) -> Agenda:
    return Agenda(
        id="a1",
        title="Read",
        kind=kind,
        start_date=MONDAY,
        recurrence_pattern=pattern,
        recurrence_days=days,
    )


def test_daily_is_due_every_day() -> None:
    agenda = _agenda(RecurrencePattern.DAILY)
    assert all(is_due(day, agenda) for day in iter_days(MONDAY, 14))


def test_weekly_matches_start_weekday_only() -> None:
    agenda = _agenda(RecurrencePattern.WEEKLY)
    due = [day for day in iter_days(MONDAY, 21) if is_due(day, agenda)]
    assert due == [MONDAY, MONDAY + timedelta(days=7), MONDAY + timedelta(days=14)]


def test_weekdays_skip_weekend() -> None:
    agenda = _agenda(RecurrencePattern.WEEKDAYS)
    due = [day for day in iter_days(MONDAY, 7) if is_due(day, agenda)]
    assert len(due) == 5
    assert date(2024, 1, 6) not in due
    assert date(2024, 1, 7) not in due


def test_custom_uses_sunday_based_weekdays() -> None:
    # 0 = Sunday, 3 = Wednesday
    agenda = _agenda(RecurrencePattern.CUSTOM, days=(0, 3))
    due = [day for day in iter_days(MONDAY, 7) if is_due(day, agenda)]
    assert due == [date(2024, 1, 3), date(2024, 1, 7)]
    assert js_weekday(date(2024, 1, 7)) == 0


def test_custom_without_days_never_matches() -> None:
    for days in (None, ()):
        agenda = _agenda(RecurrencePattern.CUSTOM, days=days)
        assert not any(is_due(day, agenda) for day in iter_days(MONDAY, 14))


def test_one_off_is_always_due() -> None:
    agenda = _agenda(RecurrencePattern.CUSTOM, days=(), kind=AgendaKind.ONE_OFF)
    assert is_due(date(2024, 1, 6), agenda)
