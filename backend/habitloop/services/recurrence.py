"""Recurrence predicate: is an agenda due on a given day."""
from __future__ import annotations

from datetime import date

from habitloop.services.dates import js_weekday
from habitloop.services.types import Agenda, AgendaKind, RecurrencePattern


def is_due(day: date, agenda: Agenda) -> bool:
    if agenda.kind == AgendaKind.ONE_OFF:
        return True

    pattern = agenda.recurrence_pattern
    if pattern == RecurrencePattern.WEEKLY:
        return day.weekday() == agenda.start_date.weekday()
    if pattern == RecurrencePattern.WEEKDAYS:
        return day.weekday() < 5
    if pattern == RecurrencePattern.CUSTOM:
        # No configured days matches nothing rather than falling back to daily.
        if not agenda.recurrence_days:
            return False
        return js_weekday(day) in agenda.recurrence_days
    return True
