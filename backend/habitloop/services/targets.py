"""Daily target resolution for agendas."""
from __future__ import annotations

import math

from habitloop.core.config import settings
from habitloop.services.types import Agenda, AgendaKind


def daily_target(agenda: Agenda, *, duration_days: int | None = None) -> float:
    """Return the per-day amount a task of ``agenda`` should aim for.

    Boolean and one-off agendas always need a single unit. Numeric agendas use
    the explicit override first, then spread ``total_target`` over the default
    duration, then fall back to a fixed amount so the result is never zero.
    """
    if agenda.kind != AgendaKind.NUMERIC:
        return 1

    override = agenda.daily_target_override
    if override is not None and override > 0:
        return override

    if agenda.total_target is not None and agenda.total_target > 0:
        days = duration_days or settings.default_duration_days
        return math.ceil(agenda.total_target / days)

    return settings.fallback_daily_target
