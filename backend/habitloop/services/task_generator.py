"""Expansion of agendas into daily tasks."""
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, List, Set, Tuple
from uuid import uuid4

from habitloop.core.config import settings
from habitloop.services.dates import iter_days, resolve_today
from habitloop.services.recurrence import is_due
from habitloop.services.targets import daily_target
from habitloop.services.types import Agenda, DailyTask, TaskStatus

logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid4())


def _pending_task(agenda: Agenda, day: date, target: float) -> DailyTask:
    return DailyTask(
        id=new_id(),
        agenda_id=agenda.id,
        scheduled_date=day,
        target_val=target,
        actual_val=0,
        status=TaskStatus.PENDING,
    )


def generation_window_days(agenda: Agenda, horizon_days: int) -> int:
    if agenda.end_date is not None:
        return max(0, (agenda.end_date - agenda.start_date).days + 1)

    override = agenda.daily_target_override
    if agenda.total_target and override is not None and override > 0:
        return math.ceil(agenda.total_target / override)

    return horizon_days


def generate_initial_tasks(
    agenda: Agenda,
    horizon_days: int | None = None,
    *,
    today: date | None = None,
) -> List[DailyTask]:
    """Create the first batch of tasks for a freshly created agenda."""
    target = daily_target(agenda)

    if not agenda.recurring:
        day = agenda.due_date or resolve_today(today)
        return [_pending_task(agenda, day, target)]

    horizon = horizon_days if horizon_days is not None else settings.initial_generation_days
    window = generation_window_days(agenda, horizon)
    tasks = [
        _pending_task(agenda, day, target)
        for day in iter_days(agenda.start_date, window)
        if is_due(day, agenda)
    ]
    logger.debug("Generated %s initial tasks for agenda %s over %s days", len(tasks), agenda.id, window)
    return tasks


def ensure_tasks_for_date(
    agendas: Iterable[Agenda],
    existing_tasks: Iterable[DailyTask],
    day: date,
) -> List[DailyTask]:
    """Return the tasks missing for ``day``; safe to call repeatedly.

    Only recurring agendas that are due on ``day`` and have no task there yet
    get one.
    """
    scheduled: Set[Tuple[str, date]] = {(task.agenda_id, task.scheduled_date) for task in existing_tasks}
    created: List[DailyTask] = []

    for agenda in agendas:
        if not agenda.recurring or (agenda.id, day) in scheduled or not is_due(day, agenda):
            continue
        created.append(_pending_task(agenda, day, daily_target(agenda)))
        scheduled.add((agenda.id, day))

    return created
