"""Agenda and task operations applied to a user's local cache."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from habitloop.services.gamification import UserStats, XPEvent, build_user_stats, calculate_level, task_xp
from habitloop.services.insights import visible_tasks
from habitloop.services.local_store import LocalCache
from habitloop.services.redistribution import redistribute
from habitloop.services.targets import daily_target
from habitloop.services.task_generator import ensure_tasks_for_date, generate_initial_tasks
from habitloop.services.types import (
    Agenda,
    AgendaKind,
    AgendaStatus,
    DailyTask,
    FailureTag,
    RedistributionStrategy,
    TaskStatus,
)

logger = logging.getLogger(__name__)

RETARGET_FIELDS = {"total_target", "daily_target_override"}
EDITABLE_FIELDS = {
    "title",
    "priority",
    "status",
    "unit",
    "end_date",
    "buffer_tokens",
    "reminder_time",
    "list_id",
    *RETARGET_FIELDS,
}


class AgendaNotFoundError(LookupError):
    pass


class TaskNotFoundError(LookupError):
    pass


class BufferExhaustedError(RuntimeError):
    pass


class InvalidAgendaError(ValueError):
    pass


@dataclass
class CheckInResult:
    task: DailyTask
    agenda: Agenda
    redistributed: bool
    missing_amount: float
    recalculated_task_ids: List[str] = field(default_factory=list)
    xp_events: List[XPEvent] = field(default_factory=list)
    stats: Optional[UserStats] = None


def derive_status(actual_val: float, target_val: float) -> TaskStatus:
    if actual_val >= target_val:
        return TaskStatus.COMPLETED
    if actual_val > 0:
        return TaskStatus.PARTIAL
    return TaskStatus.FAILED


def _find_agenda(agendas: List[Agenda], agenda_id: str) -> Agenda:
    for agenda in agendas:
        if agenda.id == agenda_id:
            return agenda
    raise AgendaNotFoundError(agenda_id)


def create_agenda(
    cache: LocalCache,
    agenda: Agenda,
    *,
    horizon_days: int | None = None,
    today: date,
) -> Tuple[Agenda, List[DailyTask]]:
    agendas = cache.load_agendas(today=today)
    tasks = cache.load_tasks(today=today)
    initial = generate_initial_tasks(agenda, horizon_days, today=today)
    cache.save(agendas=[*agendas, agenda], tasks=[*tasks, *initial])
    logger.info("Agenda %s created with %s initial task(s)", agenda.id, len(initial))
    return agenda, initial


def update_agenda(
    cache: LocalCache,
    agenda_id: str,
    changes: Dict[str, Any],
    *,
    today: date,
) -> Tuple[Agenda, int]:
    """Apply settings edits; new targets re-target the agenda's pending tasks."""
    agendas = cache.load_agendas(today=today)
    current = _find_agenda(agendas, agenda_id)
    edits = {name: value for name, value in changes.items() if name in EDITABLE_FIELDS}
    updated = replace(current, **edits)
    if updated.end_date is not None and updated.end_date < updated.start_date:
        raise InvalidAgendaError("end_date must not be before start_date")

    tasks = cache.load_tasks(today=today)
    retargeted = 0
    if RETARGET_FIELDS & edits.keys() and updated.kind == AgendaKind.NUMERIC:
        new_target = daily_target(updated)
        rewritten: List[DailyTask] = []
        for task in tasks:
            if task.agenda_id == agenda_id and task.status == TaskStatus.PENDING and task.target_val != new_target:
                task = replace(task, target_val=new_target)
                retargeted += 1
            rewritten.append(task)
        tasks = rewritten

    cache.save(
        agendas=[updated if agenda.id == agenda_id else agenda for agenda in agendas],
        tasks=tasks if retargeted else None,
    )
    return updated, retargeted


def delete_agenda(cache: LocalCache, agenda_id: str, *, today: date) -> int:
    """Remove an agenda together with all of its tasks; returns the task count removed."""
    agendas = cache.load_agendas(today=today)
    _find_agenda(agendas, agenda_id)
    tasks = cache.load_tasks(today=today)
    remaining = [task for task in tasks if task.agenda_id != agenda_id]
    cache.save(agendas=[agenda for agenda in agendas if agenda.id != agenda_id], tasks=remaining)
    return len(tasks) - len(remaining)


def _active_on(agenda: Agenda, day: date) -> bool:
    if agenda.status != AgendaStatus.ACTIVE or day < agenda.start_date:
        return False
    return agenda.end_date is None or day <= agenda.end_date


def ensure_tasks(cache: LocalCache, day: date, *, today: date) -> List[DailyTask]:
    """Catch up ``day`` for active agendas whose date range covers it."""
    agendas = [agenda for agenda in cache.load_agendas(today=today) if _active_on(agenda, day)]
    tasks = cache.load_tasks(today=today)
    created = ensure_tasks_for_date(agendas, tasks, day)
    if created:
        cache.save(tasks=[*tasks, *created])
    return created


def check_in(
    cache: LocalCache,
    task_id: str,
    *,
    actual_val: float,
    status: Optional[TaskStatus] = None,
    failure_tag: Optional[FailureTag] = None,
    note: Optional[str] = None,
    mood: Optional[str] = None,
    strategy: Optional[RedistributionStrategy] = None,
    use_buffer: bool = False,
    now: datetime,
) -> CheckInResult:
    """Record a user's report for one task.

    Using a buffer token marks the task as skipped and spends one token of the
    agenda. A redistribution strategy moves the unmet amount of a numeric task
    onto the following tasks of the same agenda.
    """
    today = now.date()
    agendas = cache.load_agendas(today=today)
    tasks = cache.load_tasks(today=today)

    task = next((item for item in visible_tasks(agendas, tasks) if item.id == task_id), None)
    if task is None:
        raise TaskNotFoundError(task_id)
    agenda = _find_agenda(agendas, task.agenda_id)
    # Bootstrapped stats must not include this check-in yet.
    stats = cache.load_stats() or build_user_stats(tasks, agendas, today=today)

    if use_buffer:
        if agenda.buffer_tokens <= 0:
            raise BufferExhaustedError(agenda.id)
        agenda = replace(agenda, buffer_tokens=agenda.buffer_tokens - 1)
        status = TaskStatus.SKIPPED_WITH_BUFFER
    elif status is None or status == TaskStatus.PENDING:
        status = derive_status(actual_val, task.target_val)

    updated = replace(
        task,
        actual_val=actual_val,
        status=status,
        failure_tag=failure_tag,
        note=note,
        mood=mood,
    )
    tasks = [updated if item.id == task_id else item for item in tasks]

    missing = max(0, updated.target_val - updated.actual_val)
    redistributed = False
    recalculated: List[str] = []
    if strategy is not None and agenda.kind == AgendaKind.NUMERIC and missing > 0:
        before = {item.id: item.target_val for item in tasks}
        tasks = redistribute(tasks, task_id, missing, strategy)
        recalculated = [item.id for item in tasks if before.get(item.id) != item.target_val]
        redistributed = True

    xp_events: List[XPEvent] = []
    if updated.status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
        xp_events = task_xp(updated, tasks, today=today)
        stats.total_xp += sum(event.amount for event in xp_events)
        stats.level = calculate_level(stats.total_xp)
        stats.tasks_completed += 1
    if use_buffer:
        stats.buffers_used += 1

    cache.save(
        agendas=[agenda if item.id == agenda.id else item for item in agendas],
        tasks=tasks,
        stats=stats,
    )
    return CheckInResult(
        task=updated,
        agenda=agenda,
        redistributed=redistributed,
        missing_amount=missing if redistributed else 0,
        recalculated_task_ids=recalculated,
        xp_events=xp_events,
        stats=stats,
    )
