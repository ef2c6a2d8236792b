"""Translate the remote snapshot tree into domain objects."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from habitloop.services.dates import parse_local_date
from habitloop.services.types import (
    Agenda,
    AgendaKind,
    AgendaStatus,
    DailyTask,
    FailureTag,
    Priority,
    RecurrencePattern,
    Subtask,
    TaskStatus,
    coerce_enum,
)


def _require_mapping(value: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected {kind} object, got {type(value).__name__}")
    return value


def _optional_date(value: Any, today: date | None) -> date | None:
    return parse_local_date(value, today=today) if value else None


def map_agenda(row: Dict[str, Any], today: date | None = None) -> Agenda:
    days = row.get("recurrence_days")
    return Agenda(
        id=str(row["id"]),
        title=row.get("title") or "",
        kind=coerce_enum(AgendaKind, row.get("type"), AgendaKind.BOOLEAN),
        start_date=parse_local_date(row.get("start_date"), today=today),
        buffer_tokens=max(0, int(row.get("buffer_tokens") or 0)),
        total_target=row.get("total_target"),
        daily_target_override=row.get("target_val"),
        unit=row.get("unit"),
        end_date=_optional_date(row.get("end_date"), today),
        due_date=_optional_date(row.get("due_date"), today),
        is_recurring=row.get("is_recurring", True) is not False,
        recurrence_pattern=coerce_enum(
            RecurrencePattern, row.get("recurrence_pattern") or "DAILY", RecurrencePattern.DAILY
        ),
        recurrence_days=tuple(int(day) for day in days) if days else None,
        priority=coerce_enum(Priority, row.get("priority") or "MEDIUM", Priority.MEDIUM),
        status=coerce_enum(AgendaStatus, row.get("status") or "ACTIVE", AgendaStatus.ACTIVE),
        reminder_time=row.get("reminder_time"),
        list_id=row.get("list_id"),
    )


def map_subtask(row: Dict[str, Any]) -> Subtask:
    return Subtask(
        id=str(row["id"]),
        task_id=str(row.get("task_id") or ""),
        title=row.get("title") or "",
        is_completed=bool(row.get("is_completed")),
    )


def map_task(row: Dict[str, Any], subtasks: Iterable[Subtask] = (), today: date | None = None) -> DailyTask:
    target = row.get("target_val")
    tag = row.get("failure_tag")
    return DailyTask(
        id=str(row["id"]),
        agenda_id=str(row["agenda_id"]),
        scheduled_date=parse_local_date(row.get("scheduled_date"), today=today),
        target_val=target if target is not None else 1,
        actual_val=row.get("actual_val") or 0,
        status=coerce_enum(TaskStatus, row.get("status"), TaskStatus.PENDING),
        failure_tag=coerce_enum(FailureTag, tag, None) if tag else None,
        note=row.get("note"),
        mood=row.get("mood"),
        was_recalculated=bool(row.get("was_recalculated")),
        subtasks=tuple(subtasks),
    )


def map_remote_snapshot(
    tree: Iterable[Dict[str, Any]],
    today: date | None = None,
) -> Tuple[List[Agenda], List[DailyTask]]:
    """Flatten agendas -> daily_tasks -> subtasks into domain collections."""
    rows = [_require_mapping(row, "agenda") for row in tree]
    task_rows: List[Dict[str, Any]] = []
    subtasks_by_task: Dict[str, List[Subtask]] = {}

    for agenda_row in rows:
        for task_row in agenda_row.get("daily_tasks") or []:
            task_row = _require_mapping(task_row, "daily task")
            task_rows.append(task_row)
            for subtask_row in task_row.get("subtasks") or []:
                subtask = map_subtask(_require_mapping(subtask_row, "subtask"))
                subtasks_by_task.setdefault(subtask.task_id, []).append(subtask)

    agendas = [map_agenda(row, today=today) for row in rows]
    tasks = [
        map_task(row, subtasks_by_task.get(str(row["id"]), ()), today=today)
        for row in task_rows
    ]
    return agendas, tasks
