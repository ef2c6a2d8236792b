"""Conversion of domain objects into API payloads."""
from __future__ import annotations

from habitloop.api.schemas.agenda import AgendaPayload
from habitloop.api.schemas.task import SubtaskPayload, TaskPayload
from habitloop.services.targets import daily_target
from habitloop.services.types import Agenda, DailyTask


def serialize_agenda(agenda: Agenda) -> AgendaPayload:
    return AgendaPayload(
        id=agenda.id,
        title=agenda.title,
        type=agenda.kind,
        total_target=agenda.total_target,
        target_val=agenda.daily_target_override,
        daily_target=daily_target(agenda),
        unit=agenda.unit,
        start_date=agenda.start_date,
        end_date=agenda.end_date,
        due_date=agenda.due_date,
        is_recurring=agenda.is_recurring,
        recurrence_pattern=agenda.recurrence_pattern,
        recurrence_days=list(agenda.recurrence_days) if agenda.recurrence_days is not None else None,
        priority=agenda.priority,
        status=agenda.status,
        buffer_tokens=agenda.buffer_tokens,
        reminder_time=agenda.reminder_time,
        list_id=agenda.list_id,
    )


def serialize_task(task: DailyTask) -> TaskPayload:
    return TaskPayload(
        id=task.id,
        agenda_id=task.agenda_id,
        scheduled_date=task.scheduled_date,
        target_val=task.target_val,
        actual_val=task.actual_val,
        status=task.status,
        failure_tag=task.failure_tag,
        note=task.note,
        mood=task.mood,
        was_recalculated=task.was_recalculated,
        subtasks=[
            SubtaskPayload(id=subtask.id, title=subtask.title, is_completed=subtask.is_completed)
            for subtask in task.subtasks
        ],
    )
