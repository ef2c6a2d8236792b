"""Domain types for agendas and their daily tasks.

All types are frozen dataclasses; the engine never mutates them and always
returns new objects built with ``dataclasses.replace``. ``to_dict``/``from_dict``
produce the camelCase JSON shape kept in the local cache.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from habitloop.services.dates import local_date_string, parse_local_date


class AgendaKind(str, Enum):
    NUMERIC = "NUMERIC"
    BOOLEAN = "BOOLEAN"
    ONE_OFF = "ONE_OFF"


class RecurrencePattern(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    WEEKDAYS = "WEEKDAYS"
    CUSTOM = "CUSTOM"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    SKIPPED_WITH_BUFFER = "SKIPPED_WITH_BUFFER"
    FAILED = "FAILED"


class FailureTag(str, Enum):
    SICK = "Sick"
    WORK = "Work Overload"
    TIRED = "Tired"
    DISTRACTED = "Distracted"
    OTHER = "Other"
    NONE = "NONE"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AgendaStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"
    ARCHIVED = "ARCHIVED"


class RedistributionStrategy(str, Enum):
    TOMORROW = "TOMORROW"
    SPREAD = "SPREAD"


SUCCESS_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.SKIPPED_WITH_BUFFER})


def is_success(status: TaskStatus) -> bool:
    return status in SUCCESS_STATUSES


def coerce_enum(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Agenda:
    id: str
    title: str
    kind: AgendaKind
    start_date: date
    buffer_tokens: int = 0
    total_target: Optional[float] = None
    daily_target_override: Optional[float] = None
    unit: Optional[str] = None
    end_date: Optional[date] = None
    due_date: Optional[date] = None
    is_recurring: bool = True
    recurrence_pattern: RecurrencePattern = RecurrencePattern.DAILY
    # Weekday numbers with 0 = Sunday, matching the remote store.
    recurrence_days: Optional[Tuple[int, ...]] = None
    priority: Priority = Priority.MEDIUM
    status: AgendaStatus = AgendaStatus.ACTIVE
    reminder_time: Optional[str] = None
    list_id: Optional[str] = None

    @property
    def recurring(self) -> bool:
        return self.kind != AgendaKind.ONE_OFF and self.is_recurring

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.kind.value,
            "startDate": local_date_string(self.start_date),
            "bufferTokens": self.buffer_tokens,
            "totalTarget": self.total_target,
            "targetVal": self.daily_target_override,
            "unit": self.unit,
            "endDate": local_date_string(self.end_date) if self.end_date else None,
            "due_date": local_date_string(self.due_date) if self.due_date else None,
            "isRecurring": self.is_recurring,
            "recurrencePattern": self.recurrence_pattern.value,
            "recurrenceDays": list(self.recurrence_days) if self.recurrence_days is not None else None,
            "priority": self.priority.value,
            "status": self.status.value,
            "reminderTime": self.reminder_time,
            "listId": self.list_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], today: date | None = None) -> "Agenda":
        days = data.get("recurrenceDays")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            kind=coerce_enum(AgendaKind, data.get("type"), AgendaKind.BOOLEAN),
            start_date=parse_local_date(data.get("startDate"), today=today),
            buffer_tokens=max(0, int(data.get("bufferTokens") or 0)),
            total_target=data.get("totalTarget"),
            daily_target_override=data.get("targetVal"),
            unit=data.get("unit"),
            end_date=parse_local_date(data["endDate"], today=today) if data.get("endDate") else None,
            due_date=parse_local_date(data["due_date"], today=today) if data.get("due_date") else None,
            is_recurring=data.get("isRecurring", True) is not False,
            recurrence_pattern=coerce_enum(
                RecurrencePattern, data.get("recurrencePattern") or "DAILY", RecurrencePattern.DAILY
            ),
            recurrence_days=tuple(int(day) for day in days) if days is not None else None,
            priority=coerce_enum(Priority, data.get("priority") or "MEDIUM", Priority.MEDIUM),
            status=coerce_enum(AgendaStatus, data.get("status") or "ACTIVE", AgendaStatus.ACTIVE),
            reminder_time=data.get("reminderTime"),
            list_id=data.get("listId"),
        )


@dataclass(frozen=True)
class Subtask:
    id: str
    task_id: str
    title: str
    is_completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "taskId": self.task_id, "title": self.title, "isCompleted": self.is_completed}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subtask":
        return cls(
            id=str(data["id"]),
            task_id=str(data.get("taskId") or ""),
            title=data.get("title") or "",
            is_completed=bool(data.get("isCompleted")),
        )


@dataclass(frozen=True)
class DailyTask:
    id: str
    agenda_id: str
    scheduled_date: date
    target_val: float
    actual_val: float = 0
    status: TaskStatus = TaskStatus.PENDING
    failure_tag: Optional[FailureTag] = None
    note: Optional[str] = None
    mood: Optional[str] = None
    was_recalculated: bool = False
    subtasks: Tuple[Subtask, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "agendaId": self.agenda_id,
            "scheduledDate": local_date_string(self.scheduled_date),
            "targetVal": self.target_val,
            "actualVal": self.actual_val,
            "status": self.status.value,
            "failureTag": self.failure_tag.value if self.failure_tag else None,
            "note": self.note,
            "mood": self.mood,
            "wasRecalculated": self.was_recalculated,
            "subtasks": [subtask.to_dict() for subtask in self.subtasks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], today: date | None = None) -> "DailyTask":
        tag = data.get("failureTag")
        return cls(
            id=str(data["id"]),
            agenda_id=str(data["agendaId"]),
            scheduled_date=parse_local_date(data.get("scheduledDate"), today=today),
            target_val=data.get("targetVal") if data.get("targetVal") is not None else 1,
            actual_val=data.get("actualVal") or 0,
            status=coerce_enum(TaskStatus, data.get("status"), TaskStatus.PENDING),
            failure_tag=coerce_enum(FailureTag, tag, None) if tag else None,
            note=data.get("note"),
            mood=data.get("mood"),
            was_recalculated=bool(data.get("wasRecalculated")),
            subtasks=tuple(Subtask.from_dict(item) for item in data.get("subtasks") or []),
        )


@dataclass(frozen=True)
class StreakInfo:
    current: int = 0
    longest: int = 0
