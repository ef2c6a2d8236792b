"""Schemas for agenda endpoints."""
from __future__ import annotations

from datetime import date
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from habitloop.api.schemas.task import TaskPayload
from habitloop.services.types import AgendaKind, AgendaStatus, Priority, RecurrencePattern

Weekday = Annotated[int, Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")]


class AgendaCreateRequest(BaseModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    type: AgendaKind
    total_target: Optional[float] = Field(default=None, gt=0)
    target_val: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, max_length=50)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    due_date: Optional[date] = None
    is_recurring: bool = True
    recurrence_pattern: RecurrencePattern = RecurrencePattern.DAILY
    recurrence_days: Optional[List[Weekday]] = None
    priority: Priority = Priority.MEDIUM
    buffer_tokens: int = Field(default=0, ge=0)
    reminder_time: Optional[str] = None
    list_id: Optional[str] = None
    horizon_days: Optional[int] = Field(default=None, ge=1, le=366)


class AgendaUpdateRequest(BaseModel):
    user_id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    priority: Optional[Priority] = None
    status: Optional[AgendaStatus] = None
    total_target: Optional[float] = Field(default=None, gt=0)
    target_val: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, max_length=50)
    end_date: Optional[date] = None
    buffer_tokens: Optional[int] = Field(default=None, ge=0)
    reminder_time: Optional[str] = None
    list_id: Optional[str] = None


class AgendaPayload(BaseModel):
    id: str
    title: str
    type: AgendaKind
    total_target: Optional[float]
    target_val: Optional[float]
    daily_target: float
    unit: Optional[str]
    start_date: date
    end_date: Optional[date]
    due_date: Optional[date]
    is_recurring: bool
    recurrence_pattern: RecurrencePattern
    recurrence_days: Optional[List[int]]
    priority: Priority
    status: AgendaStatus
    buffer_tokens: int
    reminder_time: Optional[str]
    list_id: Optional[str]


class AgendaCreateResponse(BaseModel):
    agenda: AgendaPayload
    tasks: List[TaskPayload]
    request_id: str


class AgendaUpdateResponse(BaseModel):
    agenda: AgendaPayload
    tasks_retargeted: int
    request_id: str


class AgendaDeleteResponse(BaseModel):
    id: str
    tasks_removed: int
    request_id: str
