"""Schemas for task endpoints."""
from __future__ import annotations

import datetime as dt
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from habitloop.services.types import FailureTag, RedistributionStrategy, TaskStatus


class SubtaskPayload(BaseModel):
    id: str
    title: str
    is_completed: bool


class TaskPayload(BaseModel):
    id: str
    agenda_id: str
    scheduled_date: dt.date
    target_val: float
    actual_val: float
    status: TaskStatus
    failure_tag: Optional[FailureTag]
    note: Optional[str]
    mood: Optional[str]
    was_recalculated: bool
    subtasks: List[SubtaskPayload]


class EnsureTasksRequest(BaseModel):
    user_id: UUID
    date: Optional[dt.date] = None


class EnsureTasksResponse(BaseModel):
    date: dt.date
    created: List[TaskPayload]
    request_id: str


class CheckInRequest(BaseModel):
    user_id: UUID
    actual_val: float = Field(..., ge=0)
    status: Optional[TaskStatus] = None
    failure_tag: Optional[FailureTag] = None
    note: Optional[str] = None
    mood: Optional[str] = Field(default=None, max_length=16)
    strategy: Optional[RedistributionStrategy] = None
    use_buffer: bool = False


class XPEventPayload(BaseModel):
    type: str
    amount: int
    description: str


class CheckInResponse(BaseModel):
    task: TaskPayload
    buffer_tokens: int
    redistributed: bool
    missing_amount: float
    recalculated_task_ids: List[str]
    xp_events: List[XPEventPayload]
    total_xp: int
    request_id: str
