"""Schemas for job operations endpoints."""
from __future__ import annotations

import datetime as dt
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class JobRunRequest(BaseModel):
    job: Literal["daily_catch_up", "sync"]
    user_id: Optional[UUID] = None
    date: Optional[dt.date] = None


class JobRunResponse(BaseModel):
    job: str
    users_processed: int
    tasks_created: int
    syncs_completed: int
    failures: int
    request_id: str
