"""Schemas for sync endpoints."""
from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel


class SyncRequest(BaseModel):
    user_id: UUID


class SyncResponse(BaseModel):
    user_id: UUID
    status: Literal["synced", "skipped"]
    agendas: int
    tasks: int
    remote_agendas: int
    remote_tasks: int
    request_id: str
