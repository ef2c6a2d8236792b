"""Agenda management API routes."""
from __future__ import annotations

from time import perf_counter
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from habitloop.api.schemas.agenda import (
    AgendaCreateRequest,
    AgendaCreateResponse,
    AgendaDeleteResponse,
    AgendaPayload,
    AgendaUpdateRequest,
    AgendaUpdateResponse,
)
from habitloop.core.clock import Clock, get_clock
from habitloop.db.deps import get_db
from habitloop.observability.metrics import log_metric
from habitloop.observability.tracing import trace
from habitloop.services.activity import record_activity
from habitloop.services.agenda_service import (
    AgendaNotFoundError,
    InvalidAgendaError,
    create_agenda,
    delete_agenda,
    update_agenda,
)
from habitloop.services.local_store import cache_for
from habitloop.services.payloads import serialize_agenda, serialize_task
from habitloop.services.task_generator import new_id
from habitloop.services.types import Agenda

router = APIRouter()

CLEARABLE_FIELDS = {"total_target", "target_val", "unit", "end_date", "reminder_time", "list_id"}


@router.post(
    "/agendas",
    response_model=AgendaCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["agendas"],
)
def create_agenda_route(
    payload: AgendaCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AgendaCreateResponse:
    """Create an agenda and generate its first tasks."""
    request_id = getattr(http_request.state, "request_id", None)
    today = clock.today()
    start_date = payload.start_date or today
    if payload.end_date and payload.end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must not be before start_date",
        )

    agenda = Agenda(
        id=new_id(),
        title=payload.title.strip(),
        kind=payload.type,
        start_date=start_date,
        buffer_tokens=payload.buffer_tokens,
        total_target=payload.total_target,
        daily_target_override=payload.target_val,
        unit=payload.unit,
        end_date=payload.end_date,
        due_date=payload.due_date,
        is_recurring=payload.is_recurring,
        recurrence_pattern=payload.recurrence_pattern,
        recurrence_days=tuple(payload.recurrence_days) if payload.recurrence_days is not None else None,
        priority=payload.priority,
        reminder_time=payload.reminder_time,
        list_id=payload.list_id,
    )

    metadata: Dict[str, Any] = {
        "route": "/agendas",
        "user_id": str(payload.user_id),
        "type": agenda.kind.value,
        "request_id": request_id,
    }
    start = perf_counter()
    with trace("agenda.create", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
        agenda, initial = create_agenda(
            cache_for(db, payload.user_id),
            agenda,
            horizon_days=payload.horizon_days,
            today=today,
        )
        record_activity(
            db,
            payload.user_id,
            "agenda_created",
            {"agenda_id": agenda.id, "tasks_created": len(initial)},
            reason="Agenda created",
            request_id=request_id,
        )

    latency_ms = (perf_counter() - start) * 1000
    log_metric("agenda.create.success", 1, metadata={"type": agenda.kind.value})
    log_metric("agenda.create.latency_ms", latency_ms, metadata={"type": agenda.kind.value})

    return AgendaCreateResponse(
        agenda=serialize_agenda(agenda),
        tasks=[serialize_task(task) for task in initial],
        request_id=request_id or "",
    )


@router.get("/agendas", response_model=List[AgendaPayload], tags=["agendas"])
def list_agendas(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the agendas"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> List[AgendaPayload]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "agenda.list",
        metadata={"route": "/agendas", "user_id": str(user_id), "request_id": request_id},
        user_id=str(user_id),
        request_id=request_id,
    ):
        agendas = cache_for(db, user_id).load_agendas(today=clock.today())

    log_metric("agenda.list.count", len(agendas), metadata={"user_id": str(user_id)})
    return [serialize_agenda(agenda) for agenda in agendas]


@router.patch("/agendas/{agenda_id}", response_model=AgendaUpdateResponse, tags=["agendas"])
def update_agenda_route(
    agenda_id: str,
    payload: AgendaUpdateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AgendaUpdateResponse:
    """Edit agenda settings; target changes re-target pending tasks."""
    request_id = getattr(http_request.state, "request_id", None)
    changes = {
        name: value
        for name, value in payload.model_dump(exclude_unset=True, exclude={"user_id"}).items()
        if value is not None or name in CLEARABLE_FIELDS
    }
    if "target_val" in changes:
        changes["daily_target_override"] = changes.pop("target_val")
    if "title" in changes:
        changes["title"] = changes["title"].strip()

    with trace(
        "agenda.update",
        metadata={"route": f"/agendas/{agenda_id}", "fields": sorted(changes), "request_id": request_id},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        try:
            agenda, retargeted = update_agenda(
                cache_for(db, payload.user_id),
                agenda_id,
                changes,
                today=clock.today(),
            )
        except AgendaNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agenda not found")
        except InvalidAgendaError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

        record_activity(
            db,
            payload.user_id,
            "agenda_updated",
            {"agenda_id": agenda_id, "fields": sorted(changes), "tasks_retargeted": retargeted},
            reason="Agenda settings edited",
            request_id=request_id,
        )

    log_metric("agenda.update.success", 1, metadata={"tasks_retargeted": retargeted})
    return AgendaUpdateResponse(
        agenda=serialize_agenda(agenda),
        tasks_retargeted=retargeted,
        request_id=request_id or "",
    )


@router.delete("/agendas/{agenda_id}", response_model=AgendaDeleteResponse, tags=["agendas"])
def delete_agenda_route(
    agenda_id: str,
    http_request: Request,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AgendaDeleteResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "agenda.delete",
        metadata={"route": f"/agendas/{agenda_id}", "request_id": request_id},
        user_id=str(user_id),
        request_id=request_id,
    ):
        try:
            removed = delete_agenda(cache_for(db, user_id), agenda_id, today=clock.today())
        except AgendaNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agenda not found")

        record_activity(
            db,
            user_id,
            "agenda_deleted",
            {"agenda_id": agenda_id, "tasks_removed": removed},
            reason="Agenda deleted with its tasks",
            request_id=request_id,
        )

    log_metric("agenda.delete.success", 1, metadata={"tasks_removed": removed})
    return AgendaDeleteResponse(id=agenda_id, tasks_removed=removed, request_id=request_id or "")
