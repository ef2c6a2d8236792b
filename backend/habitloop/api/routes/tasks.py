"""Daily task API routes."""
from __future__ import annotations

from datetime import date
from time import perf_counter
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from habitloop.api.schemas.task import (
    CheckInRequest,
    CheckInResponse,
    EnsureTasksRequest,
    EnsureTasksResponse,
    TaskPayload,
    XPEventPayload,
)
from habitloop.core.clock import Clock, get_clock
from habitloop.db.deps import get_db
from habitloop.observability.metrics import log_metric
from habitloop.observability.tracing import trace
from habitloop.services.activity import record_activity
from habitloop.services.agenda_service import (
    BufferExhaustedError,
    TaskNotFoundError,
    check_in,
    ensure_tasks,
)
from habitloop.services.insights import visible_tasks
from habitloop.services.local_store import cache_for
from habitloop.services.payloads import serialize_task

router = APIRouter()


@router.get("/tasks", response_model=List[TaskPayload], tags=["tasks"])
def list_tasks(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the tasks"),
    from_: Optional[date] = Query(default=None, alias="from"),
    to: Optional[date] = Query(default=None),
    agenda_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> List[TaskPayload]:
    """List a user's tasks ordered by date; tasks of deleted agendas are hidden."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/tasks",
        "user_id": str(user_id),
        "from": from_.isoformat() if from_ else None,
        "to": to.isoformat() if to else None,
        "agenda_id": agenda_id,
        "request_id": request_id,
    }

    with trace("task.list", metadata=metadata, user_id=str(user_id), request_id=request_id):
        today = clock.today()
        cache = cache_for(db, user_id)
        tasks = visible_tasks(cache.load_agendas(today=today), cache.load_tasks(today=today))
        if agenda_id:
            tasks = [task for task in tasks if task.agenda_id == agenda_id]
        if from_:
            tasks = [task for task in tasks if task.scheduled_date >= from_]
        if to:
            tasks = [task for task in tasks if task.scheduled_date <= to]
        tasks.sort(key=lambda task: task.scheduled_date)

    log_metric("task.list.count", len(tasks), metadata={"user_id": str(user_id)})
    return [serialize_task(task) for task in tasks]


@router.post("/tasks/ensure", response_model=EnsureTasksResponse, tags=["tasks"])
def ensure_tasks_route(
    payload: EnsureTasksRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> EnsureTasksResponse:
    """Create any missing tasks for the requested day (defaults to today)."""
    request_id = getattr(http_request.state, "request_id", None)
    today = clock.today()
    day = payload.date or today

    with trace(
        "task.ensure",
        metadata={"route": "/tasks/ensure", "date": day.isoformat(), "request_id": request_id},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        created = ensure_tasks(cache_for(db, payload.user_id), day, today=today)
        if created:
            record_activity(
                db,
                payload.user_id,
                "tasks_caught_up",
                {"date": day.isoformat(), "task_ids": [task.id for task in created]},
                reason="Missing tasks created on demand",
                request_id=request_id,
            )

    log_metric("task.ensure.created", len(created), metadata={"user_id": str(payload.user_id)})
    return EnsureTasksResponse(
        date=day,
        created=[serialize_task(task) for task in created],
        request_id=request_id or "",
    )


@router.patch("/tasks/{task_id}/check-in", response_model=CheckInResponse, tags=["tasks"])
def check_in_route(
    task_id: str,
    payload: CheckInRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> CheckInResponse:
    """Record progress for a task, optionally spending a buffer or redistributing the shortfall."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": f"/tasks/{task_id}/check-in",
        "task_id": task_id,
        "user_id": str(payload.user_id),
        "strategy": payload.strategy.value if payload.strategy else None,
        "use_buffer": payload.use_buffer,
        "request_id": request_id,
    }

    start = perf_counter()
    with trace("task.check_in", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
        try:
            result = check_in(
                cache_for(db, payload.user_id),
                task_id,
                actual_val=payload.actual_val,
                status=payload.status,
                failure_tag=payload.failure_tag,
                note=payload.note,
                mood=payload.mood,
                strategy=payload.strategy,
                use_buffer=payload.use_buffer,
                now=clock.now(),
            )
        except TaskNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
        except BufferExhaustedError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No buffer tokens left")

        record_activity(
            db,
            payload.user_id,
            "task_checked_in",
            {
                "task_id": task_id,
                "agenda_id": result.task.agenda_id,
                "status": result.task.status.value,
                "actual_val": result.task.actual_val,
                "redistributed": result.redistributed,
                "recalculated_task_ids": result.recalculated_task_ids,
            },
            reason="Task progress reported",
            request_id=request_id,
        )

    latency_ms = (perf_counter() - start) * 1000
    log_metric("task.check_in.success", 1, metadata={"status": result.task.status.value})
    log_metric("task.check_in.latency_ms", latency_ms)
    if result.redistributed:
        log_metric(
            "task.redistributed",
            len(result.recalculated_task_ids),
            metadata={"strategy": payload.strategy.value if payload.strategy else None},
        )

    return CheckInResponse(
        task=serialize_task(result.task),
        buffer_tokens=result.agenda.buffer_tokens,
        redistributed=result.redistributed,
        missing_amount=result.missing_amount,
        recalculated_task_ids=result.recalculated_task_ids,
        xp_events=[
            XPEventPayload(type=event.type, amount=event.amount, description=event.description)
            for event in result.xp_events
        ],
        total_xp=result.stats.total_xp if result.stats else 0,
        request_id=request_id or "",
    )
