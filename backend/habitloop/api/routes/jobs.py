"""Operational endpoints for scheduler jobs."""
from __future__ import annotations

from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from habitloop.api.schemas.jobs import JobRunRequest, JobRunResponse
from habitloop.core.clock import Clock, get_clock
from habitloop.core.config import settings
from habitloop.db.deps import get_db
from habitloop.observability.metrics import log_metric
from habitloop.observability.tracing import trace
from habitloop.services.job_runner import run_catch_up_for_all_users, run_sync_for_all_users
from habitloop.services.sync.base import RemoteDataSource
from habitloop.services.sync.factory import get_remote_data_source

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "schedule": {
                "timezone": settings.timezone,
                "daily_catch_up": f"{settings.daily_job_hour:02d}:{settings.daily_job_minute:02d}",
                "sync_interval_minutes": settings.sync_interval_minutes,
            },
            "remote_provider": settings.remote_provider,
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/run-now", response_model=JobRunResponse, tags=["jobs"])
def run_job_now(
    request: Request,
    payload: JobRunRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    remote: RemoteDataSource = Depends(get_remote_data_source),
) -> JobRunResponse:
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Run-now only allowed in debug mode")

    request_id = getattr(request.state, "request_id", None)
    user_ids = [payload.user_id] if payload.user_id else None
    start = perf_counter()
    with trace("jobs.run_now", metadata={"job": payload.job, "request_id": request_id}, request_id=request_id):
        if payload.job == "daily_catch_up":
            result = run_catch_up_for_all_users(db, user_ids=user_ids, day=payload.date, clock=clock)
        else:
            result = run_sync_for_all_users(db, remote, user_ids=user_ids, clock=clock)

    latency_ms = (perf_counter() - start) * 1000
    log_metric("jobs.run_now.success", 1, metadata={"job": payload.job})
    log_metric("jobs.run_now.latency_ms", latency_ms, metadata={"job": payload.job})

    return JobRunResponse(
        job=payload.job,
        users_processed=result.users_processed,
        tasks_created=result.tasks_created,
        syncs_completed=result.syncs_completed,
        failures=result.failures,
        request_id=request_id or "",
    )
