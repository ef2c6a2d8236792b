"""Remote reconciliation API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from habitloop.api.schemas.sync import SyncRequest, SyncResponse
from habitloop.core.clock import Clock, get_clock
from habitloop.db.deps import get_db
from habitloop.services.sync.base import RemoteDataSource
from habitloop.services.sync.factory import get_remote_data_source
from habitloop.services.sync.reconciliation import SyncError
from habitloop.services.sync.service import SyncInProgressError, run_sync_for_user

router = APIRouter()


@router.post("/sync", response_model=SyncResponse, tags=["sync"])
def sync_now(
    payload: SyncRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    remote: RemoteDataSource = Depends(get_remote_data_source),
) -> SyncResponse:
    """Merge the remote snapshot into the user's cache."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        outcome = run_sync_for_user(db, payload.user_id, remote, clock=clock, request_id=request_id)
    except SyncInProgressError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sync already in progress")
    except SyncError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Sync failed: {exc}")

    result = outcome.result
    return SyncResponse(
        user_id=payload.user_id,
        status=outcome.status,
        agendas=len(result.agendas) if result else 0,
        tasks=len(result.tasks) if result else 0,
        remote_agendas=result.remote_agendas if result else 0,
        remote_tasks=result.remote_tasks if result else 0,
        request_id=request_id or "",
    )
