"""Host-side orchestration of cache reconciliation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from time import perf_counter
from typing import Optional, Set
from uuid import UUID

from sqlalchemy.orm import Session

from habitloop.core.clock import Clock, get_clock
from habitloop.observability.metrics import log_metric
from habitloop.observability.tracing import trace
from habitloop.services.activity import record_activity
from habitloop.services.local_store import cache_for
from habitloop.services.sync.base import RemoteDataSource
from habitloop.services.sync.reconciliation import SyncError, SyncResult, sync_with_cloud
from habitloop.services.user_service import mark_synced

logger = logging.getLogger(__name__)

_running_guard = Lock()
# Users with a sync in flight; entries are removed on release.
_running: Set[str] = set()


class SyncInProgressError(RuntimeError):
    """Raised when another sync for the same user is still running."""


@dataclass
class SyncOutcome:
    status: str
    result: Optional[SyncResult] = None


def _claim(user_id: UUID) -> bool:
    with _running_guard:
        key = str(user_id)
        if key in _running:
            return False
        _running.add(key)
        return True


def _release(user_id: UUID) -> None:
    with _running_guard:
        _running.discard(str(user_id))


def run_sync_for_user(
    db: Session,
    user_id: UUID,
    remote: RemoteDataSource,
    *,
    clock: Clock | None = None,
    request_id: str | None = None,
) -> SyncOutcome:
    """Run one sync for ``user_id``; at most one runs per user at a time.

    Raises :class:`SyncInProgressError` when a sync is already running and
    :class:`SyncError` when the attempt failed (the cache is left untouched).
    """
    clock = clock or get_clock()
    today = clock.today()
    if not _claim(user_id):
        raise SyncInProgressError(f"Sync already running for user {user_id}")

    start = perf_counter()
    try:
        cache = cache_for(db, user_id)
        with trace(
            "sync.run",
            metadata={"provider": remote.name},
            user_id=str(user_id),
            request_id=request_id,
        ):
            result = sync_with_cloud(
                user_id,
                cache.load_agendas(today=today),
                cache.load_tasks(today=today),
                remote=remote,
                cache=cache,
                today=today,
            )
    except SyncError as exc:
        logger.error("Sync failed for user=%s: %s", user_id, exc)
        log_metric("sync.failed", 1, metadata={"provider": remote.name})
        record_activity(
            db,
            user_id,
            "sync_failed",
            {"provider": remote.name, "error": str(exc)},
            reason="Sync failed",
            request_id=request_id,
        )
        raise
    finally:
        _release(user_id)

    latency_ms = (perf_counter() - start) * 1000
    log_metric("sync.latency_ms", latency_ms, metadata={"provider": remote.name})

    if result is None:
        log_metric("sync.skipped", 1, metadata={"provider": remote.name})
        return SyncOutcome(status="skipped")

    mark_synced(db, user_id, clock.now())
    record_activity(
        db,
        user_id,
        "sync_completed",
        {
            "provider": remote.name,
            "agendas": len(result.agendas),
            "tasks": len(result.tasks),
            "remote_agendas": result.remote_agendas,
            "remote_tasks": result.remote_tasks,
            "local_only_agendas": result.local_only_agendas,
            "local_only_tasks": result.local_only_tasks,
        },
        reason="Cache reconciled with remote snapshot",
        request_id=request_id,
    )
    log_metric("sync.success", 1, metadata={"provider": remote.name})
    return SyncOutcome(status="synced", result=result)
