"""Batch job runners for daily catch-up and remote sync."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from habitloop.core.clock import Clock, get_clock
from habitloop.observability.metrics import log_metric
from habitloop.services.activity import record_activity
from habitloop.services.agenda_service import ensure_tasks
from habitloop.services.local_store import cache_for
from habitloop.services.sync.base import RemoteDataSource
from habitloop.services.sync.reconciliation import SyncError
from habitloop.services.sync.service import SyncInProgressError, run_sync_for_user
from habitloop.services.user_service import list_user_ids


logger = logging.getLogger(__name__)


@dataclass
class JobRunResult:
    users_processed: int
    tasks_created: int = 0
    syncs_completed: int = 0
    failures: int = 0


def run_catch_up_for_user(db: Session, user_id: UUID, day: date, *, today: date) -> int:
    cache = cache_for(db, user_id)
    created = ensure_tasks(cache, day, today=today)
    if created:
        record_activity(
            db,
            user_id,
            "tasks_caught_up",
            {"date": day.isoformat(), "task_ids": [task.id for task in created]},
            reason="Daily catch-up created missing tasks",
        )
    return len(created)


def run_catch_up_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
    day: Optional[date] = None,
    clock: Clock | None = None,
) -> JobRunResult:
    today = (clock or get_clock()).today()
    day = day or today
    ids = _normalize_user_ids(user_ids, db)
    result = JobRunResult(users_processed=0)

    for user_id in ids:
        try:
            result.tasks_created += run_catch_up_for_user(db, user_id, day, today=today)
        except Exception:
            db.rollback()
            result.failures += 1
            logger.exception("Catch-up failed for user=%s", user_id)
        result.users_processed += 1

    log_metric("jobs.catch_up.users", result.users_processed)
    log_metric("jobs.catch_up.tasks_created", result.tasks_created)
    return result


def run_sync_for_all_users(
    db: Session,
    remote: RemoteDataSource,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
    clock: Clock | None = None,
) -> JobRunResult:
    ids = _normalize_user_ids(user_ids, db)
    result = JobRunResult(users_processed=0)

    for user_id in ids:
        result.users_processed += 1
        try:
            outcome = run_sync_for_user(db, user_id, remote, clock=clock)
        except SyncInProgressError:
            logger.info("Sync already running for user=%s; skipping", user_id)
            continue
        except SyncError:
            db.rollback()
            result.failures += 1
            continue
        except Exception:
            db.rollback()
            result.failures += 1
            logger.exception("Sync failed for user=%s", user_id)
            continue
        if outcome.status == "synced":
            result.syncs_completed += 1

    log_metric("jobs.sync.users", result.users_processed)
    log_metric("jobs.sync.failures", result.failures)
    return result


def _normalize_user_ids(user_ids: Optional[Iterable[UUID]], db: Session) -> List[UUID]:
    if user_ids is None:
        return list_user_ids(db)
    return list(dict.fromkeys(user_ids))
