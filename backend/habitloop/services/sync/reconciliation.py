"""Merge of the local cache with a remote snapshot."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Sequence, TypeVar
from uuid import UUID

from habitloop.services.local_store import LocalCache
from habitloop.services.sync.base import RemoteDataSource
from habitloop.services.sync.mapping import map_remote_snapshot
from habitloop.services.types import Agenda, DailyTask

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncError(RuntimeError):
    """Raised when a sync attempt fails before anything was persisted."""


@dataclass
class SyncResult:
    agendas: List[Agenda]
    tasks: List[DailyTask]
    remote_agendas: int
    remote_tasks: int
    local_only_agendas: int
    local_only_tasks: int


def _identity(item: Any) -> Hashable:
    if isinstance(item, Mapping):
        return item["id"]
    return item.id


def merge_by_id(local: Iterable[T], cloud: Iterable[T]) -> List[T]:
    """Union of both sides keyed by id, with cloud entries winning collisions.

    Local entries missing from the cloud survive; deletions on the remote side
    are not propagated.
    """
    merged: Dict[Hashable, T] = {}
    for item in cloud:
        merged[_identity(item)] = item
    cloud_ids = set(merged)
    for item in local:
        key = _identity(item)
        if key not in cloud_ids:
            merged[key] = item
    return list(merged.values())


def _count_local_only(local: Sequence[Any], cloud: Sequence[Any]) -> int:
    cloud_ids = {_identity(item) for item in cloud}
    return len({_identity(item) for item in local} - cloud_ids)


def sync_with_cloud(
    user_id: UUID,
    local_agendas: Sequence[Agenda],
    local_tasks: Sequence[DailyTask],
    *,
    remote: RemoteDataSource,
    cache: LocalCache,
    today: date | None = None,
) -> SyncResult | None:
    """Fetch, merge and persist; returns ``None`` when there is no remote snapshot.

    Both collections are written in a single store call after everything else
    succeeded, so a failed attempt leaves the cache as it was.
    """
    try:
        tree = remote.fetch_snapshot(user_id)
    except Exception as exc:
        raise SyncError(f"Remote fetch failed: {exc}") from exc
    if tree is None:
        return None

    try:
        cloud_agendas, cloud_tasks = map_remote_snapshot(tree, today=today)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise SyncError(f"Remote snapshot is malformed: {exc}") from exc

    agendas = merge_by_id(local_agendas, cloud_agendas)
    tasks = merge_by_id(local_tasks, cloud_tasks)

    try:
        cache.save(agendas=agendas, tasks=tasks)
    except Exception as exc:
        raise SyncError(f"Persisting merged cache failed: {exc}") from exc

    logger.info(
        "Synced user=%s agendas=%s tasks=%s (remote agendas=%s tasks=%s)",
        user_id,
        len(agendas),
        len(tasks),
        len(cloud_agendas),
        len(cloud_tasks),
    )
    return SyncResult(
        agendas=agendas,
        tasks=tasks,
        remote_agendas=len(cloud_agendas),
        remote_tasks=len(cloud_tasks),
        local_only_agendas=_count_local_only(local_agendas, cloud_agendas),
        local_only_tasks=_count_local_only(local_tasks, cloud_tasks),
    )
