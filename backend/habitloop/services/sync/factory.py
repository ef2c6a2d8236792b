"""Remote data source factory."""
from __future__ import annotations

import logging
from functools import lru_cache

from habitloop.core.config import settings
from habitloop.services.sync.base import RemoteDataSource
from habitloop.services.sync.file import FileRemoteDataSource
from habitloop.services.sync.noop import NoopRemoteDataSource

logger = logging.getLogger(__name__)


@lru_cache
def get_remote_data_source() -> RemoteDataSource:
    provider = settings.remote_provider.lower()
    if provider == "file":
        if settings.remote_snapshot_path:
            return FileRemoteDataSource(settings.remote_snapshot_path)
        logger.warning("REMOTE_PROVIDER is file but REMOTE_SNAPSHOT_PATH is missing; sync disabled.")
    elif provider != "noop":
        logger.warning("Unknown remote provider %r; sync disabled.", provider)
    return NoopRemoteDataSource()
