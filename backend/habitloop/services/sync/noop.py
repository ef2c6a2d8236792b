"""No-op remote data source (offline only)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from habitloop.services.sync.base import RemoteDataSource


logger = logging.getLogger(__name__)


class NoopRemoteDataSource(RemoteDataSource):
    name = "noop"

    def fetch_snapshot(self, user_id: UUID) -> Optional[List[Dict[str, Any]]]:
        logger.info("Remote snapshot skipped (noop) user=%s", user_id)
        return None
