"""Remote data source reading an exported snapshot from disk."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID

from habitloop.services.sync.base import RemoteDataSource


logger = logging.getLogger(__name__)


class FileRemoteDataSource(RemoteDataSource):
    """Serve snapshots from a JSON file.

    The file holds either a list of agendas (shared by every user) or an object
    mapping user ids to such lists.
    """

    name = "file"

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def fetch_snapshot(self, user_id: UUID) -> Optional[List[Dict[str, Any]]]:
        if not self.path.exists():
            logger.warning("Remote snapshot file %s is missing", self.path)
            return None

        with self.path.open(encoding="utf-8") as handle:
            payload = json.load(handle)

        if isinstance(payload, dict):
            payload = payload.get(str(user_id))
        if payload is None:
            return None
        if not isinstance(payload, list):
            raise ValueError(f"Snapshot in {self.path} must be a list of agendas")
        return payload
