"""Remote data source interface."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID


class RemoteDataSource:
    """Base interface for remote snapshot providers."""

    name = "base"

    def fetch_snapshot(self, user_id: UUID) -> Optional[List[Dict[str, Any]]]:
        """Return every agenda of ``user_id`` with nested ``daily_tasks`` and ``subtasks``.

        ``None`` means there is no remote account to reconcile with.
        """
        raise NotImplementedError
