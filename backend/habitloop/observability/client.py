"""Lazily created Opik client shared by tracing and metrics."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from opik import Opik

from habitloop.core.config import settings

logger = logging.getLogger(__name__)


class _ClientHolder:
    """Creates the client at most once per reset; failures leave tracing off."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.client: Optional[Opik] = None
        self.attempted = False

    def reset(self) -> None:
        with self.lock:
            self.client = None
            self.attempted = False


_holder = _ClientHolder()


def _create_client() -> Optional[Opik]:
    if not settings.opik_api_key:
        logger.warning("OPIK_ENABLED is true but OPIK_API_KEY is missing; engine traces are off.")
        return None
    try:
        client = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
    except Exception as exc:  # pragma: no cover - depends on the Opik backend
        logger.warning("Opik client could not start, engine traces are off: %s", exc)
        return None
    logger.info("Opik tracing on for project %s.", settings.opik_project)
    return client


def init_opik() -> Optional[Opik]:
    """Create the Opik client on first use when ``OPIK_ENABLED`` is set."""
    if not settings.opik_enabled:
        return None
    with _holder.lock:
        if not _holder.attempted:
            _holder.attempted = True
            _holder.client = _create_client()
        return _holder.client


def get_opik_client() -> Optional[Opik]:
    return _holder.client if _holder.client is not None else init_opik()


def reset_opik_client() -> None:
    """Forget the cached client so the next call re-reads settings."""
    _holder.reset()
