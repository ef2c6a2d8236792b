"""Engine metrics recorded as Opik traces."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from habitloop.observability import client as opik_client

logger = logging.getLogger(__name__)

METRIC_PREFIX = "metric:"


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record ``value`` under ``name``; a no-op unless Opik is configured."""
    client = opik_client.get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {**(metadata or {}), "value": value}
    try:
        client.trace(name=f"{METRIC_PREFIX}{name}", metadata=payload).end()
    except Exception as exc:  # pragma: no cover
        logger.debug("Dropped metric %s: %s", name, exc)
