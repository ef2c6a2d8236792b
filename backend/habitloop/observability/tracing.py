"""Opik trace spans around engine and host operations."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from habitloop.observability import client as opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace

logger = logging.getLogger(__name__)


def _span_metadata(
    metadata: Optional[Dict[str, Any]],
    user_id: Optional[str],
    request_id: Optional[str],
) -> Optional[Dict[str, Any]]:
    merged = {key: value for key, value in (metadata or {}).items() if value is not None}
    if user_id:
        merged.setdefault("user_id", str(user_id))
    if request_id:
        merged.setdefault("request_id", request_id)
    return merged or None


def _open_span(name: str, metadata: Optional[Dict[str, Any]]) -> Optional["Trace"]:
    client = opik_client.get_opik_client()
    if client is None:
        return None
    try:
        return client.trace(name=name, metadata=metadata)
    except Exception as exc:  # pragma: no cover
        logger.debug("Opik trace %s not started: %s", name, exc)
        return None


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """Run the block inside an Opik trace named ``name``.

    Yields ``None`` when tracing is off. ``None`` metadata values are dropped.
    An exception raised in the block is recorded on the trace and propagates.
    """
    span = _open_span(name, _span_metadata(metadata, user_id, request_id))
    if span is None:
        yield None
        return

    try:
        yield span
    except Exception as exc:
        try:
            span.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
        except Exception:  # pragma: no cover
            logger.debug("Opik trace %s lost its error info", name, exc_info=True)
        raise
    finally:
        try:
            span.end()
        except Exception:  # pragma: no cover
            logger.debug("Opik trace %s did not close cleanly", name, exc_info=True)
