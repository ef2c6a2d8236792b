"""Per-request and per-job context utilities."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
job_name_ctx_var: ContextVar[str | None] = ContextVar("job_name", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_job_name() -> str | None:
    """Return the scheduler job currently running in this context, if any."""
    return job_name_ctx_var.get()
