"""Process-wide logging setup shared by the API and the scheduler worker."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict

from habitloop.core.context import get_job_name, get_request_id

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = ("apscheduler", "sqlalchemy.engine")

_configured = False


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` with the HTTP request id, ``job:<name>`` inside a job, or ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        request_id = get_request_id()
        if request_id is None:
            job_name = get_job_name()
            request_id = f"job:{job_name}" if job_name else "-"
        record.request_id = request_id
        return True


def build_logging_config(log_level: str) -> Dict[str, Any]:
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "filters": {"request_id": {"()": RequestIdFilter}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["request_id"],
                "level": level,
            }
        },
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(*, log_level: str = "INFO") -> None:
    """Install the logging config; later calls are ignored."""
    global _configured
    if _configured:
        return
    dictConfig(build_logging_config(log_level))
    _configured = True
    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
