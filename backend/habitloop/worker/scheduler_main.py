"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from habitloop.core.config import settings
from habitloop.core.context import job_name_ctx_var
from habitloop.core.logging import configure_logging
from habitloop.db.session import SessionLocal
from habitloop.services.job_runner import run_catch_up_for_all_users, run_sync_for_all_users
from habitloop.services.sync.factory import get_remote_data_source


logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.timezone)

    if settings.scheduler_enabled:
        _register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running jobs once on startup")
            _run_catch_up_job()
            _run_sync_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def _register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        _run_catch_up_job,
        trigger="cron",
        hour=settings.daily_job_hour,
        minute=settings.daily_job_minute,
        id="daily_catch_up_job",
        replace_existing=True,
    )
    scheduler.add_job(
        _run_sync_job,
        trigger="interval",
        minutes=settings.sync_interval_minutes,
        id="sync_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(
        "Registered scheduler jobs (catch-up=%02d:%02d %s, sync every %s min)",
        settings.daily_job_hour,
        settings.daily_job_minute,
        settings.timezone,
        settings.sync_interval_minutes,
    )


def _run_catch_up_job() -> None:
    token = job_name_ctx_var.set("daily_catch_up")
    session = SessionLocal()
    try:
        result = run_catch_up_for_all_users(session)
        logger.info(
            "Catch-up job complete: users=%s, tasks_created=%s, failures=%s",
            result.users_processed,
            result.tasks_created,
            result.failures,
        )
    except Exception:  # pragma: no cover
        logger.exception("Catch-up job failed")
    finally:
        session.close()
        job_name_ctx_var.reset(token)


def _run_sync_job() -> None:
    token = job_name_ctx_var.set("sync")
    session = SessionLocal()
    try:
        result = run_sync_for_all_users(session, get_remote_data_source())
        logger.info(
            "Sync job complete: users=%s, synced=%s, failures=%s",
            result.users_processed,
            result.syncs_completed,
            result.failures,
        )
    except Exception:  # pragma: no cover
        logger.exception("Sync job failed")
    finally:
        session.close()
        job_name_ctx_var.reset(token)


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
