from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler

from habitloop.core.config import settings
from habitloop.core.context import get_job_name
from habitloop.worker import scheduler_main


def test_jobs_are_registered_with_configured_schedule() -> None:
    scheduler = BackgroundScheduler(timezone=settings.timezone)
    scheduler_main._register_jobs(scheduler)

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"daily_catch_up_job", "sync_job"}
    assert jobs["sync_job"].max_instances == 1


def test_job_wrapper_tags_logs_with_job_name(monkeypatch) -> None:
    seen = {}

    class _Session:
        def close(self):
            seen["closed"] = True

    def fake_catch_up(session):
        seen["job"] = get_job_name()

        class _Result:
            users_processed = 0
            tasks_created = 0
            failures = 0

        return _Result()

    monkeypatch.setattr(scheduler_main, "SessionLocal", _Session)
    monkeypatch.setattr(scheduler_main, "run_catch_up_for_all_users", fake_catch_up)

    scheduler_main._run_catch_up_job()

    assert seen == {"job": "daily_catch_up", "closed": True}
    assert get_job_name() is None
