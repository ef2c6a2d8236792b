from __future__ import annotations

import json
from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from habitloop.db.models.kv_entry import KeyValueEntry
from habitloop.services.gamification import UserStats
from habitloop.services.local_store import InMemoryKeyValueStore, LocalCache, SqlKeyValueStore
from habitloop.services.types import (
    Agenda,
    AgendaKind,
    DailyTask,
    FailureTag,
    RecurrencePattern,
    Subtask,
    TaskStatus,
)


@pytest.fixture()
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    KeyValueEntry.__table__.create(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _agenda() -> Agenda:
    return Agenda(
        id="a1",
        title="Pages",
        kind=AgendaKind.NUMERIC,
        start_date=date(2024, 1, 1),
        total_target=300,
        unit="pages",
        recurrence_pattern=RecurrencePattern.CUSTOM,
        recurrence_days=(1, 3),
        buffer_tokens=2,
    )


def _task() -> DailyTask:
    return DailyTask(
        id="t1",
        agenda_id="a1",
        scheduled_date=date(2024, 1, 3),
        target_val=10,
        actual_val=4,
        status=TaskStatus.PARTIAL,
        failure_tag=FailureTag.TIRED,
        subtasks=(Subtask(id="s1", task_id="t1", title="Chapter 1", is_completed=True),),
    )


def test_cache_persists_collections_under_user_keys() -> None:
    store = InMemoryKeyValueStore()
    user_id = uuid4()
    cache = LocalCache(store, user_id)

    cache.save(agendas=[_agenda()], tasks=[_task()])

    assert set(store.data) == {f"{user_id}:agendas", f"{user_id}:tasks"}
    stored = json.loads(store.data[f"{user_id}:agendas"])
    assert stored[0]["startDate"] == "2024-01-01"
    assert stored[0]["type"] == "NUMERIC"
    assert cache.load_agendas() == [_agenda()]
    assert cache.load_tasks() == [_task()]


def test_users_do_not_see_each_other() -> None:
    store = InMemoryKeyValueStore()
    LocalCache(store, "u1").save(agendas=[_agenda()])
    assert LocalCache(store, "u2").load_agendas() == []


def test_corrupt_entries_are_discarded(caplog) -> None:
    store = InMemoryKeyValueStore({"u1:agendas": "{not json", "u1:tasks": json.dumps([{"id": "x"}, _task().to_dict()])})
    cache = LocalCache(store, "u1")

    assert cache.load_agendas() == []
    assert cache.load_tasks() == [_task()]
    assert "corrupt cache entry" in caplog.text


def test_missing_target_defaults_to_one() -> None:
    raw = {"id": "t9", "agendaId": "a1", "scheduledDate": "2024-01-02", "targetVal": None, "status": "bogus"}
    store = InMemoryKeyValueStore({"u1:tasks": json.dumps([raw])})
    task = LocalCache(store, "u1").load_tasks()[0]
    assert task.target_val == 1
    assert task.status == TaskStatus.PENDING


def test_stats_round_trip() -> None:
    cache = LocalCache(InMemoryKeyValueStore(), "u1")
    assert cache.load_stats() is None
    cache.save(stats=UserStats(total_xp=120, level=2, achievements=["first_goal"]))
    assert cache.load_stats() == UserStats(total_xp=120, level=2, achievements=["first_goal"])


def test_sql_store_upserts_rows(session) -> None:
    store = SqlKeyValueStore(session)
    store.set("k", "1")
    store.set_many({"k": "2", "other": "3"})

    assert store.get("k") == "2"
    assert store.get("other") == "3"
    assert store.get("missing") is None
    assert session.query(KeyValueEntry).count() == 2


def test_sql_store_rolls_back_failed_batch(session, monkeypatch) -> None:
    store = SqlKeyValueStore(session)
    store.set("k", "before")

    def broken_commit():
        raise RuntimeError("disk full")

    monkeypatch.setattr(session, "commit", broken_commit)
    with pytest.raises(RuntimeError):
        store.set_many({"k": "after", "new": "x"})
    monkeypatch.undo()

    assert store.get("k") == "before"
    assert store.get("new") is None
