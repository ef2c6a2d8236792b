from __future__ import annotations

from datetime import date, timedelta

from habitloop.services.recurrence import is_due
from habitloop.services.task_generator import ensure_tasks_for_date, generate_initial_tasks
from habitloop.services.types import (
    Agenda,
    AgendaKind,
    AgendaStatus,
    RecurrencePattern,
    TaskStatus,
)

START = date(2024, 1, 1)


def _agenda(**kwargs) -> Agenda:
    defaults = dict(id="a1", title="Walk", kind=AgendaKind.BOOLEAN, start_date=START)
    defaults.update(kwargs)
    return Agenda(**defaults)


def test_initial_tasks_cover_horizon_with_pending_status() -> None:
    tasks = generate_initial_tasks(_agenda(), 7, today=START)
    assert [task.scheduled_date for task in tasks] == [START + timedelta(days=i) for i in range(7)]
    assert all(task.status == TaskStatus.PENDING and task.actual_val == 0 for task in tasks)
    assert len({task.id for task in tasks}) == 7


def test_generated_dates_are_always_due() -> None:
    for pattern, days in (
        (RecurrencePattern.WEEKLY, None),
        (RecurrencePattern.WEEKDAYS, None),
        (RecurrencePattern.CUSTOM, (1, 5)),
    ):
        agenda = _agenda(recurrence_pattern=pattern, recurrence_days=days)
        tasks = generate_initial_tasks(agenda, 28, today=START)
        assert tasks
        assert all(is_due(task.scheduled_date, agenda) for task in tasks)


def test_end_date_bounds_the_window() -> None:
    agenda = _agenda(end_date=START + timedelta(days=2))
    tasks = generate_initial_tasks(agenda, 30, today=START)
    assert [task.scheduled_date for task in tasks] == [START, START + timedelta(days=1), START + timedelta(days=2)]


def test_total_and_override_define_the_window() -> None:
    agenda = _agenda(kind=AgendaKind.NUMERIC, total_target=50, daily_target_override=10)
    tasks = generate_initial_tasks(agenda, 30, today=START)
    assert len(tasks) == 5
    assert all(task.target_val == 10 for task in tasks)


def test_one_off_creates_single_task_on_due_date() -> None:
    agenda = _agenda(kind=AgendaKind.ONE_OFF, due_date=date(2024, 2, 14))
    tasks = generate_initial_tasks(agenda, 30, today=START)
    assert len(tasks) == 1
    assert tasks[0].scheduled_date == date(2024, 2, 14)
    assert tasks[0].target_val == 1


def test_one_off_without_due_date_uses_today() -> None:
    agenda = _agenda(kind=AgendaKind.ONE_OFF)
    tasks = generate_initial_tasks(agenda, today=date(2024, 3, 3))
    assert [task.scheduled_date for task in tasks] == [date(2024, 3, 3)]


def test_ensure_tasks_is_idempotent() -> None:
    agendas = [_agenda(), _agenda(id="a2", title="Stretch")]
    day = date(2024, 1, 10)

    first = ensure_tasks_for_date(agendas, [], day)
    assert {task.agenda_id for task in first} == {"a1", "a2"}
    assert ensure_tasks_for_date(agendas, first, day) == []


def test_ensure_tasks_only_fills_due_recurring_agendas() -> None:
    day = date(2024, 1, 10)
    agendas = [
        _agenda(id="one-off", kind=AgendaKind.ONE_OFF),
        _agenda(id="weekly", recurrence_pattern=RecurrencePattern.WEEKLY),
        _agenda(id="paused", status=AgendaStatus.PAUSED),
        _agenda(id="daily"),
    ]
    created = ensure_tasks_for_date(agendas, [], day)
    assert [task.agenda_id for task in created] == ["paused", "daily"]


def test_ensure_tasks_uses_current_daily_target() -> None:
    agenda = _agenda(kind=AgendaKind.NUMERIC, daily_target_override=12)
    created = ensure_tasks_for_date([agenda], [], date(2024, 1, 3))
    assert created[0].target_val == 12
