from __future__ import annotations

from datetime import date, datetime, timedelta

from habitloop.services.gamification import (
    XP_REWARDS,
    UserStats,
    build_user_stats,
    calculate_level,
    check_new_achievements,
    consecutive_perfect_days,
    format_xp,
    level_progress,
    level_title,
    perfect_days,
    task_xp,
)
from habitloop.services.types import Agenda, AgendaKind, DailyTask, TaskStatus

TODAY = date(2024, 1, 14)


def _agenda(agenda_id: str = "a1") -> Agenda:
    return Agenda(id=agenda_id, title=agenda_id, kind=AgendaKind.BOOLEAN, start_date=date(2024, 1, 1))


def _task(day: date, status: TaskStatus, agenda_id: str = "a1") -> DailyTask:
    return DailyTask(
        id=f"{agenda_id}-{day.isoformat()}",
        agenda_id=agenda_id,
        scheduled_date=day,
        target_val=1,
        status=status,
    )


def test_levels_follow_thresholds() -> None:
    assert calculate_level(0) == 1
    assert calculate_level(99) == 1
    assert calculate_level(100) == 2
    assert calculate_level(60000) == 20


def test_level_progress_and_titles() -> None:
    assert level_progress(150) == {"current": 50, "required": 150, "percentage": 33}
    assert level_title(1) == "Beginner"
    assert level_title(99) == "Goal Coach Legend"
    assert format_xp(999) == "999"
    assert format_xp(1500) == "1.5k"


def test_perfect_days_ignore_pending_tasks() -> None:
    tasks = [
        _task(date(2024, 1, 12), TaskStatus.COMPLETED),
        _task(date(2024, 1, 12), TaskStatus.PENDING, agenda_id="a2"),
        _task(date(2024, 1, 13), TaskStatus.COMPLETED),
        _task(date(2024, 1, 13), TaskStatus.FAILED, agenda_id="a2"),
        _task(TODAY, TaskStatus.COMPLETED),
    ]
    assert perfect_days(tasks) == 2
    assert consecutive_perfect_days(tasks, today=TODAY) == 1


def test_completing_last_open_task_earns_perfect_day() -> None:
    done = _task(TODAY, TaskStatus.COMPLETED, agenda_id="a2")
    current = _task(TODAY, TaskStatus.COMPLETED)
    events = task_xp(current, [done, current], today=TODAY)

    assert [event.type for event in events] == ["task_complete", "perfect_day"]
    assert sum(event.amount for event in events) == XP_REWARDS["TASK_COMPLETE"] + XP_REWARDS["PERFECT_DAY"]


def test_seventh_day_in_a_row_earns_streak_bonus() -> None:
    tasks = [_task(TODAY - timedelta(days=offset), TaskStatus.COMPLETED) for offset in range(7)]
    events = task_xp(tasks[0], tasks, today=TODAY)

    bonus = [event for event in events if event.type == "streak_bonus"]
    assert len(bonus) == 1
    assert bonus[0].amount == XP_REWARDS["STREAK_BONUS_7"]


def test_build_user_stats_bootstraps_xp_from_history() -> None:
    tasks = [_task(TODAY - timedelta(days=offset), TaskStatus.COMPLETED) for offset in range(1, 4)]
    stats = build_user_stats(tasks, [_agenda()], today=TODAY)

    assert stats.tasks_completed == 3
    assert stats.perfect_days == 3
    assert stats.longest_streak == 3
    assert stats.current_streak == 3
    assert stats.total_xp == 3 * XP_REWARDS["TASK_COMPLETE"] + 3 * XP_REWARDS["PERFECT_DAY"]


def test_build_user_stats_keeps_recorded_xp() -> None:
    existing = UserStats(total_xp=420, buffers_used=2, achievements=["first_goal"])
    stats = build_user_stats([], [_agenda()], existing, today=TODAY)

    assert stats.total_xp == 420
    assert stats.level == 3
    assert stats.buffers_used == 2
    assert stats.achievements == ["first_goal"]


def test_new_achievements_are_unlocked_once() -> None:
    tasks = [_task(TODAY, TaskStatus.COMPLETED)]
    stats = UserStats(tasks_completed=10, achievements=["tasks_10"])
    unlocked = check_new_achievements(stats, tasks, [_agenda()], now=datetime(2024, 1, 14, 7, 30))

    ids = {achievement.id for achievement in unlocked}
    assert ids == {"first_goal", "early_bird"}
    assert all(achievement.unlocked_at == TODAY for achievement in unlocked)


def test_night_owl_needs_a_completion_today() -> None:
    stats = UserStats()
    late = datetime(2024, 1, 14, 23, 0)

    assert "night_owl" not in {a.id for a in check_new_achievements(stats, [], [], now=late)}
    tasks = [_task(TODAY, TaskStatus.COMPLETED)]
    assert "night_owl" in {a.id for a in check_new_achievements(stats, tasks, [], now=late)}


def test_user_stats_round_trip_ignores_unknown_keys() -> None:
    stats = UserStats(total_xp=55, achievements=["first_goal"])
    restored = UserStats.from_dict({**stats.to_dict(), "legacy": True})
    assert restored == stats
