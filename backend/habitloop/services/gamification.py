"""XP, levels and achievements derived from task history."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from habitloop.services.insights import calculate_streak
from habitloop.services.types import Agenda, DailyTask, TaskStatus

# Safety limit for backwards date walks.
MAX_DATE_ITERATIONS = 365

XP_REWARDS = {
    "TASK_COMPLETE": 10,
    "GOAL_COMPLETE": 50,
    "STREAK_BONUS_7": 25,
    "STREAK_BONUS_14": 50,
    "STREAK_BONUS_21": 75,
    "STREAK_BONUS_30": 100,
    "STREAK_BONUS_50": 150,
    "STREAK_BONUS_100": 300,
    "PERFECT_DAY": 20,
    "ACHIEVEMENT_UNLOCK": 30,
    "FIRST_GOAL": 25,
    "COMEBACK": 15,
}

STREAK_MILESTONES = (7, 14, 21, 30, 50, 100)

LEVEL_THRESHOLDS = (
    0, 100, 250, 500, 850, 1300, 1900, 2700, 3700, 5000,
    6500, 8500, 11000, 14000, 18000, 23000, 29000, 36000, 45000, 55000,
)

LEVEL_TITLES = (
    "Beginner",
    "Apprentice",
    "Focused",
    "Determined",
    "Consistent",
    "Dedicated",
    "Driven",
    "Disciplined",
    "Master",
    "Champion",
    "Elite",
    "Legend",
    "Unstoppable",
    "Transcendent",
    "Goal Crusher",
    "Habit Hero",
    "Productivity Sage",
    "Time Master",
    "Ultimate Achiever",
    "Goal Coach Legend",
)


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    category: str
    requirement: int
    unlocked_at: Optional[date] = None


@dataclass
class UserStats:
    total_xp: int = 0
    level: int = 1
    tasks_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    perfect_days: int = 0
    buffers_used: int = 0
    achievements: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserStats":
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass(frozen=True)
class XPEvent:
    type: str
    amount: int
    description: str


def _achievement(id: str, title: str, description: str, category: str, requirement: int) -> Achievement:
    return Achievement(id=id, title=title, description=description, category=category, requirement=requirement)


ACHIEVEMENTS = (
    _achievement("streak_7", "Week Warrior", "Complete a 7-day streak", "streak", 7),
    _achievement("streak_14", "Fortnight Focus", "Complete a 14-day streak", "streak", 14),
    _achievement("streak_21", "Habit Builder", "Complete a 21-day streak", "streak", 21),
    _achievement("streak_30", "Monthly Master", "Complete a 30-day streak", "streak", 30),
    _achievement("streak_50", "Unstoppable", "Complete a 50-day streak", "streak", 50),
    _achievement("streak_100", "Century Champion", "Complete a 100-day streak", "streak", 100),
    _achievement("tasks_10", "Getting Started", "Complete 10 tasks", "completion", 10),
    _achievement("tasks_50", "Task Tackler", "Complete 50 tasks", "completion", 50),
    _achievement("tasks_100", "Century Club", "Complete 100 tasks", "completion", 100),
    _achievement("tasks_250", "Task Titan", "Complete 250 tasks", "completion", 250),
    _achievement("tasks_500", "Productivity Pro", "Complete 500 tasks", "completion", 500),
    _achievement("tasks_1000", "Task Legend", "Complete 1000 tasks", "completion", 1000),
    _achievement("perfect_3", "Triple Threat", "3 perfect days in a row", "consistency", 3),
    _achievement("perfect_7", "Perfect Week", "7 perfect days in a row", "consistency", 7),
    _achievement("perfect_14", "Flawless Fortnight", "14 perfect days in a row", "consistency", 14),
    _achievement("perfect_30", "Perfect Month", "30 perfect days in a row", "consistency", 30),
    _achievement("first_goal", "First Step", "Create your first goal", "special", 1),
    _achievement("early_bird", "Early Bird", "Complete a task before 8 AM", "special", 1),
    _achievement("night_owl", "Night Owl", "Complete a task after 10 PM", "special", 1),
    _achievement("goal_5", "Goal Getter", "Have 5 active goals", "special", 5),
    _achievement("level_5", "Rising Star", "Reach level 5", "special", 5),
    _achievement("level_10", "Champion", "Reach level 10", "special", 10),
    _achievement("level_15", "Master", "Reach level 15", "special", 15),
)


def calculate_level(xp: int) -> int:
    for index in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        if xp >= LEVEL_THRESHOLDS[index]:
            return index + 1
    return 1


def level_progress(xp: int) -> Dict[str, int]:
    level = calculate_level(xp)
    current_threshold = LEVEL_THRESHOLDS[level - 1]
    if level < len(LEVEL_THRESHOLDS):
        next_threshold = LEVEL_THRESHOLDS[level]
    else:
        next_threshold = LEVEL_THRESHOLDS[-1] + 10000

    current = xp - current_threshold
    required = next_threshold - current_threshold
    percentage = min(100, int(current / required * 100 + 0.5))
    return {"current": current, "required": required, "percentage": percentage}


def level_title(level: int) -> str:
    return LEVEL_TITLES[max(0, min(level - 1, len(LEVEL_TITLES) - 1))]


def format_xp(xp: int) -> str:
    if xp >= 1000:
        return f"{xp / 1000:.1f}k"
    return str(xp)


def total_completed(tasks: Iterable[DailyTask]) -> int:
    return sum(1 for task in tasks if task.status == TaskStatus.COMPLETED)


def _perfect_day_map(tasks: Iterable[DailyTask]) -> Dict[date, bool]:
    totals: Dict[date, List[int]] = defaultdict(lambda: [0, 0])
    for task in tasks:
        if task.status == TaskStatus.PENDING:
            continue
        bucket = totals[task.scheduled_date]
        bucket[0] += 1
        if task.status == TaskStatus.COMPLETED:
            bucket[1] += 1
    return {day: total > 0 and completed == total for day, (total, completed) in totals.items()}


def perfect_days(tasks: Iterable[DailyTask]) -> int:
    """Days on which every settled task was completed."""
    return sum(1 for perfect in _perfect_day_map(tasks).values() if perfect)


def consecutive_perfect_days(tasks: Iterable[DailyTask], *, today: date) -> int:
    perfect = _perfect_day_map(tasks)
    cursor = today
    run = 0
    if perfect.get(cursor):
        run += 1
    cursor -= timedelta(days=1)

    for _ in range(MAX_DATE_ITERATIONS):
        if not perfect.get(cursor):
            break
        run += 1
        cursor -= timedelta(days=1)
    return run


def check_new_achievements(
    stats: UserStats,
    tasks: Sequence[DailyTask],
    agendas: Sequence[Agenda],
    *,
    now: datetime,
) -> List[Achievement]:
    today = now.date()
    completed_today = any(
        task.scheduled_date == today and task.status == TaskStatus.COMPLETED for task in tasks
    )
    consecutive = consecutive_perfect_days(tasks, today=today)
    unlocked: List[Achievement] = []

    for achievement in ACHIEVEMENTS:
        if achievement.id in stats.achievements:
            continue

        if achievement.category == "streak":
            reached = stats.longest_streak >= achievement.requirement
        elif achievement.category == "completion":
            reached = stats.tasks_completed >= achievement.requirement
        elif achievement.category == "consistency":
            reached = consecutive >= achievement.requirement
        elif achievement.id in {"first_goal", "goal_5"}:
            reached = len(agendas) >= achievement.requirement
        elif achievement.id.startswith("level_"):
            reached = stats.level >= achievement.requirement
        elif achievement.id == "early_bird":
            reached = now.hour < 8 and completed_today
        elif achievement.id == "night_owl":
            reached = now.hour >= 22 and completed_today
        else:
            reached = False

        if reached:
            unlocked.append(replace(achievement, unlocked_at=today))

    return unlocked


def task_xp(
    task: DailyTask,
    tasks: Sequence[DailyTask],
    *,
    today: date,
) -> List[XPEvent]:
    """XP earned for completing ``task``, given the task list after the check-in."""
    events = [XPEvent("task_complete", XP_REWARDS["TASK_COMPLETE"], "Task completed")]

    streak = calculate_streak(tasks, task.agenda_id, today=today)
    if streak.current in STREAK_MILESTONES:
        events.append(
            XPEvent(
                "streak_bonus",
                XP_REWARDS[f"STREAK_BONUS_{streak.current}"],
                f"{streak.current}-day streak bonus!",
            )
        )

    todays = [item for item in tasks if item.scheduled_date == today]
    if len(todays) > 1 and all(item.id == task.id or item.status == TaskStatus.COMPLETED for item in todays):
        events.append(XPEvent("perfect_day", XP_REWARDS["PERFECT_DAY"], "Perfect day! All tasks completed"))

    return events


def build_user_stats(
    tasks: Sequence[DailyTask],
    agendas: Sequence[Agenda],
    existing: Optional[UserStats] = None,
    *,
    today: date,
) -> UserStats:
    completed = total_completed(tasks)
    longest = 0
    current = 0
    for agenda in agendas:
        streak = calculate_streak(tasks, agenda.id, today=today)
        longest = max(longest, streak.longest)
        current = max(current, streak.current)

    perfect = perfect_days(tasks)
    total_xp = existing.total_xp if existing else 0
    if total_xp == 0:
        # Bootstrap XP from history when nothing has been recorded yet.
        total_xp = completed * XP_REWARDS["TASK_COMPLETE"] + perfect * XP_REWARDS["PERFECT_DAY"]
        for milestone in STREAK_MILESTONES:
            if longest >= milestone:
                total_xp += XP_REWARDS[f"STREAK_BONUS_{milestone}"]

    return UserStats(
        total_xp=total_xp,
        level=calculate_level(total_xp),
        tasks_completed=completed,
        current_streak=current,
        longest_streak=longest,
        perfect_days=perfect,
        buffers_used=existing.buffers_used if existing else 0,
        achievements=list(existing.achievements) if existing else [],
    )
