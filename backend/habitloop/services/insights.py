"""Streak, consistency and correlation analytics over daily tasks."""
from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set

from habitloop.services.dates import resolve_today
from habitloop.services.types import (
    Agenda,
    DailyTask,
    FailureTag,
    StreakInfo,
    TaskStatus,
    is_success,
)

MIN_CORRELATION_DAYS = 5
MIN_CORRELATION_GAP = 10


def visible_tasks(agendas: Iterable[Agenda], tasks: Iterable[DailyTask]) -> List[DailyTask]:
    """Drop orphaned tasks whose agenda no longer exists."""
    agenda_ids = {agenda.id for agenda in agendas}
    return [task for task in tasks if task.agenda_id in agenda_ids]


def calculate_streak(
    tasks: Iterable[DailyTask],
    agenda_id: Optional[str] = None,
    *,
    today: date | None = None,
) -> StreakInfo:
    """Compute the current and longest streaks.

    The current streak walks backwards from today. An unfinished today is
    neither counted nor treated as a break; the first earlier day without a
    successful task ends the walk. The longest streak is a forward pass over
    the recorded tasks in date order: pending entries are ignored, any other
    non-success status resets the run, and days with no task at all are not
    treated as breaks.
    """
    relevant = [task for task in tasks if agenda_id is None or task.agenda_id == agenda_id]
    status_by_day: Dict[date, TaskStatus] = {task.scheduled_date: task.status for task in relevant}

    cursor = resolve_today(today)
    current = 0
    if is_success(status_by_day.get(cursor, TaskStatus.PENDING)):
        current += 1
    cursor -= timedelta(days=1)
    while cursor in status_by_day and is_success(status_by_day[cursor]):
        current += 1
        cursor -= timedelta(days=1)

    longest = 0
    run = 0
    for task in sorted(relevant, key=lambda item: item.scheduled_date):
        if is_success(task.status):
            run += 1
        elif task.status != TaskStatus.PENDING:
            longest = max(longest, run)
            run = 0
    longest = max(longest, run)

    return StreakInfo(current=current, longest=longest)


def _success_rate(tasks: Sequence[DailyTask]) -> Optional[float]:
    settled = [task for task in tasks if task.status != TaskStatus.PENDING]
    if not settled:
        return None
    successes = sum(1 for task in settled if is_success(task.status))
    return successes / len(settled) * 100


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def consistency_delta(
    tasks: Iterable[DailyTask],
    agendas: Iterable[Agenda],
    range_days: int,
    *,
    today: date | None = None,
) -> int:
    """Success-rate change, in points, between the last ``range_days`` and the window before."""
    if range_days <= 0:
        return 0
    relevant = visible_tasks(agendas, tasks)

    end = resolve_today(today)
    start = end - timedelta(days=range_days - 1)
    previous_end = start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=range_days - 1)

    current_rate = _success_rate([task for task in relevant if start <= task.scheduled_date <= end])
    if current_rate is None:
        return 0
    previous_rate = _success_rate(
        [task for task in relevant if previous_start <= task.scheduled_date <= previous_end]
    )
    if previous_rate is None:
        return 0

    return _round_half_up(current_rate - previous_rate)


@dataclass
class _DayStats:
    tags: Set[FailureTag] = field(default_factory=set)
    completed: int = 0
    settled: int = 0

    @property
    def rate(self) -> float:
        return self.completed / self.settled if self.settled else 0.0


def correlations(tasks: Iterable[DailyTask], agendas: Iterable[Agenda]) -> List[str]:
    """Natural-language insights about failure tags that coincide with bad days."""
    days: Dict[date, _DayStats] = defaultdict(_DayStats)
    for task in visible_tasks(agendas, tasks):
        stats = days[task.scheduled_date]
        if task.status != TaskStatus.PENDING:
            stats.settled += 1
        if task.status == TaskStatus.COMPLETED:
            stats.completed += 1
        if task.failure_tag and task.failure_tag != FailureTag.NONE:
            stats.tags.add(task.failure_tag)

    insights: List[str] = []
    for tag in FailureTag:
        if tag == FailureTag.NONE:
            continue
        tagged = [stats.rate for stats in days.values() if tag in stats.tags]
        others = [stats.rate for stats in days.values() if tag not in stats.tags]
        if len(tagged) <= MIN_CORRELATION_DAYS or len(others) <= MIN_CORRELATION_DAYS:
            continue
        gap = (sum(others) / len(others) - sum(tagged) / len(tagged)) * 100
        if gap > MIN_CORRELATION_GAP:
            insights.append(f"When you are '{tag.value}', your productivity drops by {_round_half_up(gap)}%.")

    return insights
