"""Deficit redistribution after a missed or partial day."""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import timedelta
from typing import Dict, List, Sequence

from habitloop.services.task_generator import new_id
from habitloop.services.types import DailyTask, RedistributionStrategy, TaskStatus

logger = logging.getLogger(__name__)


def redistribute(
    tasks: Sequence[DailyTask],
    failed_task_id: str,
    missing_amount: float,
    strategy: RedistributionStrategy | str,
) -> List[DailyTask]:
    """Move ``missing_amount`` from a failed task onto the tasks that follow it.

    Offsets are computed within the failed task's agenda, ordered by date, so
    interleaved tasks of other agendas are never touched. When nothing follows
    the failed task a new pending task is added for the next day to carry the
    amount. Target values only grow; actual values are left alone.
    """
    result = list(tasks)
    failed = next((task for task in result if task.id == failed_task_id), None)
    if failed is None or missing_amount <= 0:
        return result

    strategy = RedistributionStrategy(strategy)
    agenda_tasks = sorted(
        (task for task in result if task.agenda_id == failed.agenda_id),
        key=lambda task: task.scheduled_date,
    )
    position = next(index for index, task in enumerate(agenda_tasks) if task.id == failed_task_id)
    following = agenda_tasks[position + 1 :]

    if not following:
        carry = DailyTask(
            id=new_id(),
            agenda_id=failed.agenda_id,
            scheduled_date=failed.scheduled_date + timedelta(days=1),
            target_val=0,
            actual_val=0,
            status=TaskStatus.PENDING,
            was_recalculated=True,
        )
        result.append(carry)
        following = [carry]

    if strategy == RedistributionStrategy.TOMORROW:
        increments = {following[0].id: missing_amount}
    else:
        increments = _spread(following, missing_amount)

    logger.debug(
        "Redistributed %s from task %s (%s) over %s task(s)",
        missing_amount,
        failed_task_id,
        strategy.value,
        len(increments),
    )
    return [
        replace(task, target_val=task.target_val + increments[task.id], was_recalculated=True)
        if task.id in increments
        else task
        for task in result
    ]


def _spread(following: Sequence[DailyTask], missing_amount: float) -> Dict[str, float]:
    base = math.floor(missing_amount / len(following))
    remainder = missing_amount - base * len(following)
    whole = int(remainder)
    # Fractional leftover lands on the first following task.
    fraction = remainder - whole
    return {
        task.id: base + (1 if offset < whole else 0) + (fraction if offset == 0 else 0)
        for offset, task in enumerate(following)
    }
