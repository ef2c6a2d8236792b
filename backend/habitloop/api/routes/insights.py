"""Progress insights and gamification API routes."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from habitloop.api.schemas.insights import (
    AchievementPayload,
    AgendaStreak,
    InsightsResponse,
    LevelProgress,
    StreakPayload,
    UserStatsResponse,
)
from habitloop.core.clock import Clock, get_clock
from habitloop.core.config import settings
from habitloop.db.deps import get_db
from habitloop.observability.metrics import log_metric
from habitloop.observability.tracing import trace
from habitloop.services.gamification import (
    build_user_stats,
    check_new_achievements,
    format_xp,
    level_progress,
    level_title,
)
from habitloop.services.insights import calculate_streak, consistency_delta, correlations, visible_tasks
from habitloop.services.local_store import cache_for

router = APIRouter()


@router.get("/insights", response_model=InsightsResponse, tags=["insights"])
def get_insights(
    http_request: Request,
    user_id: UUID = Query(...),
    range_days: Optional[int] = Query(default=None, ge=1, le=90),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> InsightsResponse:
    """Streaks, week-over-week consistency and failure-tag correlations."""
    request_id = getattr(http_request.state, "request_id", None)
    range_days = range_days or settings.consistency_range_days
    today = clock.today()

    with trace(
        "insights.compute",
        metadata={"route": "/insights", "range_days": range_days, "request_id": request_id},
        user_id=str(user_id),
        request_id=request_id,
    ):
        cache = cache_for(db, user_id)
        agendas = cache.load_agendas(today=today)
        tasks = visible_tasks(agendas, cache.load_tasks(today=today))

        overall = calculate_streak(tasks, today=today)
        agenda_streaks = []
        for agenda in agendas:
            streak = calculate_streak(tasks, agenda.id, today=today)
            agenda_streaks.append(
                AgendaStreak(
                    agenda_id=agenda.id,
                    title=agenda.title,
                    streak=StreakPayload(current=streak.current, longest=streak.longest),
                )
            )
        delta = consistency_delta(tasks, agendas, range_days, today=today)
        messages = correlations(tasks, agendas)

    log_metric("insights.consistency_delta", delta, metadata={"user_id": str(user_id)})
    log_metric("insights.correlations", len(messages), metadata={"user_id": str(user_id)})

    return InsightsResponse(
        user_id=user_id,
        date=today,
        range_days=range_days,
        overall_streak=StreakPayload(current=overall.current, longest=overall.longest),
        agenda_streaks=agenda_streaks,
        consistency_delta=delta,
        correlations=messages,
        request_id=request_id or "",
    )


@router.get("/insights/stats", response_model=UserStatsResponse, tags=["insights"])
def get_user_stats(
    http_request: Request,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> UserStatsResponse:
    """XP, level and achievements; newly reached achievements are unlocked and stored."""
    request_id = getattr(http_request.state, "request_id", None)
    now = clock.now()
    today = now.date()

    with trace(
        "insights.stats",
        metadata={"route": "/insights/stats", "request_id": request_id},
        user_id=str(user_id),
        request_id=request_id,
    ):
        cache = cache_for(db, user_id)
        agendas = cache.load_agendas(today=today)
        tasks = visible_tasks(agendas, cache.load_tasks(today=today))
        stats = build_user_stats(tasks, agendas, cache.load_stats(), today=today)
        unlocked = check_new_achievements(stats, tasks, agendas, now=now)
        stats.achievements.extend(achievement.id for achievement in unlocked)
        cache.save(stats=stats)

    if unlocked:
        log_metric("insights.achievements_unlocked", len(unlocked), metadata={"user_id": str(user_id)})

    return UserStatsResponse(
        user_id=user_id,
        total_xp=stats.total_xp,
        total_xp_label=format_xp(stats.total_xp),
        level=stats.level,
        level_title=level_title(stats.level),
        level_progress=LevelProgress(**level_progress(stats.total_xp)),
        tasks_completed=stats.tasks_completed,
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        perfect_days=stats.perfect_days,
        buffers_used=stats.buffers_used,
        achievements=stats.achievements,
        new_achievements=[
            AchievementPayload(
                id=achievement.id,
                title=achievement.title,
                description=achievement.description,
                category=achievement.category,
                unlocked_at=achievement.unlocked_at,
            )
            for achievement in unlocked
        ],
        request_id=request_id or "",
    )
