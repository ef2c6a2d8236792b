"""Schemas for insights endpoints."""
from __future__ import annotations

import datetime as dt
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class StreakPayload(BaseModel):
    current: int
    longest: int


class AgendaStreak(BaseModel):
    agenda_id: str
    title: str
    streak: StreakPayload


class InsightsResponse(BaseModel):
    user_id: UUID
    date: dt.date
    range_days: int
    overall_streak: StreakPayload
    agenda_streaks: List[AgendaStreak]
    consistency_delta: int
    correlations: List[str]
    request_id: str


class AchievementPayload(BaseModel):
    id: str
    title: str
    description: str
    category: str
    unlocked_at: Optional[dt.date]


class LevelProgress(BaseModel):
    current: int
    required: int
    percentage: int


class UserStatsResponse(BaseModel):
    user_id: UUID
    total_xp: int
    total_xp_label: str
    level: int
    level_title: str
    level_progress: LevelProgress
    tasks_completed: int
    current_streak: int
    longest_streak: int
    perfect_days: int
    buffers_used: int
    achievements: List[str]
    new_achievements: List[AchievementPayload]
    request_id: str
