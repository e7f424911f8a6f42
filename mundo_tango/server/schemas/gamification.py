"""Schemas for points, levels and achievements."""

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel


class UserPointsRead(SQLModel):
    user_id: int
    total_points: int
    social_points: int
    event_points: int
    contribution_points: int
    achievement_points: int
    level: int
    level_progress: int
    next_level_threshold: int


class LeaderboardEntry(SQLModel):
    rank: int
    user_id: int
    username: str
    total_points: int
    level: int


class AchievementRead(SQLModel):
    id: int
    slug: str
    name: str
    description: str
    category: str
    points_value: int
    rarity: str
    requirement_type: str
    requirement_value: int


class UserAchievementRead(SQLModel):
    achievement: AchievementRead
    progress: int
    progress_max: int
    is_completed: bool
    earned_at: Optional[datetime] = None
