"""
Gamification entity models.

``UserPoints`` holds the running totals per user; ``PointsTransaction`` is the
append-only ledger the totals are derived from.
"""

from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import (
    Base,
    NaiveDatetime,
    created_at_field,
    timestamp_field,
    updated_at_field,
)


class Achievement(Base, table=True):
    """Table: achievements"""

    __tablename__ = "achievements"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(unique=True, index=True, max_length=100)
    name: str = Field(max_length=255)
    description: str
    category: str = Field(max_length=100, index=True)
    points_value: int = Field(ge=0)
    rarity: str = Field(default="common", max_length=50)
    requirement_type: str = Field(max_length=100, description="Counter the achievement tracks, e.g. posts_created")
    requirement_value: int = Field(ge=1)
    created_at: NaiveDatetime = created_at_field()


class UserAchievement(Base, table=True):
    """Table: user_achievements"""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    achievement_id: int = Field(foreign_key="achievements.id", index=True)
    progress: int = Field(default=0, ge=0)
    progress_max: int = Field(ge=1)
    is_completed: bool = Field(default=False, index=True)
    earned_at: Optional[NaiveDatetime] = timestamp_field()
    created_at: NaiveDatetime = created_at_field()


class UserPoints(Base, table=True):
    """Table: user_points"""

    __tablename__ = "user_points"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    total_points: int = Field(default=0, ge=0)
    social_points: int = Field(default=0, ge=0)
    event_points: int = Field(default=0, ge=0)
    contribution_points: int = Field(default=0, ge=0)
    achievement_points: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1, index=True)
    level_progress: int = Field(default=0, ge=0)
    next_level_threshold: int = Field(default=100, ge=1)
    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()


class PointsTransaction(Base, table=True):
    """Table: points_transactions"""

    __tablename__ = "points_transactions"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    action: str = Field(max_length=50, index=True)
    category: str = Field(max_length=30)
    points: int
    reference_id: Optional[int] = Field(default=None, description="Id of the post, event, donation... that earned it")
    created_at: NaiveDatetime = created_at_field()
