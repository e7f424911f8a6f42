"""
Gamification service.

Every point award is written to the ``points_transactions`` ledger and folded
into the member's ``user_points`` totals. Achievement progress is derived
from the ledger, so a new achievement immediately reflects past activity.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.algorithms.gamification import (
    ACTION_COUNTERS,
    AchievementRule,
    PointAction,
    PointCategory,
    evaluate_achievements,
    level_for_points,
    reward_for,
)
from mundo_tango.core.database.entities.gamification import (
    Achievement,
    PointsTransaction,
    UserAchievement,
    UserPoints,
)
from mundo_tango.core.database.entities.users import User
from mundo_tango.core.database.repositories import AsyncRepository
from mundo_tango.core.monitoring import log_business_event
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.schemas.gamification import (
    AchievementRead,
    LeaderboardEntry,
    UserAchievementRead,
)

logger = logging.getLogger(__name__)

DEFAULT_ACHIEVEMENTS: List[Dict] = [
    {
        "slug": "first-post",
        "name": "First Steps",
        "description": "Share your first post with the community",
        "category": "social",
        "points_value": 20,
        "rarity": "common",
        "requirement_type": "posts_created",
        "requirement_value": 1,
    },
    {
        "slug": "storyteller",
        "name": "Storyteller",
        "description": "Publish 25 posts",
        "category": "social",
        "points_value": 100,
        "rarity": "rare",
        "requirement_type": "posts_created",
        "requirement_value": 25,
    },
    {
        "slug": "conversationalist",
        "name": "Conversationalist",
        "description": "Leave 10 comments",
        "category": "social",
        "points_value": 30,
        "rarity": "common",
        "requirement_type": "comments_created",
        "requirement_value": 10,
    },
    {
        "slug": "milonguero",
        "name": "Milonguero",
        "description": "RSVP to 10 events",
        "category": "event",
        "points_value": 75,
        "rarity": "uncommon",
        "requirement_type": "events_attended",
        "requirement_value": 10,
    },
    {
        "slug": "organizer",
        "name": "Organizer",
        "description": "Host your first event",
        "category": "event",
        "points_value": 50,
        "rarity": "uncommon",
        "requirement_type": "events_hosted",
        "requirement_value": 1,
    },
    {
        "slug": "patron",
        "name": "Patron of Tango",
        "description": "Support 5 crowdfunding campaigns",
        "category": "contribution",
        "points_value": 100,
        "rarity": "rare",
        "requirement_type": "donations_made",
        "requirement_value": 5,
    },
    {
        "slug": "community-builder",
        "name": "Community Builder",
        "description": "Join 3 groups",
        "category": "social",
        "points_value": 25,
        "rarity": "common",
        "requirement_type": "groups_joined",
        "requirement_value": 3,
    },
    {
        "slug": "first-sale",
        "name": "First Sale",
        "description": "Sell your first product on the marketplace",
        "category": "contribution",
        "points_value": 50,
        "rarity": "uncommon",
        "requirement_type": "products_sold",
        "requirement_value": 1,
    },
]

_CATEGORY_COLUMNS = {
    PointCategory.SOCIAL: "social_points",
    PointCategory.EVENT: "event_points",
    PointCategory.CONTRIBUTION: "contribution_points",
    PointCategory.ACHIEVEMENT: "achievement_points",
}
_COUNTER_BY_ACTION = {action.value: counter for action, counter in ACTION_COUNTERS.items()}


class GamificationService:
    """Awards points and tracks levels and achievements."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.achievements = AsyncRepository(session, Achievement)

    async def ensure_catalog(self) -> None:
        """Insert the default achievements that are not in the catalog yet."""
        result = await self.session.execute(select(Achievement.slug))
        existing = set(result.scalars().all())
        missing = [Achievement(**data) for data in DEFAULT_ACHIEVEMENTS if data["slug"] not in existing]
        if missing:
            self.session.add_all(missing)
            await self.session.commit()
            logger.info(f"Seeded {len(missing)} achievements")

    async def get_points(self, user_id: int) -> UserPoints:
        result = await self.session.execute(select(UserPoints).where(UserPoints.user_id == user_id))
        points = result.scalars().first()
        if points is None:
            points = UserPoints(user_id=user_id)
            self.session.add(points)
            await self.session.commit()
            await self.session.refresh(points)
        return points

    def _add(self, points: UserPoints, category: PointCategory, amount: int) -> None:
        column = _CATEGORY_COLUMNS[category]
        setattr(points, column, getattr(points, column) + amount)
        points.total_points += amount
        level = level_for_points(points.total_points)
        points.level = level.level
        points.level_progress = level.level_progress
        points.next_level_threshold = level.next_level_threshold

    async def award(self, user_id: int, action: PointAction, reference_id: Optional[int] = None) -> UserPoints:
        """Record ``action`` for ``user_id`` and update totals and achievements."""
        reward = reward_for(action)
        points = await self.get_points(user_id)
        previous_level = points.level

        self.session.add(
            PointsTransaction(
                user_id=user_id,
                action=action.value,
                category=reward.category.value,
                points=reward.points,
                reference_id=reference_id,
            )
        )
        self._add(points, reward.category, reward.points)
        self.session.add(points)
        await self.session.commit()

        await self._update_achievements(points)
        await self.session.refresh(points)
        if points.level > previous_level:
            log_business_event("level_up", user_id=user_id, level=points.level)
        return points

    async def _counters(self, user_id: int) -> Counter:
        result = await self.session.execute(select(PointsTransaction.action).where(PointsTransaction.user_id == user_id))
        counters: Counter = Counter()
        for action in result.scalars().all():
            counter = _COUNTER_BY_ACTION.get(action)
            if counter:
                counters[counter] += 1
        return counters

    async def _update_achievements(self, points: UserPoints) -> None:
        await self.ensure_catalog()
        catalog = await self.achievements.list()
        counters = await self._counters(points.user_id)
        rules = [
            AchievementRule(id=a.id, requirement_type=a.requirement_type, requirement_value=a.requirement_value)
            for a in catalog
        ]
        by_id = {a.id: a for a in catalog}

        result = await self.session.execute(select(UserAchievement).where(UserAchievement.user_id == points.user_id))
        tracked = {ua.achievement_id: ua for ua in result.scalars().all()}

        for progress in evaluate_achievements(rules, counters):
            if progress.progress == 0 and progress.achievement_id not in tracked:
                continue
            record = tracked.get(progress.achievement_id)
            if record is None:
                record = UserAchievement(
                    user_id=points.user_id,
                    achievement_id=progress.achievement_id,
                    progress_max=progress.progress_max,
                )
            elif record.is_completed:
                continue
            record.progress = progress.progress
            record.progress_max = progress.progress_max
            if progress.is_completed:
                record.is_completed = True
                record.earned_at = utc_now()
                self._add(points, PointCategory.ACHIEVEMENT, by_id[progress.achievement_id].points_value)
                log_business_event(
                    "achievement_earned",
                    user_id=points.user_id,
                    achievement=by_id[progress.achievement_id].slug,
                )
            self.session.add(record)
        self.session.add(points)
        await self.session.commit()

    async def leaderboard(self, limit: int = 10) -> List[LeaderboardEntry]:
        stmt = (
            select(UserPoints, User)
            .join(User, User.id == UserPoints.user_id)
            .order_by(UserPoints.total_points.desc(), UserPoints.user_id)  # type: ignore
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            LeaderboardEntry(
                rank=rank,
                user_id=user.id,
                username=user.username,
                total_points=points.total_points,
                level=points.level,
            )
            for rank, (points, user) in enumerate(result.all(), start=1)
        ]

    async def list_achievements(self) -> List[AchievementRead]:
        await self.ensure_catalog()
        catalog = await self.achievements.list(order_by=[Achievement.category, Achievement.requirement_value])
        return [AchievementRead.model_validate(a) for a in catalog]

    async def user_achievements(self, user_id: int) -> List[UserAchievementRead]:
        stmt = (
            select(UserAchievement, Achievement)
            .join(Achievement, Achievement.id == UserAchievement.achievement_id)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.is_completed.desc(), Achievement.id)  # type: ignore
        )
        result = await self.session.execute(stmt)
        return [
            UserAchievementRead(
                achievement=AchievementRead.model_validate(achievement),
                progress=record.progress,
                progress_max=record.progress_max,
                is_completed=record.is_completed,
                earned_at=record.earned_at,
            )
            for record, achievement in result.all()
        ]
