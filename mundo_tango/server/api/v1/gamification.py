"""
API endpoints for points, levels and achievements.

Points are awarded by the other services as members post, comment, attend
events, donate and sell; these endpoints only read the results.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query

from mundo_tango.server.schemas.gamification import (
    AchievementRead,
    LeaderboardEntry,
    UserAchievementRead,
    UserPointsRead,
)
from mundo_tango.server.services.deps import CurrentUser, GamificationServiceDep

router = APIRouter(tags=["gamification"])


@router.get(
    "/points",
    response_model=UserPointsRead,
    summary="My Points",
    description="Point totals per category, level and progress towards the next level.",
)
async def my_points(user: CurrentUser, service: GamificationServiceDep) -> UserPointsRead:
    return UserPointsRead.model_validate(await service.get_points(user.id))


@router.get("/leaderboard", response_model=List[LeaderboardEntry], summary="Leaderboard")
async def leaderboard(
    service: GamificationServiceDep, limit: int = Query(default=10, ge=1, le=100)
) -> List[LeaderboardEntry]:
    return await service.leaderboard(limit=limit)


@router.get("/achievements", response_model=List[AchievementRead], summary="Achievement Catalog")
async def achievements(service: GamificationServiceDep) -> List[AchievementRead]:
    return await service.list_achievements()


@router.get(
    "/achievements/me",
    response_model=List[UserAchievementRead],
    summary="My Achievements",
    description="Progress of the acting member on every achievement they have started.",
)
async def my_achievements(user: CurrentUser, service: GamificationServiceDep) -> List[UserAchievementRead]:
    return await service.user_achievements(user.id)
