"""
API endpoints for personal recommendations.

Every result carries the recommended id, a score and the reasons that
contributed to it, best first.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query

from mundo_tango.algorithms.recommendations import Recommendation
from mundo_tango.server.services.deps import CurrentUser, RecommendationServiceDep

router = APIRouter(tags=["recommendations"])


@router.get(
    "/friends",
    response_model=List[Recommendation],
    summary="Friend Suggestions",
    description="Members to befriend, scored by mutual friends, dance level, location, shared events and interests.",
)
async def recommend_friends(
    user: CurrentUser, service: RecommendationServiceDep, limit: int = Query(default=10, ge=1, le=50)
) -> List[Recommendation]:
    return await service.friends(user, limit=limit)


@router.get(
    "/events",
    response_model=List[Recommendation],
    summary="Event Suggestions",
    description="Upcoming events the acting member has not answered yet.",
)
async def recommend_events(
    user: CurrentUser, service: RecommendationServiceDep, limit: int = Query(default=10, ge=1, le=50)
) -> List[Recommendation]:
    return await service.events(user, limit=limit)


@router.get(
    "/teachers",
    response_model=List[Recommendation],
    summary="Teacher Suggestions",
    description="Teachers matched on location, level fit, specialties and ratings. The id is the teacher's member id.",
)
async def recommend_teachers(
    user: CurrentUser, service: RecommendationServiceDep, limit: int = Query(default=10, ge=1, le=50)
) -> List[Recommendation]:
    return await service.teachers(user, limit=limit)


@router.get(
    "/content",
    response_model=List[Recommendation],
    summary="Content Suggestions",
    description="Posts from the last week, favouring friends, followed members and joined groups.",
)
async def recommend_content(
    user: CurrentUser, service: RecommendationServiceDep, limit: int = Query(default=20, ge=1, le=100)
) -> List[Recommendation]:
    return await service.content(user, limit=limit)
