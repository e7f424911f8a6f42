"""
API endpoints for the home feeds.

The personalized feed ranks recent posts by social proximity, engagement and
recency and never shows more than a few posts in a row from one author.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query

from mundo_tango.server.schemas.posts import ActiveUser, FeedResponse
from mundo_tango.server.services.deps import CurrentUser, FeedServiceDep

router = APIRouter(tags=["feed"])


@router.get(
    "",
    response_model=FeedResponse,
    summary="Personalized Feed",
    description="Recent posts ranked for the acting member.",
    response_description="A page of ranked posts with the offset of the next page.",
)
async def personalized_feed(
    user: CurrentUser,
    service: FeedServiceDep,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> FeedResponse:
    """
    Personalized feed.

    Posts from the last seven days that the member may see, scored by
    friendship or follow, engagement, recency and recent interactions with
    the author.
    """
    return await service.personalized(user, limit=limit, offset=offset)


@router.get("/following", response_model=FeedResponse, summary="Following Feed")
async def following_feed(
    user: CurrentUser,
    service: FeedServiceDep,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> FeedResponse:
    """Posts from friends and followed members, newest first."""
    return await service.following(user, limit=limit, offset=offset)


@router.get("/discover", response_model=FeedResponse, summary="Discover Feed")
async def discover_feed(
    user: CurrentUser,
    service: FeedServiceDep,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> FeedResponse:
    """Public posts from outside the member's network, by engagement velocity."""
    return await service.discover(user, limit=limit, offset=offset)


@router.get("/trending", response_model=FeedResponse, summary="Trending Posts")
async def trending_feed(service: FeedServiceDep, limit: int = Query(default=5, ge=1, le=50)) -> FeedResponse:
    return await service.trending(limit=limit)


@router.get("/recommended", response_model=FeedResponse, summary="Recommended Posts")
async def recommended_feed(
    user: CurrentUser, service: FeedServiceDep, limit: int = Query(default=50, ge=1, le=100)
) -> FeedResponse:
    return await service.recommended(user, limit=limit)


@router.get(
    "/active-users",
    response_model=List[ActiveUser],
    summary="Recently Active Members",
    description="Members who posted or commented in the last 24 hours, most recent first.",
)
async def active_users(service: FeedServiceDep, limit: int = Query(default=20, ge=1, le=100)) -> List[ActiveUser]:
    return await service.active_users(limit=limit)
