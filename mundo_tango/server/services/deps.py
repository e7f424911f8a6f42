"""
Request Dependencies.

Resolves the calling user from the ``X-User-Id`` header and provides one
service instance per request, bound to the request's database session.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from mundo_tango.core.database import get_session
from mundo_tango.core.database.entities.users import User, UserRole
from mundo_tango.core.errors import AuthenticationError, NotFoundError, PermissionDeniedError

from .analytics import AnalyticsService
from .crowdfunding import CrowdfundingService
from .events import EventService
from .feed import FeedService
from .gamification import GamificationService
from .groups import GroupService
from .marketplace import MarketplaceService
from .messaging import MessagingService
from .moderation import ModerationService
from .posts import PostService
from .recommendations import RecommendationService
from .users import UserService

SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_user(
    session: SessionDep,
    x_user_id: Optional[int] = Header(default=None, description="Id of the acting user"),
) -> User:
    """Load the acting user named by the ``X-User-Id`` header."""
    if x_user_id is None:
        raise AuthenticationError("X-User-Id header is required")
    user = await session.get(User, x_user_id)
    if user is None or not user.is_active:
        raise NotFoundError.for_entity("User", x_user_id)
    if user.suspended:
        raise PermissionDeniedError("User account is suspended")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_admin_user(user: CurrentUser) -> User:
    if user.role not in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
        raise PermissionDeniedError("Administrator role required")
    return user


AdminUser = Annotated[User, Depends(get_admin_user)]


def get_user_service(session: SessionDep) -> UserService:
    return UserService(session)


def get_post_service(session: SessionDep) -> PostService:
    return PostService(session)


def get_feed_service(session: SessionDep) -> FeedService:
    return FeedService(session)


def get_group_service(session: SessionDep) -> GroupService:
    return GroupService(session)


def get_event_service(session: SessionDep) -> EventService:
    return EventService(session)


def get_marketplace_service(session: SessionDep) -> MarketplaceService:
    return MarketplaceService(session)


def get_crowdfunding_service(session: SessionDep) -> CrowdfundingService:
    return CrowdfundingService(session)


def get_messaging_service(session: SessionDep) -> MessagingService:
    return MessagingService(session)


def get_gamification_service(session: SessionDep) -> GamificationService:
    return GamificationService(session)


def get_moderation_service(session: SessionDep) -> ModerationService:
    return ModerationService(session)


def get_recommendation_service(session: SessionDep) -> RecommendationService:
    return RecommendationService(session)


def get_analytics_service(session: SessionDep) -> AnalyticsService:
    return AnalyticsService(session)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
PostServiceDep = Annotated[PostService, Depends(get_post_service)]
FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]
GroupServiceDep = Annotated[GroupService, Depends(get_group_service)]
EventServiceDep = Annotated[EventService, Depends(get_event_service)]
MarketplaceServiceDep = Annotated[MarketplaceService, Depends(get_marketplace_service)]
CrowdfundingServiceDep = Annotated[CrowdfundingService, Depends(get_crowdfunding_service)]
MessagingServiceDep = Annotated[MessagingService, Depends(get_messaging_service)]
GamificationServiceDep = Annotated[GamificationService, Depends(get_gamification_service)]
ModerationServiceDep = Annotated[ModerationService, Depends(get_moderation_service)]
RecommendationServiceDep = Annotated[RecommendationService, Depends(get_recommendation_service)]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
