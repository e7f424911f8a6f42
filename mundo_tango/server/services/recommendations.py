"""
Recommendation service.

Collects candidate rows and the signals the scoring functions in
``mundo_tango.algorithms.recommendations`` need (mutual friends, shared
events, friends attending) with aggregate queries, then ranks them.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, List, Set

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.algorithms.recommendations import (
    ContentCandidate,
    DancerProfile,
    EventCandidate,
    FriendCandidate,
    Recommendation,
    TeacherCandidate,
    recommend_content,
    recommend_events,
    recommend_friends,
    recommend_teachers,
)
from mundo_tango.core.database.entities.events import Event, EventRsvp, EventStatus, RsvpStatus
from mundo_tango.core.database.entities.posts import Post
from mundo_tango.core.database.entities.social import Friendship, FriendshipStatus
from mundo_tango.core.database.entities.users import TeacherProfile, User
from mundo_tango.core.database.repositories import SocialGraphRepository
from mundo_tango.core.timeutils import utc_now

from .posts import visible_to

logger = logging.getLogger(__name__)

CANDIDATE_LIMIT = 500
CONTENT_WINDOW_DAYS = 7


def to_profile(user: User) -> DancerProfile:
    return DancerProfile(
        id=user.id,
        city=user.city,
        country=user.country,
        leader_level=user.leader_level,
        follower_level=user.follower_level,
        interests=user.interests,
    )


class RecommendationService:
    """Friend, event, teacher and content suggestions for one user."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.graph = SocialGraphRepository(session)

    async def _attended_event_ids(self, user_id: int) -> Set[int]:
        result = await self.session.execute(
            select(EventRsvp.event_id).where(EventRsvp.user_id == user_id, EventRsvp.status == RsvpStatus.GOING)
        )
        return set(result.scalars().all())

    async def friends(self, user: User, limit: int = 10) -> List[Recommendation]:
        friend_ids = await self.graph.friend_ids(user.id)
        excluded = friend_ids | {user.id}

        stmt = (
            select(User)
            .where(User.is_active == True, User.suspended == False, User.id.not_in(excluded))  # type: ignore  # noqa: E712
            .order_by(User.created_at.desc())  # type: ignore
            .limit(CANDIDATE_LIMIT)
        )
        candidates = list((await self.session.execute(stmt)).scalars().all())
        if not candidates:
            return []
        candidate_ids = [c.id for c in candidates]

        mutual: Dict[int, int] = {}
        if friend_ids:
            rows = await self.session.execute(
                select(Friendship.user_id, func.count())
                .where(
                    Friendship.user_id.in_(candidate_ids),  # type: ignore
                    Friendship.friend_id.in_(friend_ids),  # type: ignore
                    Friendship.status == FriendshipStatus.ACCEPTED,
                )
                .group_by(Friendship.user_id)
            )
            mutual = dict(rows.all())

        shared_events: Dict[int, int] = {}
        attended = await self._attended_event_ids(user.id)
        if attended:
            rows = await self.session.execute(
                select(EventRsvp.user_id, func.count())
                .where(
                    EventRsvp.event_id.in_(attended),  # type: ignore
                    EventRsvp.user_id.in_(candidate_ids),  # type: ignore
                    EventRsvp.status == RsvpStatus.GOING,
                )
                .group_by(EventRsvp.user_id)
            )
            shared_events = dict(rows.all())

        scored = recommend_friends(
            to_profile(user),
            (
                FriendCandidate(
                    **to_profile(c).model_dump(),
                    mutual_friend_count=mutual.get(c.id, 0),
                    shared_event_count=shared_events.get(c.id, 0),
                )
                for c in candidates
            ),
            exclude_ids=excluded,
            limit=limit,
        )
        logger.debug(f"Friend suggestions for user {user.id}: {len(scored)} of {len(candidates)} candidates")
        return scored

    async def events(self, user: User, limit: int = 10) -> List[Recommendation]:
        responded = select(EventRsvp.event_id).where(EventRsvp.user_id == user.id)
        stmt = (
            select(Event)
            .where(
                Event.status == EventStatus.PUBLISHED,
                Event.start_date >= utc_now(),
                Event.user_id != user.id,
                Event.id.not_in(responded),  # type: ignore
            )
            .order_by(Event.start_date)
            .limit(CANDIDATE_LIMIT)
        )
        events = list((await self.session.execute(stmt)).scalars().all())
        if not events:
            return []

        friends_attending: Dict[int, int] = {}
        friend_ids = await self.graph.friend_ids(user.id)
        if friend_ids:
            rows = await self.session.execute(
                select(EventRsvp.event_id, func.count())
                .where(
                    EventRsvp.event_id.in_([e.id for e in events]),  # type: ignore
                    EventRsvp.user_id.in_(friend_ids),  # type: ignore
                    EventRsvp.status == RsvpStatus.GOING,
                )
                .group_by(EventRsvp.event_id)
            )
            friends_attending = dict(rows.all())

        history = await self.session.execute(
            select(Event.event_type)
            .join(EventRsvp, EventRsvp.event_id == Event.id)
            .where(EventRsvp.user_id == user.id, EventRsvp.status == RsvpStatus.GOING)
        )
        return recommend_events(
            to_profile(user),
            (
                EventCandidate(
                    id=e.id,
                    event_type=e.event_type,
                    city=e.city,
                    country=e.country,
                    dance_styles=e.dance_styles,
                    current_attendees=e.current_attendees,
                    friends_attending=friends_attending.get(e.id, 0),
                )
                for e in events
            ),
            past_event_types=history.scalars().all(),
            limit=limit,
        )

    async def teachers(self, user: User, limit: int = 10) -> List[Recommendation]:
        """Teacher suggestions; ``id`` is the teacher's user id."""
        stmt = select(TeacherProfile).where(TeacherProfile.is_active == True, TeacherProfile.user_id != user.id)  # noqa: E712
        profiles = (await self.session.execute(stmt.limit(CANDIDATE_LIMIT))).scalars().all()
        return recommend_teachers(
            to_profile(user),
            (
                TeacherCandidate(
                    id=p.user_id,
                    city=p.city,
                    country=p.country,
                    specialties=p.specialties,
                    years_teaching=p.years_teaching,
                    average_rating=p.average_rating,
                    total_reviews=p.total_reviews,
                )
                for p in profiles
            ),
            limit=limit,
        )

    async def content(self, user: User, limit: int = 20) -> List[Recommendation]:
        now = utc_now()
        friend_ids = await self.graph.friend_ids(user.id)
        stmt = (
            select(Post)
            .where(Post.created_at >= now - timedelta(days=CONTENT_WINDOW_DAYS), Post.user_id != user.id)
            .order_by(Post.created_at.desc())  # type: ignore
            .limit(CANDIDATE_LIMIT)
        )
        posts = [p for p in (await self.session.execute(stmt)).scalars().all() if visible_to(p, user.id, friend_ids)]
        recommendations = recommend_content(
            user.id,
            (
                ContentCandidate(
                    id=p.id,
                    author_id=p.user_id,
                    group_id=p.group_id,
                    likes=p.likes,
                    comments=p.comments,
                    created_at=p.created_at,
                )
                for p in posts
            ),
            friend_ids=friend_ids,
            following_ids=await self.graph.following_ids(user.id),
            group_ids=await self.graph.group_ids(user.id),
            now=now,
            limit=limit,
        )
        logger.debug(f"Content suggestions for user {user.id}: {len(recommendations)} of {len(posts)} posts")
        return recommendations
