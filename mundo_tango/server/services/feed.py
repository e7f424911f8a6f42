"""
Feed service.

Loads candidate posts and the viewer's social context from the database and
hands them to the ranking functions in ``mundo_tango.algorithms.feed``.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.algorithms.feed import (
    DISCOVER_WINDOW_HOURS,
    INTERACTION_WINDOW_DAYS,
    PERSONALIZED_WINDOW_DAYS,
    RECOMMENDED_WINDOW_DAYS,
    TRENDING_WINDOW_HOURS,
    ActivityRecord,
    PostSignals,
    ScoredPost,
    ViewerContext,
    latest_activity_per_user,
    paginate,
    rank_discover,
    rank_personalized,
    rank_recommended,
    rank_trending,
)
from mundo_tango.core.database.entities.posts import Post, PostComment, PostVisibility, Reaction
from mundo_tango.core.database.entities.users import User
from mundo_tango.core.database.repositories import SocialGraphRepository
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.core.config import settings
from mundo_tango.server.schemas.posts import ActiveUser, FeedPost, FeedResponse

from .posts import visible_to

logger = logging.getLogger(__name__)

ACTIVE_USERS_WINDOW_HOURS = 24


def to_signals(post: Post) -> PostSignals:
    return PostSignals(
        id=post.id,
        author_id=post.user_id,
        likes=post.likes,
        comments=post.comments,
        shares=post.shares,
        created_at=post.created_at,
    )


class FeedService:
    """Personalized, following, discover, trending and recommended feeds."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.graph = SocialGraphRepository(session)

    async def _recent_posts(self, hours: float, limit: Optional[int] = None, public_only: bool = False) -> List[Post]:
        since = utc_now() - timedelta(hours=hours)
        stmt = select(Post).where(Post.created_at >= since)
        if public_only:
            stmt = stmt.where(Post.visibility == PostVisibility.PUBLIC)
        stmt = stmt.order_by(Post.created_at.desc())  # type: ignore
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _interacted_authors(self, user_id: int) -> Set[int]:
        """Authors whose posts the user liked or commented on recently."""
        since = utc_now() - timedelta(days=INTERACTION_WINDOW_DAYS)
        authors: Set[int] = set()
        for model in (Reaction, PostComment):
            stmt = (
                select(Post.user_id)
                .join(model, model.post_id == Post.id)
                .where(model.user_id == user_id, model.created_at >= since)
            )
            result = await self.session.execute(stmt)
            authors.update(result.scalars().all())
        authors.discard(user_id)
        return authors

    async def viewer_context(self, viewer: User) -> ViewerContext:
        return ViewerContext(
            user_id=viewer.id,
            friend_ids=await self.graph.friend_ids(viewer.id),
            following_ids=await self.graph.following_ids(viewer.id),
            interacted_author_ids=await self._interacted_authors(viewer.id),
        )

    @staticmethod
    def _page(ranked: List[ScoredPost], posts: Iterable[Post], limit: int, offset: int) -> FeedResponse:
        by_id: Dict[int, Post] = {p.id: p for p in posts}
        page = paginate(ranked, limit, offset)
        return FeedResponse(
            posts=[FeedPost.model_validate(by_id[s.post_id], update={"score": s.score}) for s in page.posts],
            next_offset=page.next_offset,
            has_more=page.has_more,
        )

    async def personalized(self, viewer: User, limit: int = 20, offset: int = 0) -> FeedResponse:
        business = settings.business
        context = await self.viewer_context(viewer)
        candidates = [
            p
            for p in await self._recent_posts(PERSONALIZED_WINDOW_DAYS * 24, business.feed_candidate_limit)
            if visible_to(p, viewer.id, context.friend_ids)
        ]
        ranked = rank_personalized(
            (to_signals(p) for p in candidates),
            context,
            utc_now(),
            max_consecutive=business.feed_max_consecutive_author,
        )
        logger.debug(f"Personalized feed for user {viewer.id}: {len(ranked)} ranked posts")
        return self._page(ranked, candidates, limit, offset)

    async def following(self, viewer: User, limit: int = 20, offset: int = 0) -> FeedResponse:
        """Posts from followed users and friends, newest first."""
        friend_ids = await self.graph.friend_ids(viewer.id)
        authors = friend_ids | await self.graph.following_ids(viewer.id)
        if not authors:
            return FeedResponse(posts=[])
        stmt = (
            select(Post)
            .where(Post.user_id.in_(authors))  # type: ignore
            .order_by(Post.created_at.desc(), Post.id.desc())  # type: ignore
        )
        result = await self.session.execute(stmt)
        posts = [p for p in result.scalars().all() if visible_to(p, viewer.id, friend_ids)]
        ranked = [ScoredPost(post_id=p.id, author_id=p.user_id, score=0.0) for p in posts]
        return self._page(ranked, posts, limit, offset)

    async def discover(self, viewer: User, limit: int = 20, offset: int = 0) -> FeedResponse:
        """Public posts from outside the viewer's network, by engagement velocity."""
        network = await self.graph.friend_ids(viewer.id) | await self.graph.following_ids(viewer.id)
        network.add(viewer.id)
        candidates = [
            p for p in await self._recent_posts(DISCOVER_WINDOW_HOURS, public_only=True) if p.user_id not in network
        ]
        ranked = rank_discover((to_signals(p) for p in candidates), utc_now())
        return self._page(ranked, candidates, limit, offset)

    async def trending(self, limit: int = 5) -> FeedResponse:
        candidates = await self._recent_posts(TRENDING_WINDOW_HOURS, public_only=True)
        ranked = rank_trending((to_signals(p) for p in candidates), utc_now(), limit=limit)
        return self._page(ranked, candidates, limit, 0)

    async def recommended(self, viewer: User, limit: int = 50) -> FeedResponse:
        candidates = [
            p
            for p in await self._recent_posts(RECOMMENDED_WINDOW_DAYS * 24, public_only=True)
            if p.user_id != viewer.id
        ]
        ranked = rank_recommended((to_signals(p) for p in candidates), limit=limit)
        return self._page(ranked, candidates, limit, 0)

    async def active_users(self, limit: int = 20) -> List[ActiveUser]:
        """Users who posted or commented most recently."""
        since = utc_now() - timedelta(hours=ACTIVE_USERS_WINDOW_HOURS)
        records: List[ActivityRecord] = []
        for model in (Post, PostComment):
            result = await self.session.execute(
                select(model.user_id, model.created_at).where(model.created_at >= since)
            )
            records.extend(ActivityRecord(user_id=uid, activity_at=at) for uid, at in result.all())

        latest = latest_activity_per_user(records, limit=limit)
        users = {u.id: u for u in await self.graph.users_by_ids({r.user_id for r in latest})}
        return [
            ActiveUser(
                user_id=r.user_id,
                name=users[r.user_id].name,
                username=users[r.user_id].username,
                profile_image=users[r.user_id].profile_image,
                last_active_at=r.activity_at,
            )
            for r in latest
            if r.user_id in users
        ]
