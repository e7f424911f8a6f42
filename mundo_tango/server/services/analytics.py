"""
Analytics service.

Turns a member's post rows into ``EngagementPost`` snapshots and runs the
engagement analytics over them.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.algorithms.engagement import (
    EngagementPost,
    ViralPrediction,
    average_engagement,
    behavior_patterns,
    growth_metrics,
    hashtag_performance,
    predict_virality,
    split_periods,
    summarize,
    viral_content,
)
from mundo_tango.core.database.entities.posts import Post
from mundo_tango.core.database.entities.users import User, UserRole
from mundo_tango.core.database.repositories import AsyncRepository, SocialGraphRepository
from mundo_tango.core.errors import PermissionDeniedError
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.schemas.analytics import EngagementReport

from .posts import PostService

logger = logging.getLogger(__name__)

REPORT_PERIOD_DAYS = 30


def to_engagement_post(post: Post) -> EngagementPost:
    return EngagementPost(
        id=post.id,
        content=post.content,
        likes=post.likes,
        comments=post.comments,
        shares=post.shares,
        reach=post.reach,
        hashtags=post.hashtags,
        has_image=bool(post.image_url),
        has_video=bool(post.video_url),
        created_at=post.created_at,
    )


class AnalyticsService:
    """Engagement reports and viral prediction."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.graph = SocialGraphRepository(session)

    async def _posts_since(self, user_id: int, days: int) -> List[EngagementPost]:
        stmt = select(Post).where(Post.user_id == user_id, Post.created_at >= utc_now() - timedelta(days=days))
        result = await self.session.execute(stmt)
        return [to_engagement_post(p) for p in result.scalars().all()]

    async def engagement_report(
        self, viewer: User, user_id: int, period_days: int = REPORT_PERIOD_DAYS
    ) -> EngagementReport:
        """Report for ``user_id``; members see their own, administrators anyone's."""
        if viewer.id != user_id and viewer.role == UserRole.USER:
            raise PermissionDeniedError("Engagement reports are only available to their owner")
        await AsyncRepository(self.session, User).get_or_404(user_id, "User")

        current, previous = split_periods(await self._posts_since(user_id, period_days * 2), utc_now(), period_days)
        metrics = summarize(current)
        previous_metrics = summarize(previous)
        return EngagementReport(
            user_id=user_id,
            period_days=period_days,
            metrics=metrics,
            previous_metrics=previous_metrics,
            growth=growth_metrics(metrics, previous_metrics),
            top_hashtags=hashtag_performance(current),
            viral_content=viral_content(current),
            behavior=behavior_patterns(current),
        )

    async def viral_prediction(self, viewer: User, post_id: int) -> ViralPrediction:
        post = await PostService(self.session).get_visible_post(viewer, post_id)
        history = await self._posts_since(post.user_id, REPORT_PERIOD_DAYS)
        followers = len(await self.graph.follower_ids(post.user_id))
        prediction = predict_virality(
            to_engagement_post(post),
            author_average_engagement=average_engagement(history, exclude_id=post.id),
            author_follower_count=followers,
            now=utc_now(),
        )
        logger.debug(f"Post {post_id} viral probability {prediction.viral_probability} ({prediction.label})")
        return prediction
