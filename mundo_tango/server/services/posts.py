"""
Post service.

New posts and comments pass the moderation check first. Hashtags and
mentions are extracted from the content when a post is created, and the
denormalized counters on the post row are kept in step with the reaction,
comment and share tables.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.algorithms.gamification import PointAction
from mundo_tango.algorithms.moderation import check_content, spam_score
from mundo_tango.algorithms.text import extract_hashtags, extract_mentions
from mundo_tango.core.database.entities.events import Event
from mundo_tango.core.database.entities.groups import Group, GroupMember, MembershipStatus
from mundo_tango.core.database.entities.moderation import ContentReport
from mundo_tango.core.database.entities.posts import Post, PostComment, PostShare, PostVisibility, Reaction
from mundo_tango.core.database.entities.users import User, UserRole
from mundo_tango.core.database.repositories import AsyncRepository, SocialGraphRepository
from mundo_tango.core.errors import BusinessRuleError, ConflictError, NotFoundError, PermissionDeniedError
from mundo_tango.server.schemas.posts import CommentCreate, PostCreate, ReportCreate, ShareCreate

from .gamification import GamificationService

logger = logging.getLogger(__name__)

RECENT_POSTS_FOR_SPAM_CHECK = 10


def visible_to(post: Post, viewer_id: int, friend_ids: Set[int]) -> bool:
    if post.user_id == viewer_id or post.visibility == PostVisibility.PUBLIC:
        return True
    if post.visibility == PostVisibility.FRIENDS:
        return post.user_id in friend_ids
    return False


class PostService:
    """Create, read and interact with posts."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.posts = AsyncRepository(session, Post)
        self.comments = AsyncRepository(session, PostComment)
        self.reactions = AsyncRepository(session, Reaction)
        self.graph = SocialGraphRepository(session)
        self.gamification = GamificationService(session)

    async def recent_texts(self, user_id: int, limit: int = RECENT_POSTS_FOR_SPAM_CHECK) -> List[str]:
        stmt = select(Post.content).where(Post.user_id == user_id).order_by(Post.created_at.desc()).limit(limit)  # type: ignore
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def moderate(self, text: str, author_id: Optional[int] = None) -> None:
        """Raise ``BusinessRuleError`` when ``text`` fails moderation."""
        verdict = check_content(text)
        if not verdict.clean:
            raise BusinessRuleError(f"Content rejected by moderation: {', '.join(verdict.violations)}")
        recent = await self.recent_texts(author_id) if author_id is not None else []
        assessment = spam_score(text, recent)
        if assessment.is_spam:
            raise BusinessRuleError(f"Content rejected as spam: {', '.join(assessment.signals)}")

    async def create_post(self, author: User, data: PostCreate) -> Post:
        await self.moderate(data.content, author.id)

        group: Optional[Group] = None
        if data.group_id is not None:
            group = await AsyncRepository(self.session, Group).get_or_404(data.group_id, "Group")
            membership = await AsyncRepository(self.session, GroupMember).first(
                group_id=group.id, user_id=author.id, status=MembershipStatus.ACTIVE
            )
            if membership is None:
                raise PermissionDeniedError("Only group members can post in a group")
        if data.event_id is not None:
            await AsyncRepository(self.session, Event).get_or_404(data.event_id, "Event")

        post = Post.model_validate(
            data,
            update={
                "user_id": author.id,
                "hashtags": extract_hashtags(data.content),
                "mentions": extract_mentions(data.content),
            },
        )
        self.session.add(post)
        if group is not None:
            group.post_count += 1
            self.session.add(group)
        await self.session.commit()
        await self.session.refresh(post)

        logger.info(f"User {author.id} created post {post.id}")
        await self.gamification.award(author.id, PointAction.POST_CREATED, post.id)
        return post

    async def get_visible_post(self, viewer: User, post_id: int) -> Post:
        post = await self.posts.get_or_404(post_id, "Post")
        friend_ids = await self.graph.friend_ids(viewer.id)
        if not visible_to(post, viewer.id, friend_ids):
            raise PermissionDeniedError(f"Post {post_id} is not visible to user {viewer.id}")
        return post

    async def view_post(self, viewer: User, post_id: int) -> Post:
        post = await self.get_visible_post(viewer, post_id)
        if post.user_id != viewer.id:
            post = await self.posts.update(post, {"reach": post.reach + 1})
        return post

    async def list_user_posts(self, viewer: User, user_id: int, limit: int = 20, offset: int = 0) -> List[Post]:
        await AsyncRepository(self.session, User).get_or_404(user_id, "User")
        friend_ids = await self.graph.friend_ids(viewer.id)
        stmt = select(Post).where(Post.user_id == user_id).order_by(Post.created_at.desc(), Post.id.desc())  # type: ignore
        result = await self.session.execute(stmt)
        visible = [p for p in result.scalars().all() if visible_to(p, viewer.id, friend_ids)]
        return visible[offset : offset + limit]

    async def delete_post(self, user: User, post_id: int) -> None:
        post = await self.posts.get_or_404(post_id, "Post")
        if post.user_id != user.id and user.role == UserRole.USER:
            raise PermissionDeniedError("Only the author can delete this post")

        for model in (Reaction, PostComment, PostShare):
            rows = await self.session.execute(select(model).where(model.post_id == post_id))
            for row in rows.scalars().all():
                await self.session.delete(row)
        if post.group_id is not None:
            group = await self.session.get(Group, post.group_id)
            if group is not None and group.post_count > 0:
                group.post_count -= 1
                self.session.add(group)
        await self.session.delete(post)
        await self.session.commit()
        logger.info(f"Post {post_id} deleted by user {user.id}")

    async def like(self, user: User, post_id: int) -> Post:
        post = await self.get_visible_post(user, post_id)
        if await self.reactions.first(post_id=post_id, user_id=user.id, reaction_type="like"):
            raise ConflictError(f"Post {post_id} already liked")
        self.session.add(Reaction(post_id=post_id, user_id=user.id))
        post.likes += 1
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        if post.user_id != user.id:
            await self.gamification.award(post.user_id, PointAction.LIKE_RECEIVED, post.id)
        return post

    async def unlike(self, user: User, post_id: int) -> Post:
        post = await self.posts.get_or_404(post_id, "Post")
        reaction = await self.reactions.first(post_id=post_id, user_id=user.id, reaction_type="like")
        if reaction is None:
            raise NotFoundError(f"Post {post_id} is not liked by user {user.id}")
        await self.session.delete(reaction)
        post.likes = max(post.likes - 1, 0)
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(post)
        return post

    async def add_comment(self, user: User, post_id: int, data: CommentCreate) -> PostComment:
        post = await self.get_visible_post(user, post_id)
        await self.moderate(data.content)
        if data.parent_comment_id is not None:
            parent = await self.comments.get_or_404(data.parent_comment_id, "Comment")
            if parent.post_id != post_id:
                raise BusinessRuleError("Parent comment belongs to another post")

        comment = PostComment(post_id=post_id, user_id=user.id, **data.model_dump())
        self.session.add(comment)
        post.comments += 1
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(comment)
        await self.gamification.award(user.id, PointAction.COMMENT_CREATED, comment.id)
        return comment

    async def list_comments(self, viewer: User, post_id: int) -> List[PostComment]:
        await self.get_visible_post(viewer, post_id)
        return await self.comments.list(filters={"post_id": post_id}, order_by=[PostComment.created_at, PostComment.id])

    async def share(self, user: User, post_id: int, data: ShareCreate) -> PostShare:
        post = await self.get_visible_post(user, post_id)
        share = PostShare(post_id=post_id, user_id=user.id, comment=data.comment)
        self.session.add(share)
        post.shares += 1
        self.session.add(post)
        await self.session.commit()
        await self.session.refresh(share)
        return share

    async def report(self, user: User, post_id: int, data: ReportCreate) -> ContentReport:
        await self.posts.get_or_404(post_id, "Post")
        report = ContentReport(reporter_id=user.id, content_type="post", content_id=post_id, **data.model_dump())
        report = await AsyncRepository(self.session, ContentReport).create(report)
        logger.info(f"Post {post_id} reported by user {user.id} for {data.report_type}")
        return report
