"""
Social graph queries.

Friendships are stored in both directions once accepted, so a user's
friends are simply the ``friend_id`` values of their accepted rows.
"""

from __future__ import annotations

from typing import List, Optional, Set

from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.groups import GroupMember, MembershipStatus
from ..entities.social import Follow, Friendship, FriendshipStatus
from ..entities.users import User
from .base import AsyncRepository


class SocialGraphRepository:
    """Read and write follows and friendships."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.follows = AsyncRepository(session, Follow)
        self.friendships = AsyncRepository(session, Friendship)

    async def friend_ids(self, user_id: int) -> Set[int]:
        stmt = select(Friendship.friend_id).where(
            Friendship.user_id == user_id,
            Friendship.status == FriendshipStatus.ACCEPTED,
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def following_ids(self, user_id: int) -> Set[int]:
        result = await self.session.execute(select(Follow.following_id).where(Follow.follower_id == user_id))
        return set(result.scalars().all())

    async def follower_ids(self, user_id: int) -> Set[int]:
        result = await self.session.execute(select(Follow.follower_id).where(Follow.following_id == user_id))
        return set(result.scalars().all())

    async def group_ids(self, user_id: int) -> Set[int]:
        stmt = select(GroupMember.group_id).where(
            GroupMember.user_id == user_id,
            GroupMember.status == MembershipStatus.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def get_follow(self, follower_id: int, following_id: int) -> Optional[Follow]:
        return await self.follows.first(follower_id=follower_id, following_id=following_id)

    async def get_friendship(self, user_id: int, friend_id: int) -> Optional[Friendship]:
        return await self.friendships.first(user_id=user_id, friend_id=friend_id)

    async def remove_follow(self, follower_id: int, following_id: int) -> bool:
        stmt = delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def users_by_ids(self, user_ids: Set[int]) -> List[User]:
        if not user_ids:
            return []
        result = await self.session.execute(select(User).where(User.id.in_(user_ids)).order_by(User.id))
        return list(result.scalars().all())

    async def pending_requests_for(self, user_id: int) -> List[Friendship]:
        stmt = select(Friendship).where(
            Friendship.friend_id == user_id,
            Friendship.status == FriendshipStatus.PENDING,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def friendship_between(self, a: int, b: int) -> List[Friendship]:
        """Rows in either direction between two users."""
        stmt = select(Friendship).where(
            or_(
                (Friendship.user_id == a) & (Friendship.friend_id == b),
                (Friendship.user_id == b) & (Friendship.friend_id == a),
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
