"""
User and social graph service.

Follows are one-directional and immediate. Friendship is a request that the
other user accepts; acceptance writes the reverse row so both users see each
other as friends.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from mundo_tango.core.database.entities.social import Follow, Friendship, FriendshipStatus
from mundo_tango.core.database.entities.users import TeacherProfile, User
from mundo_tango.core.database.repositories import AsyncRepository, SocialGraphRepository
from mundo_tango.core.errors import BusinessRuleError, ConflictError, NotFoundError
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.schemas.users import TeacherProfileCreate, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Profiles, follows, friendships and teacher profiles."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = AsyncRepository(session, User)
        self.teachers = AsyncRepository(session, TeacherProfile)
        self.graph = SocialGraphRepository(session)

    async def create_user(self, data: UserCreate) -> User:
        stmt = select(User).where(or_(User.username == data.username, User.email == data.email))
        result = await self.session.execute(stmt)
        if result.scalars().first() is not None:
            raise ConflictError("Username or email already registered")
        user = await self.users.create(User.model_validate(data))
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def get_user(self, user_id: int) -> User:
        return await self.users.get_or_404(user_id, "User")

    async def list_users(
        self,
        city: Optional[str] = None,
        country: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[User]:
        return await self.users.list(
            limit=limit,
            offset=offset,
            filters={"city": city, "country": country, "is_active": True},
            order_by=[User.id],
        )

    async def update_user(self, user: User, changes: UserUpdate) -> User:
        return await self.users.update(user, changes.model_dump(exclude_unset=True))

    async def follow(self, follower: User, following_id: int) -> Follow:
        if follower.id == following_id:
            raise BusinessRuleError("Users cannot follow themselves")
        await self.get_user(following_id)
        if await self.graph.get_follow(follower.id, following_id):
            raise ConflictError(f"Already following user {following_id}")
        follow = await self.graph.follows.create(Follow(follower_id=follower.id, following_id=following_id))
        logger.debug(f"User {follower.id} followed {following_id}")
        return follow

    async def unfollow(self, follower: User, following_id: int) -> None:
        if not await self.graph.remove_follow(follower.id, following_id):
            raise NotFoundError(f"User {follower.id} does not follow user {following_id}")

    async def request_friendship(self, requester: User, friend_id: int) -> Friendship:
        if requester.id == friend_id:
            raise BusinessRuleError("Users cannot befriend themselves")
        await self.get_user(friend_id)

        existing = await self.graph.friendship_between(requester.id, friend_id)
        if any(f.status == FriendshipStatus.ACCEPTED for f in existing):
            raise ConflictError(f"Already friends with user {friend_id}")
        if any(f.status == FriendshipStatus.BLOCKED for f in existing):
            raise BusinessRuleError("Friendship is blocked")
        incoming = next((f for f in existing if f.user_id == friend_id), None)
        if incoming is not None:
            # The other user already asked; treat the request as acceptance.
            return await self.accept_friendship(requester, friend_id)
        if existing:
            raise ConflictError(f"Friend request to user {friend_id} already pending")

        return await self.graph.friendships.create(Friendship(user_id=requester.id, friend_id=friend_id))

    async def accept_friendship(self, user: User, requester_id: int) -> Friendship:
        request = await self.graph.get_friendship(requester_id, user.id)
        if request is None or request.status != FriendshipStatus.PENDING:
            raise NotFoundError(f"No pending friend request from user {requester_id}")

        now = utc_now()
        request.status = FriendshipStatus.ACCEPTED
        request.accepted_at = now
        reverse = await self.graph.get_friendship(user.id, requester_id)
        if reverse is None:
            reverse = Friendship(user_id=user.id, friend_id=requester_id)
        reverse.status = FriendshipStatus.ACCEPTED
        reverse.accepted_at = now
        self.session.add_all([request, reverse])
        await self.session.commit()
        await self.session.refresh(reverse)
        logger.info(f"Users {requester_id} and {user.id} are now friends")
        return reverse

    async def pending_requests(self, user: User) -> List[Friendship]:
        return await self.graph.pending_requests_for(user.id)

    async def friends(self, user_id: int) -> List[User]:
        await self.get_user(user_id)
        return await self.graph.users_by_ids(await self.graph.friend_ids(user_id))

    async def followers(self, user_id: int) -> List[User]:
        await self.get_user(user_id)
        return await self.graph.users_by_ids(await self.graph.follower_ids(user_id))

    async def following(self, user_id: int) -> List[User]:
        await self.get_user(user_id)
        return await self.graph.users_by_ids(await self.graph.following_ids(user_id))

    async def upsert_teacher_profile(self, user: User, data: TeacherProfileCreate) -> TeacherProfile:
        profile = await self.teachers.first(user_id=user.id)
        values = data.model_dump()
        values["city"] = values["city"] or user.city
        values["country"] = values["country"] or user.country
        if profile is None:
            profile = await self.teachers.create(TeacherProfile(user_id=user.id, **values))
            logger.info(f"User {user.id} registered as a teacher")
            return profile
        return await self.teachers.update(profile, values)
