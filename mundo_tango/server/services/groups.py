"""
Group service.

The creator of a group becomes its first admin member. Joining a private
group leaves the membership pending until an admin approves it; pending
members are not counted in ``member_count``.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from mundo_tango.algorithms.gamification import PointAction
from mundo_tango.core.database.entities.events import Event
from mundo_tango.core.database.entities.groups import Group, GroupMember, GroupMemberRole, MembershipStatus
from mundo_tango.core.database.entities.posts import Post
from mundo_tango.core.database.entities.users import User
from mundo_tango.core.database.repositories import AsyncRepository
from mundo_tango.core.errors import BusinessRuleError, ConflictError, NotFoundError, PermissionDeniedError
from mundo_tango.server.schemas.groups import GroupCreate, GroupUpdate

from .gamification import GamificationService

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _SLUG_RE.sub("-", name.lower()).strip("-") or "group"


class GroupService:
    """Group lifecycle and membership."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.groups = AsyncRepository(session, Group)
        self.members = AsyncRepository(session, GroupMember)
        self.gamification = GamificationService(session)

    async def _unique_slug(self, name: str) -> str:
        base = slugify(name)
        slug, suffix = base, 2
        while await self.groups.first(slug=slug) is not None:
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    async def list_groups(
        self,
        search: Optional[str] = None,
        group_type: Optional[str] = None,
        city: Optional[str] = None,
        country: Optional[str] = None,
        is_private: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Group]:
        stmt = select(Group)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Group.name.ilike(pattern), Group.description.ilike(pattern)))  # type: ignore
        for column, value in (
            (Group.group_type, group_type),
            (Group.city, city),
            (Group.country, country),
            (Group.is_private, is_private),
        ):
            if value is not None:
                stmt = stmt.where(column == value)
        stmt = stmt.order_by(Group.member_count.desc(), Group.id).offset(offset).limit(limit)  # type: ignore
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_group(self, creator: User, data: GroupCreate) -> Group:
        group = Group.model_validate(
            data,
            update={"slug": await self._unique_slug(data.name), "created_by": creator.id, "member_count": 1},
        )
        self.session.add(group)
        await self.session.commit()
        await self.session.refresh(group)

        await self.members.create(
            GroupMember(group_id=group.id, user_id=creator.id, role=GroupMemberRole.ADMIN)
        )
        logger.info(f"User {creator.id} created group {group.id} ({group.slug})")
        return group

    async def get_group(self, group_id: int) -> Group:
        return await self.groups.get_or_404(group_id, "Group")

    async def get_membership(self, group_id: int, user_id: int) -> Optional[GroupMember]:
        return await self.members.first(group_id=group_id, user_id=user_id)

    async def _require_admin(self, group: Group, user: User) -> None:
        membership = await self.get_membership(group.id, user.id)
        if (
            membership is None
            or membership.status != MembershipStatus.ACTIVE
            or membership.role != GroupMemberRole.ADMIN
        ):
            raise PermissionDeniedError(f"Only admins of group {group.id} can do this")

    async def update_group(self, user: User, group_id: int, changes: GroupUpdate) -> Group:
        group = await self.get_group(group_id)
        await self._require_admin(group, user)
        return await self.groups.update(group, changes.model_dump(exclude_unset=True))

    async def delete_group(self, user: User, group_id: int) -> None:
        group = await self.get_group(group_id)
        await self._require_admin(group, user)
        for member in await self.members.list(filters={"group_id": group_id}):
            await self.session.delete(member)
        # Posts and events outlive the group
        for entity in (Post, Event):
            result = await self.session.execute(select(entity).where(entity.group_id == group_id))
            for row in result.scalars().all():
                row.group_id = None
                self.session.add(row)
        await self.session.flush()
        await self.session.delete(group)
        await self.session.commit()
        logger.info(f"Group {group_id} deleted by user {user.id}")

    async def join(self, user: User, group_id: int) -> GroupMember:
        group = await self.get_group(group_id)
        membership = await self.get_membership(group_id, user.id)
        status = MembershipStatus.PENDING if group.is_private else MembershipStatus.ACTIVE

        if membership is not None:
            if membership.status == MembershipStatus.ACTIVE:
                raise ConflictError(f"Already a member of group {group_id}")
            if membership.status == MembershipStatus.PENDING:
                raise ConflictError(f"Membership request for group {group_id} is pending")
            if membership.status == MembershipStatus.BANNED:
                raise PermissionDeniedError(f"Banned from group {group_id}")
            membership.status = status
            membership.role = GroupMemberRole.MEMBER
        else:
            membership = GroupMember(group_id=group_id, user_id=user.id, status=status)

        if status == MembershipStatus.ACTIVE:
            group.member_count += 1
            self.session.add(group)
        self.session.add(membership)
        await self.session.commit()
        await self.session.refresh(membership)

        if status == MembershipStatus.ACTIVE:
            await self.gamification.award(user.id, PointAction.GROUP_JOINED, group_id)
        return membership

    async def approve(self, admin: User, group_id: int, user_id: int) -> GroupMember:
        group = await self.get_group(group_id)
        await self._require_admin(group, admin)
        membership = await self.get_membership(group_id, user_id)
        if membership is None or membership.status != MembershipStatus.PENDING:
            raise NotFoundError(f"No pending request from user {user_id} for group {group_id}")
        membership.status = MembershipStatus.ACTIVE
        group.member_count += 1
        self.session.add_all([membership, group])
        await self.session.commit()
        await self.session.refresh(membership)
        await self.gamification.award(user_id, PointAction.GROUP_JOINED, group_id)
        return membership

    async def leave(self, user: User, group_id: int) -> None:
        group = await self.get_group(group_id)
        if group.created_by == user.id:
            raise BusinessRuleError("The group creator cannot leave the group")
        membership = await self.get_membership(group_id, user.id)
        if membership is None or membership.status not in (MembershipStatus.ACTIVE, MembershipStatus.PENDING):
            raise NotFoundError(f"User {user.id} is not a member of group {group_id}")
        if membership.status == MembershipStatus.ACTIVE:
            group.member_count = max(group.member_count - 1, 0)
            self.session.add(group)
        membership.status = MembershipStatus.LEFT
        self.session.add(membership)
        await self.session.commit()

    async def list_members(self, group_id: int, include_pending: bool = False) -> List[GroupMember]:
        await self.get_group(group_id)
        stmt = select(GroupMember).where(GroupMember.group_id == group_id)
        statuses = [MembershipStatus.ACTIVE] + ([MembershipStatus.PENDING] if include_pending else [])
        stmt = stmt.where(GroupMember.status.in_(statuses)).order_by(GroupMember.joined_at, GroupMember.id)  # type: ignore
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def group_posts(self, viewer: User, group_id: int, limit: int = 20, offset: int = 0) -> List[Post]:
        """Posts of a group, readable by its active members."""
        await self.get_group(group_id)
        membership = await self.get_membership(group_id, viewer.id)
        if membership is None or membership.status != MembershipStatus.ACTIVE:
            raise PermissionDeniedError(f"Only members can read posts of group {group_id}")
        stmt = (
            select(Post)
            .where(Post.group_id == group_id)
            .order_by(Post.created_at.desc(), Post.id.desc())  # type: ignore
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
