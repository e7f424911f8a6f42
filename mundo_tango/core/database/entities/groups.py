"""
Group entity models.

A group's ``member_count`` counts active memberships only. Pending requests
to private groups do not count until approved.
"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import (
    Base,
    NaiveDatetime,
    created_at_field,
    json_list_field,
    updated_at_field,
)


class GroupMemberRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    LEFT = "left"
    BANNED = "banned"


class GroupBase(Base):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None)
    group_type: str = Field(default="community", max_length=50, index=True, description="city, community, school...")
    city: Optional[str] = Field(default=None, index=True)
    country: Optional[str] = Field(default=None, index=True)
    image_url: Optional[str] = Field(default=None)
    is_private: bool = Field(default=False)


class Group(GroupBase, table=True):
    """Table: groups"""

    __tablename__ = "groups"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(unique=True, index=True, max_length=220)
    created_by: int = Field(foreign_key="users.id", index=True)
    tags: List[str] = json_list_field()
    member_count: int = Field(default=0, ge=0)
    post_count: int = Field(default=0, ge=0)

    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()

    def __repr__(self) -> str:
        return f"Group(id={self.id}, slug={self.slug})"


class GroupMember(Base, table=True):
    """Table: group_members"""

    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_member"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="groups.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    role: GroupMemberRole = Field(default=GroupMemberRole.MEMBER)
    status: MembershipStatus = Field(default=MembershipStatus.ACTIVE, index=True)
    joined_at: NaiveDatetime = created_at_field()
