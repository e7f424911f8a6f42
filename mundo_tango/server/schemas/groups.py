"""Schemas for groups and memberships."""

from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel

from mundo_tango.core.database.entities.groups import GroupBase, GroupMemberRole, MembershipStatus


class GroupCreate(GroupBase):
    tags: List[str] = Field(default_factory=list)


class GroupRead(GroupBase):
    id: int
    slug: str
    created_by: int
    tags: List[str]
    member_count: int
    post_count: int
    created_at: datetime


class GroupUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    group_type: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    image_url: Optional[str] = None
    is_private: Optional[bool] = None
    tags: Optional[List[str]] = None


class GroupMemberRead(SQLModel):
    group_id: int
    user_id: int
    role: GroupMemberRole
    status: MembershipStatus
    joined_at: datetime
