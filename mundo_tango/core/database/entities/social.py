"""
Social graph entity models.

Follows are one-directional. Friendships are stored as two rows, one per
direction, once a request is accepted; a pending request exists only as the
requester's row.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, NaiveDatetime, created_at_field, timestamp_field


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"


class Follow(Base, table=True):
    """Table: follows"""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    follower_id: int = Field(foreign_key="users.id", index=True)
    following_id: int = Field(foreign_key="users.id", index=True)
    created_at: NaiveDatetime = created_at_field()


class Friendship(Base, table=True):
    """Table: friendships"""

    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendships_pair"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    friend_id: int = Field(foreign_key="users.id", index=True)
    status: FriendshipStatus = Field(default=FriendshipStatus.PENDING, index=True)
    closeness_score: float = Field(default=75.0, ge=0, le=100)
    created_at: NaiveDatetime = created_at_field()
    accepted_at: Optional[NaiveDatetime] = timestamp_field()

    def __repr__(self) -> str:
        return f"Friendship(user_id={self.user_id}, friend_id={self.friend_id}, status={self.status})"
