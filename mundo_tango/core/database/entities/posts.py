"""
Post entity models.

Posts keep denormalized ``likes``, ``comments`` and ``shares`` counters that
the feed ranking reads directly; the reaction, comment and share tables are
the source of truth for who did what.
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


class PostVisibility(str, Enum):
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class PostBase(Base):
    content: str = Field(min_length=1, max_length=10000)
    image_url: Optional[str] = Field(default=None)
    video_url: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    visibility: PostVisibility = Field(default=PostVisibility.PUBLIC, index=True)
    post_type: str = Field(default="post", max_length=40)
    group_id: Optional[int] = Field(default=None, foreign_key="groups.id", index=True)
    event_id: Optional[int] = Field(default=None, foreign_key="events.id", index=True)


class Post(PostBase, table=True):
    """Table: posts"""

    __tablename__ = "posts"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)

    hashtags: List[str] = json_list_field("Lower-cased hashtags extracted from the content")
    mentions: List[str] = json_list_field("Usernames mentioned in the content")

    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    reach: int = Field(default=0, ge=0, description="Views by users other than the author")

    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()

    def __repr__(self) -> str:
        return f"Post(id={self.id}, user_id={self.user_id}, visibility={self.visibility})"


class Reaction(Base, table=True):
    """Table: post_reactions"""

    __tablename__ = "post_reactions"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", "reaction_type", name="uq_post_reaction"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    reaction_type: str = Field(default="like", max_length=20)
    created_at: NaiveDatetime = created_at_field()


class PostComment(Base, table=True):
    """Table: post_comments"""

    __tablename__ = "post_comments"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    parent_comment_id: Optional[int] = Field(default=None, foreign_key="post_comments.id")
    content: str = Field(min_length=1, max_length=5000)
    created_at: NaiveDatetime = created_at_field()


class PostShare(Base, table=True):
    """Table: post_shares"""

    __tablename__ = "post_shares"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    comment: Optional[str] = Field(default=None)
    created_at: NaiveDatetime = created_at_field()
