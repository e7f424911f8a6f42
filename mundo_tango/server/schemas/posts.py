"""Schemas for posts, their interactions, reports and feeds."""

from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel

from mundo_tango.core.database.entities.moderation import ReportStatus
from mundo_tango.core.database.entities.posts import PostBase


class PostCreate(PostBase):
    """Schema for creating a post. Hashtags and mentions are read from ``content``."""


class PostRead(PostBase):
    id: int
    user_id: int
    hashtags: List[str]
    mentions: List[str]
    likes: int
    comments: int
    shares: int
    reach: int
    created_at: datetime
    updated_at: datetime


class CommentCreate(SQLModel):
    content: str = Field(min_length=1, max_length=5000)
    parent_comment_id: Optional[int] = None


class CommentRead(CommentCreate):
    id: int
    post_id: int
    user_id: int
    created_at: datetime


class ShareCreate(SQLModel):
    comment: Optional[str] = None


class ShareRead(ShareCreate):
    id: int
    post_id: int
    user_id: int
    created_at: datetime


class LikeResult(SQLModel):
    post_id: int
    likes: int
    liked: bool


class ReportCreate(SQLModel):
    report_type: str = Field(max_length=100, description="spam, harassment, inappropriate, fraud...")
    description: Optional[str] = None


class ReportRead(ReportCreate):
    id: int
    reporter_id: int
    content_type: str
    content_id: int
    status: ReportStatus
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    resolution: Optional[str] = None
    created_at: datetime


class FeedPost(PostRead):
    """A post as it appears in a ranked feed."""

    score: float = 0.0


class FeedResponse(SQLModel):
    posts: List[FeedPost]
    next_offset: Optional[int] = None
    has_more: bool = False


class ActiveUser(SQLModel):
    user_id: int
    name: str
    username: str
    profile_image: Optional[str] = None
    last_active_at: datetime
