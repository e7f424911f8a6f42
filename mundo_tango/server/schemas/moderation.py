"""Schemas for the moderation endpoints."""

from typing import List, Optional

from sqlmodel import Field, SQLModel

from mundo_tango.core.database.entities.moderation import ReportStatus


class ModerationCheckRequest(SQLModel):
    text: str = Field(min_length=1)
    author_id: Optional[int] = Field(default=None, description="Also compare against this author's recent posts")


class ModerationCheckResponse(SQLModel):
    clean: bool
    violations: List[str]
    spam_score: int
    is_spam: bool
    signals: List[str]


class ReportResolve(SQLModel):
    status: ReportStatus
    resolution: Optional[str] = None
