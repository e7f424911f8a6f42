"""Content report entity model."""

from enum import Enum
from typing import Optional

from sqlmodel import Field

from ..base import Base, NaiveDatetime, created_at_field, timestamp_field


class ReportStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


class ContentReport(Base, table=True):
    """Table: content_reports"""

    __tablename__ = "content_reports"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    reporter_id: int = Field(foreign_key="users.id", index=True)
    content_type: str = Field(max_length=50, description="post, comment, event, product, campaign, user")
    content_id: int = Field(index=True)
    report_type: str = Field(max_length=100, description="spam, harassment, inappropriate, fraud...")
    description: Optional[str] = Field(default=None)
    status: ReportStatus = Field(default=ReportStatus.PENDING, index=True)
    reviewed_by: Optional[int] = Field(default=None, foreign_key="users.id")
    reviewed_at: Optional[NaiveDatetime] = timestamp_field()
    resolution: Optional[str] = Field(default=None)
    created_at: NaiveDatetime = created_at_field()
