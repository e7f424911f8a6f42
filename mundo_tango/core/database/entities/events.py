"""
Event entity models.

``current_attendees`` sums the party size (attendee plus guests) of every
``going`` RSVP.
"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import (
    Base,
    NaiveDatetime,
    UtcNaiveDatetime,
    created_at_field,
    json_list_field,
    timestamp_field,
    updated_at_field,
)


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


class RsvpStatus(str, Enum):
    GOING = "going"
    INTERESTED = "interested"
    NOT_GOING = "not_going"


class EventBase(Base):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None)
    event_type: str = Field(default="milonga", max_length=50, index=True)
    start_date: UtcNaiveDatetime = timestamp_field(nullable=False, index=True)
    end_date: Optional[UtcNaiveDatetime] = timestamp_field()
    location: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None, index=True)
    country: Optional[str] = Field(default=None, index=True)
    max_attendees: Optional[int] = Field(default=None, ge=1)
    price: Optional[float] = Field(default=None, ge=0)
    group_id: Optional[int] = Field(default=None, foreign_key="groups.id", index=True)


class Event(EventBase, table=True):
    """Table: events"""

    __tablename__ = "events"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, description="Organizer")
    dance_styles: List[str] = json_list_field("e.g. tango, vals, milonga, nuevo")
    current_attendees: int = Field(default=0, ge=0)
    status: EventStatus = Field(default=EventStatus.PUBLISHED, index=True)

    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()

    def __repr__(self) -> str:
        return f"Event(id={self.id}, title={self.title}, start_date={self.start_date})"


class EventRsvp(Base, table=True):
    """Table: event_rsvps"""

    __tablename__ = "event_rsvps"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_rsvp"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="events.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    status: RsvpStatus = Field(default=RsvpStatus.GOING)
    guest_count: int = Field(default=0, ge=0)
    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()

    @property
    def party_size(self) -> int:
        return self.guest_count + 1 if self.status == RsvpStatus.GOING else 0


class EventComment(Base, table=True):
    """Table: event_comments"""

    __tablename__ = "event_comments"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="events.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    content: str = Field(min_length=1, max_length=5000)
    created_at: NaiveDatetime = created_at_field()
