"""Schemas for events, RSVPs and event comments."""

from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel

from mundo_tango.core.database.base import UtcNaiveDatetime
from mundo_tango.core.database.entities.events import EventBase, EventStatus, RsvpStatus


class EventCreate(EventBase):
    dance_styles: List[str] = Field(default_factory=list)


class EventRead(EventBase):
    id: int
    user_id: int
    dance_styles: List[str]
    current_attendees: int
    status: EventStatus
    created_at: datetime


class EventUpdate(SQLModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: Optional[str] = None
    start_date: Optional[UtcNaiveDatetime] = None
    end_date: Optional[UtcNaiveDatetime] = None
    location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    max_attendees: Optional[int] = Field(default=None, ge=1)
    price: Optional[float] = Field(default=None, ge=0)
    dance_styles: Optional[List[str]] = None


class RsvpCreate(SQLModel):
    status: RsvpStatus = RsvpStatus.GOING
    guest_count: int = Field(default=0, ge=0, le=10)


class RsvpRead(RsvpCreate):
    id: int
    event_id: int
    user_id: int
    created_at: datetime


class EventCommentCreate(SQLModel):
    content: str = Field(min_length=1, max_length=5000)


class EventCommentRead(EventCommentCreate):
    id: int
    event_id: int
    user_id: int
    created_at: datetime
