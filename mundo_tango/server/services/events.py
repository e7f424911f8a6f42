"""
Event service.

``current_attendees`` tracks the party size (attendee plus guests) of every
``going`` RSVP. Changing an RSVP moves the counter by the difference, and the
event capacity is enforced only when the counter would grow.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.algorithms.gamification import PointAction
from mundo_tango.core.database.entities.events import Event, EventComment, EventRsvp, EventStatus, RsvpStatus
from mundo_tango.core.database.entities.groups import Group
from mundo_tango.core.database.entities.users import User
from mundo_tango.core.database.repositories import AsyncRepository
from mundo_tango.core.errors import BusinessRuleError, PermissionDeniedError
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.schemas.events import EventCommentCreate, EventCreate, EventUpdate, RsvpCreate

from .gamification import GamificationService

logger = logging.getLogger(__name__)


def party_size(status: RsvpStatus, guest_count: int) -> int:
    return guest_count + 1 if status == RsvpStatus.GOING else 0


class EventService:
    """Events, RSVPs and event comments."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.events = AsyncRepository(session, Event)
        self.rsvps = AsyncRepository(session, EventRsvp)
        self.comments = AsyncRepository(session, EventComment)
        self.gamification = GamificationService(session)

    async def list_events(
        self,
        upcoming: bool = True,
        city: Optional[str] = None,
        country: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Event]:
        stmt = select(Event).where(Event.status == EventStatus.PUBLISHED)
        if upcoming:
            stmt = stmt.where(Event.start_date >= utc_now())
        for column, value in ((Event.city, city), (Event.country, country), (Event.event_type, event_type)):
            if value is not None:
                stmt = stmt.where(column == value)
        stmt = stmt.order_by(Event.start_date, Event.id).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_event(self, organizer: User, data: EventCreate) -> Event:
        if data.end_date is not None and data.end_date < data.start_date:
            raise BusinessRuleError("Event cannot end before it starts")
        if data.group_id is not None:
            await AsyncRepository(self.session, Group).get_or_404(data.group_id, "Group")
        event = await self.events.create(Event.model_validate(data, update={"user_id": organizer.id}))
        logger.info(f"User {organizer.id} created event {event.id}")
        await self.gamification.award(organizer.id, PointAction.EVENT_HOSTED, event.id)
        return event

    async def get_event(self, event_id: int) -> Event:
        return await self.events.get_or_404(event_id, "Event")

    async def _organized_by(self, user: User, event_id: int) -> Event:
        event = await self.get_event(event_id)
        if event.user_id != user.id:
            raise PermissionDeniedError("Only the organizer can change this event")
        return event

    async def update_event(self, user: User, event_id: int, changes: EventUpdate) -> Event:
        event = await self._organized_by(user, event_id)
        values = changes.model_dump(exclude_unset=True)
        max_attendees = values.get("max_attendees")
        if max_attendees is not None and max_attendees < event.current_attendees:
            raise BusinessRuleError(
                f"Capacity {max_attendees} is below the {event.current_attendees} people already going"
            )
        start, end = values.get("start_date", event.start_date), values.get("end_date", event.end_date)
        if end is not None and end < start:
            raise BusinessRuleError("Event cannot end before it starts")
        return await self.events.update(event, values)

    async def cancel_event(self, user: User, event_id: int) -> Event:
        event = await self._organized_by(user, event_id)
        if event.status == EventStatus.CANCELLED:
            raise BusinessRuleError(f"Event {event_id} is already cancelled")
        event = await self.events.update(event, {"status": EventStatus.CANCELLED})
        logger.info(f"Event {event_id} cancelled by user {user.id}")
        return event

    async def rsvp(self, user: User, event_id: int, data: RsvpCreate) -> EventRsvp:
        event = await self.get_event(event_id)
        if event.status != EventStatus.PUBLISHED:
            raise BusinessRuleError(f"Event {event_id} is not open for RSVPs")

        existing = await self.rsvps.first(event_id=event_id, user_id=user.id)
        previous = existing.party_size if existing is not None else 0
        delta = party_size(data.status, data.guest_count) - previous
        if (
            delta > 0
            and event.max_attendees is not None
            and event.current_attendees + delta > event.max_attendees
        ):
            raise BusinessRuleError(f"Event {event_id} is full")

        if existing is None:
            record = EventRsvp(event_id=event_id, user_id=user.id, **data.model_dump())
        else:
            record = existing
            record.status = data.status
            record.guest_count = data.guest_count
        event.current_attendees = max(event.current_attendees + delta, 0)
        self.session.add_all([record, event])
        await self.session.commit()
        await self.session.refresh(record)

        if existing is None and data.status == RsvpStatus.GOING:
            await self.gamification.award(user.id, PointAction.EVENT_RSVP, event_id)
        return record

    async def attendees(self, event_id: int) -> List[EventRsvp]:
        await self.get_event(event_id)
        return await self.rsvps.list(
            filters={"event_id": event_id, "status": RsvpStatus.GOING},
            order_by=[EventRsvp.created_at, EventRsvp.id],
        )

    async def add_comment(self, user: User, event_id: int, data: EventCommentCreate) -> EventComment:
        await self.get_event(event_id)
        return await self.comments.create(EventComment(event_id=event_id, user_id=user.id, content=data.content))

    async def list_comments(self, event_id: int) -> List[EventComment]:
        await self.get_event(event_id)
        return await self.comments.list(
            filters={"event_id": event_id}, order_by=[EventComment.created_at, EventComment.id]
        )
