"""
API endpoints for events (milongas, workshops, festivals) and RSVPs.

The attendee count of an event is the sum of the party sizes of all
``going`` RSVPs. Capacity is enforced when an RSVP would raise it.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, status

from mundo_tango.server.schemas.events import (
    EventCommentCreate,
    EventCommentRead,
    EventCreate,
    EventRead,
    EventUpdate,
    RsvpCreate,
    RsvpRead,
)
from mundo_tango.server.services.deps import CurrentUser, EventServiceDep

router = APIRouter(tags=["events"])


@router.get(
    "",
    response_model=List[EventRead],
    summary="List Events",
    description="Published events ordered by start date. By default only upcoming events are listed.",
)
async def list_events(
    service: EventServiceDep,
    upcoming: bool = True,
    city: Optional[str] = None,
    country: Optional[str] = None,
    event_type: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> List[EventRead]:
    events = await service.list_events(
        upcoming=upcoming, city=city, country=country, event_type=event_type, limit=limit, offset=offset
    )
    return [EventRead.model_validate(e) for e in events]


@router.post(
    "",
    response_model=EventRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Event",
    responses={400: {"description": "End date before start date"}},
)
async def create_event(data: EventCreate, user: CurrentUser, service: EventServiceDep) -> EventRead:
    """
    Create an event organized by the acting member.

    - **title**: Event title.
    - **event_type**: e.g. `milonga`, `workshop`, `festival`, `practica`.
    - **start_date** / **end_date**: UTC timestamps.
    - **max_attendees**: Optional capacity, counting guests.
    - **dance_styles**: e.g. `tango`, `vals`, `milonga`.
    """
    return EventRead.model_validate(await service.create_event(user, data))


@router.get("/{event_id}", response_model=EventRead, summary="Get Event", responses={404: {"description": "Event not found"}})
async def get_event(event_id: int, service: EventServiceDep) -> EventRead:
    return EventRead.model_validate(await service.get_event(event_id))


@router.patch(
    "/{event_id}",
    response_model=EventRead,
    summary="Update Event",
    responses={
        400: {"description": "Capacity below current attendees or invalid dates"},
        403: {"description": "Not the organizer"},
    },
)
async def update_event(event_id: int, changes: EventUpdate, user: CurrentUser, service: EventServiceDep) -> EventRead:
    return EventRead.model_validate(await service.update_event(user, event_id, changes))


@router.post(
    "/{event_id}/cancel",
    response_model=EventRead,
    summary="Cancel Event",
    responses={403: {"description": "Not the organizer"}},
)
async def cancel_event(event_id: int, user: CurrentUser, service: EventServiceDep) -> EventRead:
    return EventRead.model_validate(await service.cancel_event(user, event_id))


@router.post(
    "/{event_id}/rsvp",
    response_model=RsvpRead,
    summary="RSVP to Event",
    description="Create or change the acting member's RSVP.",
    responses={400: {"description": "Event full or not open for RSVPs"}},
)
async def rsvp(event_id: int, data: RsvpCreate, user: CurrentUser, service: EventServiceDep) -> RsvpRead:
    """
    RSVP to an event.

    - **status**: `going`, `interested` or `not_going`.
    - **guest_count**: Guests coming along (0 to 10); they count towards capacity.
    """
    return RsvpRead.model_validate(await service.rsvp(user, event_id, data))


@router.get("/{event_id}/attendees", response_model=List[RsvpRead], summary="List Attendees")
async def list_attendees(event_id: int, service: EventServiceDep) -> List[RsvpRead]:
    return [RsvpRead.model_validate(r) for r in await service.attendees(event_id)]


@router.post(
    "/{event_id}/comments",
    response_model=EventCommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on Event",
)
async def add_event_comment(
    event_id: int, data: EventCommentCreate, user: CurrentUser, service: EventServiceDep
) -> EventCommentRead:
    return EventCommentRead.model_validate(await service.add_comment(user, event_id, data))


@router.get("/{event_id}/comments", response_model=List[EventCommentRead], summary="List Event Comments")
async def list_event_comments(event_id: int, service: EventServiceDep) -> List[EventCommentRead]:
    return [EventCommentRead.model_validate(c) for c in await service.list_comments(event_id)]
