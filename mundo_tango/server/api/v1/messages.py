"""
API endpoints for direct and group conversations.

Only participants of a room can read or post in it.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query, status

from mundo_tango.server.schemas.messaging import MessageCreate, MessageRead, ReadReceipt, RoomCreate, RoomRead
from mundo_tango.server.services.deps import CurrentUser, MessagingServiceDep

router = APIRouter(tags=["messages"])


@router.post(
    "/rooms",
    response_model=RoomRead,
    status_code=status.HTTP_201_CREATED,
    summary="Open Room",
    description=(
        "Open a direct conversation with one member, or a group conversation. "
        "Opening a direct room that already exists returns it."
    ),
    responses={400: {"description": "Invalid participants"}, 404: {"description": "Participant not found"}},
)
async def create_room(data: RoomCreate, user: CurrentUser, service: MessagingServiceDep) -> RoomRead:
    """
    Open a chat room.

    - **room_type**: `direct` or `group`.
    - **participant_ids**: The other members; the acting member is added automatically.
    - **name**: Optional name for group rooms.
    """
    return await service.create_room(user, data)


@router.get(
    "/rooms",
    response_model=List[RoomRead],
    summary="My Rooms",
    description="Rooms of the acting member with their unread counts, most recent conversation first.",
)
async def my_rooms(user: CurrentUser, service: MessagingServiceDep) -> List[RoomRead]:
    return await service.my_rooms(user)


@router.post(
    "/rooms/{room_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
    responses={403: {"description": "Not a participant"}},
)
async def send_message(room_id: int, data: MessageCreate, user: CurrentUser, service: MessagingServiceDep) -> MessageRead:
    return MessageRead.model_validate(await service.send(user, room_id, data))


@router.get("/rooms/{room_id}/messages", response_model=List[MessageRead], summary="List Messages")
async def list_messages(
    room_id: int,
    user: CurrentUser,
    service: MessagingServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> List[MessageRead]:
    messages = await service.list_messages(user, room_id, limit=limit, offset=offset)
    return [MessageRead.model_validate(m) for m in messages]


@router.post("/rooms/{room_id}/read", response_model=ReadReceipt, summary="Mark Room Read")
async def mark_read(room_id: int, user: CurrentUser, service: MessagingServiceDep) -> ReadReceipt:
    return await service.mark_read(user, room_id)
