"""
Messaging service.

Only participants of a room can read or post in it. A direct room is unique
per pair of users; asking for it again returns the existing room.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from mundo_tango.core.database.entities.messaging import ChatMessage, ChatRoom, ChatRoomType, ChatRoomUser
from mundo_tango.core.database.entities.users import User
from mundo_tango.core.database.repositories import AsyncRepository, SocialGraphRepository
from mundo_tango.core.errors import BusinessRuleError, NotFoundError, PermissionDeniedError
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.schemas.messaging import MessageCreate, ReadReceipt, RoomCreate, RoomRead

logger = logging.getLogger(__name__)


class MessagingService:
    """Chat rooms, messages and read receipts."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.rooms = AsyncRepository(session, ChatRoom)
        self.participants = AsyncRepository(session, ChatRoomUser)
        self.messages = AsyncRepository(session, ChatMessage)
        self.graph = SocialGraphRepository(session)

    async def _participant_ids(self, room_id: int) -> List[int]:
        result = await self.session.execute(
            select(ChatRoomUser.user_id).where(ChatRoomUser.chat_room_id == room_id).order_by(ChatRoomUser.user_id)
        )
        return list(result.scalars().all())

    async def _membership(self, user: User, room_id: int) -> ChatRoomUser:
        await self.rooms.get_or_404(room_id, "Chat room")
        membership = await self.participants.first(chat_room_id=room_id, user_id=user.id)
        if membership is None:
            raise PermissionDeniedError(f"User {user.id} is not a participant of room {room_id}")
        return membership

    async def _unread_count(self, membership: ChatRoomUser) -> int:
        stmt = select(func.count()).select_from(ChatMessage).where(
            ChatMessage.chat_room_id == membership.chat_room_id,
            ChatMessage.user_id != membership.user_id,
        )
        if membership.last_read_at is not None:
            stmt = stmt.where(ChatMessage.created_at > membership.last_read_at)
        return int((await self.session.execute(stmt)).scalar_one())

    async def _to_read(self, room: ChatRoom, membership: Optional[ChatRoomUser] = None) -> RoomRead:
        return RoomRead.model_validate(
            room,
            update={
                "participant_ids": await self._participant_ids(room.id),
                "unread_count": await self._unread_count(membership) if membership is not None else 0,
            },
        )

    async def _direct_room_between(self, user_id: int, other_id: int) -> Optional[ChatRoom]:
        mine = select(ChatRoomUser.chat_room_id).where(ChatRoomUser.user_id == user_id)
        theirs = select(ChatRoomUser.chat_room_id).where(ChatRoomUser.user_id == other_id)
        stmt = select(ChatRoom).where(
            ChatRoom.room_type == ChatRoomType.DIRECT,
            ChatRoom.id.in_(mine),  # type: ignore
            ChatRoom.id.in_(theirs),  # type: ignore
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_room(self, creator: User, data: RoomCreate) -> RoomRead:
        others: Set[int] = set(data.participant_ids) - {creator.id}
        if not others:
            raise BusinessRuleError("A room needs at least one other participant")
        found = {u.id for u in await self.graph.users_by_ids(others)}
        missing = others - found
        if missing:
            raise NotFoundError(f"Users not found: {sorted(missing)}")

        if data.room_type == ChatRoomType.DIRECT:
            if len(others) != 1:
                raise BusinessRuleError("A direct room has exactly two participants")
            existing = await self._direct_room_between(creator.id, next(iter(others)))
            if existing is not None:
                membership = await self.participants.first(chat_room_id=existing.id, user_id=creator.id)
                return await self._to_read(existing, membership)

        room = ChatRoom(room_type=data.room_type, name=data.name, created_by=creator.id)
        self.session.add(room)
        await self.session.commit()
        await self.session.refresh(room)
        self.session.add_all([ChatRoomUser(chat_room_id=room.id, user_id=uid) for uid in {creator.id} | others])
        await self.session.commit()

        logger.info(f"User {creator.id} opened {room.room_type.value} room {room.id} with {sorted(others)}")
        membership = await self.participants.first(chat_room_id=room.id, user_id=creator.id)
        return await self._to_read(room, membership)

    async def my_rooms(self, user: User) -> List[RoomRead]:
        """Rooms of ``user``, most recent conversation first."""
        memberships: Dict[int, ChatRoomUser] = {
            m.chat_room_id: m for m in await self.participants.list(filters={"user_id": user.id})
        }
        if not memberships:
            return []
        result = await self.session.execute(select(ChatRoom).where(ChatRoom.id.in_(memberships)))  # type: ignore
        rooms = sorted(
            result.scalars().all(),
            key=lambda r: (r.last_message_at or r.created_at, r.id),
            reverse=True,
        )
        return [await self._to_read(room, memberships[room.id]) for room in rooms]

    async def send(self, sender: User, room_id: int, data: MessageCreate) -> ChatMessage:
        await self._membership(sender, room_id)
        room = await self.rooms.get_or_404(room_id, "Chat room")
        message = ChatMessage(chat_room_id=room_id, user_id=sender.id, **data.model_dump())
        self.session.add(message)
        await self.session.commit()
        await self.session.refresh(message)

        await self.rooms.update(room, {"last_message_at": message.created_at})
        logger.debug(f"User {sender.id} posted message {message.id} in room {room_id}")
        return message

    async def list_messages(self, user: User, room_id: int, limit: int = 50, offset: int = 0) -> List[ChatMessage]:
        """Messages of a room in the order they were sent."""
        await self._membership(user, room_id)
        return await self.messages.list(
            limit=limit,
            offset=offset,
            filters={"chat_room_id": room_id},
            order_by=[ChatMessage.created_at, ChatMessage.id],
        )

    async def mark_read(self, user: User, room_id: int) -> ReadReceipt:
        membership = await self._membership(user, room_id)
        membership = await self.participants.update(membership, {"last_read_at": utc_now()})
        return ReadReceipt(chat_room_id=room_id, last_read_at=membership.last_read_at)
