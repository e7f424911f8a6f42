"""Schemas for chat rooms and messages."""

from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, SQLModel

from mundo_tango.core.database.entities.messaging import ChatRoomType


class RoomCreate(SQLModel):
    room_type: ChatRoomType = ChatRoomType.DIRECT
    participant_ids: List[int] = Field(min_length=1, description="Other participants; the caller is added automatically")
    name: Optional[str] = Field(default=None, max_length=200)


class RoomRead(SQLModel):
    id: int
    room_type: ChatRoomType
    name: Optional[str] = None
    created_by: int
    participant_ids: List[int]
    last_message_at: Optional[datetime] = None
    unread_count: int = 0
    created_at: datetime


class MessageCreate(SQLModel):
    message: str = Field(min_length=1, max_length=5000)
    media_url: Optional[str] = None


class MessageRead(MessageCreate):
    id: int
    chat_room_id: int
    user_id: int
    created_at: datetime


class ReadReceipt(SQLModel):
    chat_room_id: int
    last_read_at: datetime
