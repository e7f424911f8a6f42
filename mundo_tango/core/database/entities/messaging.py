"""
Messaging entity models.

A direct room has exactly two participants. Unread messages for a participant
are those created after their ``last_read_at`` by someone else.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, NaiveDatetime, created_at_field, timestamp_field


class ChatRoomType(str, Enum):
    DIRECT = "direct"
    GROUP = "group"


class ChatRoom(Base, table=True):
    """Table: chat_rooms"""

    __tablename__ = "chat_rooms"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    room_type: ChatRoomType = Field(default=ChatRoomType.DIRECT)
    name: Optional[str] = Field(default=None, max_length=200)
    created_by: int = Field(foreign_key="users.id")
    last_message_at: Optional[NaiveDatetime] = timestamp_field(index=True)
    created_at: NaiveDatetime = created_at_field()


class ChatRoomUser(Base, table=True):
    """Table: chat_room_users"""

    __tablename__ = "chat_room_users"
    __table_args__ = (
        UniqueConstraint("chat_room_id", "user_id", name="uq_chat_participant"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_room_id: int = Field(foreign_key="chat_rooms.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    last_read_at: Optional[NaiveDatetime] = timestamp_field()
    joined_at: NaiveDatetime = created_at_field()


class ChatMessage(Base, table=True):
    """Table: chat_messages"""

    __tablename__ = "chat_messages"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_room_id: int = Field(foreign_key="chat_rooms.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    message: str = Field(min_length=1, max_length=5000)
    media_url: Optional[str] = Field(default=None)
    created_at: NaiveDatetime = created_at_field()

    def __repr__(self) -> str:
        return f"ChatMessage(id={self.id}, room={self.chat_room_id}, user_id={self.user_id})"
