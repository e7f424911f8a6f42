"""Schemas for users, the social graph and teacher profiles."""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict
from sqlmodel import Field, SQLModel

from mundo_tango.core.database.entities.social import FriendshipStatus
from mundo_tango.core.database.entities.users import UserBase, UserRole


class UserCreate(UserBase):
    """Schema for registering a user."""

    interests: List[str] = Field(default_factory=list)
    tango_roles: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Lucia Fernandez",
                "username": "lucia",
                "email": "lucia@example.com",
                "city": "Buenos Aires",
                "country": "Argentina",
                "leader_level": 2,
                "follower_level": 7,
                "years_of_dancing": 6,
                "interests": ["milonga", "vals"],
                "tango_roles": ["dancer", "teacher"],
            }
        }
    )


class UserRead(UserBase):
    """Schema for reading a user."""

    id: int
    interests: List[str]
    tango_roles: List[str]
    is_verified: bool
    is_active: bool
    role: UserRole
    created_at: datetime


class UserUpdate(SQLModel):
    """Schema for updating a user profile. Only provided fields change."""

    name: Optional[str] = None
    mobile_no: Optional[str] = None
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    leader_level: Optional[int] = Field(default=None, ge=0, le=10)
    follower_level: Optional[int] = Field(default=None, ge=0, le=10)
    years_of_dancing: Optional[int] = Field(default=None, ge=0)
    interests: Optional[List[str]] = None
    tango_roles: Optional[List[str]] = None


class FollowRead(SQLModel):
    follower_id: int
    following_id: int
    created_at: datetime


class FriendshipRead(SQLModel):
    user_id: int
    friend_id: int
    status: FriendshipStatus
    closeness_score: float
    created_at: datetime
    accepted_at: Optional[datetime] = None


class TeacherProfileCreate(SQLModel):
    city: Optional[str] = None
    country: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    years_teaching: Optional[int] = Field(default=None, ge=0)


class TeacherProfileRead(TeacherProfileCreate):
    id: int
    user_id: int
    average_rating: float
    total_reviews: int
    is_active: bool
