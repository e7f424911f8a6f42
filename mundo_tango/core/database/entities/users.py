"""
User and teacher entity models.

Users are dancers, organizers and teachers. Skill levels are tracked
separately for the leader and follower roles on a 0-10 scale; a user with a
``TeacherProfile`` row is also listed in the teacher directory.
"""

from enum import Enum
from typing import List, Optional

from sqlmodel import Field

from ..base import (
    Base,
    NaiveDatetime,
    created_at_field,
    json_list_field,
    updated_at_field,
)


class UserRole(str, Enum):
    """Platform-wide role of a user account."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class UserBase(Base):
    """Profile fields shared by the table and the API schemas."""

    name: str = Field(max_length=120, description="Display name")
    username: str = Field(index=True, unique=True, max_length=60, description="Unique handle")
    email: str = Field(index=True, unique=True, max_length=255, description="Unique e-mail address")
    mobile_no: Optional[str] = Field(default=None, max_length=40)
    profile_image: Optional[str] = Field(default=None, description="Avatar URL")
    bio: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None, index=True, max_length=120)
    country: Optional[str] = Field(default=None, index=True, max_length=120)
    leader_level: int = Field(default=0, ge=0, le=10, description="Self-assessed leading level")
    follower_level: int = Field(default=0, ge=0, le=10, description="Self-assessed following level")
    years_of_dancing: int = Field(default=0, ge=0)


class User(UserBase, table=True):
    """Registered account.

    Table: users
    """

    __tablename__ = "users"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)

    interests: List[str] = json_list_field("Free-form interests, e.g. milonga, vals")
    tango_roles: List[str] = json_list_field("Community roles, e.g. dancer, dj, organizer")

    is_verified: bool = Field(default=False)
    is_active: bool = Field(default=True)
    suspended: bool = Field(default=False)
    role: UserRole = Field(default=UserRole.USER)

    created_at: NaiveDatetime = created_at_field()
    updated_at: NaiveDatetime = updated_at_field()

    @property
    def average_level(self) -> float:
        return (self.leader_level + self.follower_level) / 2

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username})"


class TeacherProfile(Base, table=True):
    """Teacher directory entry attached to a user.

    Table: teachers
    """

    __tablename__ = "teachers"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)

    city: Optional[str] = Field(default=None, index=True)
    country: Optional[str] = Field(default=None, index=True)
    specialties: List[str] = json_list_field("Teaching specialties, e.g. musicality, technique")
    years_teaching: Optional[int] = Field(default=None, ge=0)
    average_rating: float = Field(default=0.0, ge=0, le=5)
    total_reviews: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)

    created_at: NaiveDatetime = created_at_field()

    def __repr__(self) -> str:
        return f"TeacherProfile(id={self.id}, user_id={self.user_id})"
