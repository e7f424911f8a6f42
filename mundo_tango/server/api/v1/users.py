"""
API endpoints for member profiles and the social graph.

Covers registration, profile reads and edits, follows, friend requests and
the teacher directory entry of a member. The acting member is identified by
the ``X-User-Id`` header.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from mundo_tango.server.schemas.users import (
    FollowRead,
    FriendshipRead,
    TeacherProfileCreate,
    TeacherProfileRead,
    UserCreate,
    UserRead,
    UserUpdate,
)
from mundo_tango.server.services.deps import CurrentUser, UserServiceDep

router = APIRouter(tags=["users"])


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register Member",
    description="Create a new member account. Username and e-mail must be unique.",
    response_description="The created member.",
    responses={
        201: {"description": "Member created successfully"},
        409: {"description": "Username or e-mail already registered"},
    },
)
async def create_user(data: UserCreate, service: UserServiceDep) -> UserRead:
    """
    Register a new member.

    - **name**: Display name.
    - **username**: Unique handle.
    - **email**: Unique e-mail address.
    - **city** / **country**: Where the member dances; used by recommendations.
    - **leader_level** / **follower_level**: Self-assessed level from 0 to 10.
    """
    return UserRead.model_validate(await service.create_user(data))


@router.get(
    "",
    response_model=List[UserRead],
    summary="List Members",
    description="List active members, optionally filtered by city and country.",
    response_description="A list of members.",
)
async def list_users(
    service: UserServiceDep,
    city: Optional[str] = None,
    country: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> List[UserRead]:
    """
    List members.

    - **city**: Only members from this city.
    - **country**: Only members from this country.
    """
    users = await service.list_users(city=city, country=country, limit=limit, offset=offset)
    return [UserRead.model_validate(u) for u in users]


@router.get(
    "/me",
    response_model=UserRead,
    summary="Get Current Member",
    description="Return the member identified by the X-User-Id header.",
    responses={401: {"description": "X-User-Id header missing"}},
)
async def get_me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)


@router.patch(
    "/me",
    response_model=UserRead,
    summary="Update Current Member",
    description="Change profile fields of the acting member. Only provided fields change.",
)
async def update_me(changes: UserUpdate, user: CurrentUser, service: UserServiceDep) -> UserRead:
    return UserRead.model_validate(await service.update_user(user, changes))


@router.get(
    "/me/friend-requests",
    response_model=List[FriendshipRead],
    summary="Pending Friend Requests",
    description="Friend requests other members sent to the acting member that are still pending.",
)
async def pending_friend_requests(user: CurrentUser, service: UserServiceDep) -> List[FriendshipRead]:
    return [FriendshipRead.model_validate(f) for f in await service.pending_requests(user)]


@router.put(
    "/me/teacher-profile",
    response_model=TeacherProfileRead,
    summary="Create or Update Teacher Profile",
    description="List the acting member in the teacher directory, or update the existing entry.",
    response_description="The teacher profile.",
)
async def upsert_teacher_profile(
    data: TeacherProfileCreate, user: CurrentUser, service: UserServiceDep
) -> TeacherProfileRead:
    """
    Create or update the acting member's teacher profile.

    City and country default to the member's own when omitted.

    - **specialties**: What the teacher teaches, e.g. musicality, technique.
    - **years_teaching**: Teaching experience; used for level fit in recommendations.
    """
    return TeacherProfileRead.model_validate(await service.upsert_teacher_profile(user, data))


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get Member",
    description="Retrieve a member by id.",
    responses={404: {"description": "Member not found"}},
)
async def get_user(user_id: int, service: UserServiceDep) -> UserRead:
    return UserRead.model_validate(await service.get_user(user_id))


@router.post(
    "/{user_id}/follow",
    response_model=FollowRead,
    status_code=status.HTTP_201_CREATED,
    summary="Follow Member",
    description="Start following a member. Follows are one-directional and need no approval.",
    responses={
        400: {"description": "Members cannot follow themselves"},
        404: {"description": "Member not found"},
        409: {"description": "Already following"},
    },
)
async def follow(user_id: int, user: CurrentUser, service: UserServiceDep) -> FollowRead:
    return FollowRead.model_validate(await service.follow(user, user_id))


@router.delete(
    "/{user_id}/follow",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unfollow Member",
    responses={404: {"description": "Not following this member"}},
)
async def unfollow(user_id: int, user: CurrentUser, service: UserServiceDep) -> Response:
    await service.unfollow(user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{user_id}/friend-request",
    response_model=FriendshipRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Friend Request",
    description=(
        "Ask a member to become friends. If that member already sent a request to the acting member, "
        "the friendship is accepted instead."
    ),
    responses={
        400: {"description": "Self request or blocked friendship"},
        409: {"description": "Already friends or request pending"},
    },
)
async def request_friendship(user_id: int, user: CurrentUser, service: UserServiceDep) -> FriendshipRead:
    return FriendshipRead.model_validate(await service.request_friendship(user, user_id))


@router.post(
    "/{user_id}/friend-request/accept",
    response_model=FriendshipRead,
    summary="Accept Friend Request",
    description="Accept the pending friend request that member `user_id` sent to the acting member.",
    responses={404: {"description": "No pending request from this member"}},
)
async def accept_friendship(user_id: int, user: CurrentUser, service: UserServiceDep) -> FriendshipRead:
    return FriendshipRead.model_validate(await service.accept_friendship(user, user_id))


@router.get("/{user_id}/friends", response_model=List[UserRead], summary="List Friends")
async def list_friends(user_id: int, service: UserServiceDep) -> List[UserRead]:
    return [UserRead.model_validate(u) for u in await service.friends(user_id)]


@router.get("/{user_id}/followers", response_model=List[UserRead], summary="List Followers")
async def list_followers(user_id: int, service: UserServiceDep) -> List[UserRead]:
    return [UserRead.model_validate(u) for u in await service.followers(user_id)]


@router.get("/{user_id}/following", response_model=List[UserRead], summary="List Followed Members")
async def list_following(user_id: int, service: UserServiceDep) -> List[UserRead]:
    return [UserRead.model_validate(u) for u in await service.following(user_id)]
