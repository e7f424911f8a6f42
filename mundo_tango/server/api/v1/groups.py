"""
API endpoints for community groups.

The creator of a group is its first admin. Joining a private group creates a
pending membership that a group admin approves.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from mundo_tango.server.schemas.groups import GroupCreate, GroupMemberRead, GroupRead, GroupUpdate
from mundo_tango.server.schemas.posts import PostRead
from mundo_tango.server.services.deps import CurrentUser, GroupServiceDep

router = APIRouter(tags=["groups"])


@router.get(
    "",
    response_model=List[GroupRead],
    summary="List Groups",
    description="Search groups by name or description and filter by type, location and privacy.",
    response_description="Groups ordered by member count.",
)
async def list_groups(
    service: GroupServiceDep,
    search: Optional[str] = None,
    group_type: Optional[str] = None,
    city: Optional[str] = None,
    country: Optional[str] = None,
    is_private: Optional[bool] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> List[GroupRead]:
    """
    List groups.

    - **search**: Case-insensitive match on name or description.
    - **group_type**: e.g. `city`, `community`, `school`.
    - **is_private**: Only private or only public groups.
    """
    groups = await service.list_groups(
        search=search,
        group_type=group_type,
        city=city,
        country=country,
        is_private=is_private,
        limit=limit,
        offset=offset,
    )
    return [GroupRead.model_validate(g) for g in groups]


@router.post(
    "",
    response_model=GroupRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Group",
    description="Create a group; the acting member becomes its admin.",
)
async def create_group(data: GroupCreate, user: CurrentUser, service: GroupServiceDep) -> GroupRead:
    return GroupRead.model_validate(await service.create_group(user, data))


@router.get("/{group_id}", response_model=GroupRead, summary="Get Group", responses={404: {"description": "Group not found"}})
async def get_group(group_id: int, service: GroupServiceDep) -> GroupRead:
    return GroupRead.model_validate(await service.get_group(group_id))


@router.patch(
    "/{group_id}",
    response_model=GroupRead,
    summary="Update Group",
    responses={403: {"description": "Not an admin of the group"}},
)
async def update_group(group_id: int, changes: GroupUpdate, user: CurrentUser, service: GroupServiceDep) -> GroupRead:
    return GroupRead.model_validate(await service.update_group(user, group_id, changes))


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Group",
    description="Delete a group and its memberships. Posts of the group are kept without the group.",
    responses={403: {"description": "Not an admin of the group"}},
)
async def delete_group(group_id: int, user: CurrentUser, service: GroupServiceDep) -> Response:
    await service.delete_group(user, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{group_id}/join",
    response_model=GroupMemberRead,
    summary="Join Group",
    description="Join a public group, or request to join a private one.",
    responses={
        403: {"description": "Banned from the group"},
        409: {"description": "Already a member or request pending"},
    },
)
async def join_group(group_id: int, user: CurrentUser, service: GroupServiceDep) -> GroupMemberRead:
    return GroupMemberRead.model_validate(await service.join(user, group_id))


@router.post(
    "/{group_id}/members/{user_id}/approve",
    response_model=GroupMemberRead,
    summary="Approve Membership",
    responses={
        403: {"description": "Not an admin of the group"},
        404: {"description": "No pending request from this member"},
    },
)
async def approve_member(group_id: int, user_id: int, user: CurrentUser, service: GroupServiceDep) -> GroupMemberRead:
    return GroupMemberRead.model_validate(await service.approve(user, group_id, user_id))


@router.post(
    "/{group_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave Group",
    responses={400: {"description": "The creator cannot leave"}, 404: {"description": "Not a member"}},
)
async def leave_group(group_id: int, user: CurrentUser, service: GroupServiceDep) -> Response:
    await service.leave(user, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}/members", response_model=List[GroupMemberRead], summary="List Members")
async def list_members(
    group_id: int, service: GroupServiceDep, include_pending: bool = False
) -> List[GroupMemberRead]:
    return [GroupMemberRead.model_validate(m) for m in await service.list_members(group_id, include_pending)]


@router.get(
    "/{group_id}/posts",
    response_model=List[PostRead],
    summary="List Group Posts",
    description="Posts of the group, newest first. Only active members can read them.",
    responses={403: {"description": "Not a member of the group"}},
)
async def group_posts(
    group_id: int,
    user: CurrentUser,
    service: GroupServiceDep,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> List[PostRead]:
    posts = await service.group_posts(user, group_id, limit=limit, offset=offset)
    return [PostRead.model_validate(p) for p in posts]
