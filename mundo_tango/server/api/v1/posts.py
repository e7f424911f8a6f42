"""
API endpoints for posts and their interactions.

New posts and comments are checked by moderation and rejected with 400 when
they look like spam or contain banned words. Hashtags and mentions are
extracted from the content automatically.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query, Response, status

from mundo_tango.server.schemas.posts import (
    CommentCreate,
    CommentRead,
    LikeResult,
    PostCreate,
    PostRead,
    ReportCreate,
    ReportRead,
    ShareCreate,
    ShareRead,
)
from mundo_tango.server.services.deps import CurrentUser, PostServiceDep

router = APIRouter(tags=["posts"])


@router.post(
    "",
    response_model=PostRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Post",
    description="Publish a post. Group posts require an active membership of the group.",
    response_description="The created post with extracted hashtags and mentions.",
    responses={
        201: {"description": "Post created successfully"},
        400: {"description": "Rejected by moderation"},
        403: {"description": "Not a member of the target group"},
        404: {"description": "Group or event not found"},
    },
)
async def create_post(data: PostCreate, user: CurrentUser, service: PostServiceDep) -> PostRead:
    """
    Create a new post.

    - **content**: Text of the post. `#hashtags` and `@mentions` are extracted.
    - **visibility**: `public`, `friends` or `private`.
    - **group_id**: Optional group to post in.
    - **event_id**: Optional event the post is about.
    """
    return PostRead.model_validate(await service.create_post(user, data))


@router.get(
    "/{post_id}",
    response_model=PostRead,
    summary="Get Post",
    description="Retrieve a post. Viewing a post by someone else counts towards its reach.",
    responses={
        403: {"description": "Post not visible to the acting member"},
        404: {"description": "Post not found"},
    },
)
async def get_post(post_id: int, user: CurrentUser, service: PostServiceDep) -> PostRead:
    return PostRead.model_validate(await service.view_post(user, post_id))


@router.get(
    "/by-user/{user_id}",
    response_model=List[PostRead],
    summary="List Member Posts",
    description="Posts of one member that the acting member is allowed to see, newest first.",
)
async def list_user_posts(
    user_id: int,
    user: CurrentUser,
    service: PostServiceDep,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> List[PostRead]:
    posts = await service.list_user_posts(user, user_id, limit=limit, offset=offset)
    return [PostRead.model_validate(p) for p in posts]


@router.delete(
    "/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Post",
    description="Delete a post with its reactions, comments and shares. Only the author or an administrator.",
    responses={403: {"description": "Not the author"}, 404: {"description": "Post not found"}},
)
async def delete_post(post_id: int, user: CurrentUser, service: PostServiceDep) -> Response:
    await service.delete_post(user, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{post_id}/like",
    response_model=LikeResult,
    summary="Like Post",
    responses={409: {"description": "Already liked"}},
)
async def like_post(post_id: int, user: CurrentUser, service: PostServiceDep) -> LikeResult:
    post = await service.like(user, post_id)
    return LikeResult(post_id=post.id, likes=post.likes, liked=True)


@router.delete(
    "/{post_id}/like",
    response_model=LikeResult,
    summary="Unlike Post",
    responses={404: {"description": "Post not liked by the acting member"}},
)
async def unlike_post(post_id: int, user: CurrentUser, service: PostServiceDep) -> LikeResult:
    post = await service.unlike(user, post_id)
    return LikeResult(post_id=post.id, likes=post.likes, liked=False)


@router.post(
    "/{post_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on Post",
    responses={400: {"description": "Rejected by moderation"}},
)
async def add_comment(post_id: int, data: CommentCreate, user: CurrentUser, service: PostServiceDep) -> CommentRead:
    """
    Add a comment to a post.

    - **content**: Comment text.
    - **parent_comment_id**: Reply to another comment of the same post.
    """
    return CommentRead.model_validate(await service.add_comment(user, post_id, data))


@router.get("/{post_id}/comments", response_model=List[CommentRead], summary="List Comments")
async def list_comments(post_id: int, user: CurrentUser, service: PostServiceDep) -> List[CommentRead]:
    return [CommentRead.model_validate(c) for c in await service.list_comments(user, post_id)]


@router.post(
    "/{post_id}/share",
    response_model=ShareRead,
    status_code=status.HTTP_201_CREATED,
    summary="Share Post",
)
async def share_post(post_id: int, data: ShareCreate, user: CurrentUser, service: PostServiceDep) -> ShareRead:
    return ShareRead.model_validate(await service.share(user, post_id, data))


@router.post(
    "/{post_id}/report",
    response_model=ReportRead,
    status_code=status.HTTP_201_CREATED,
    summary="Report Post",
    description="Flag a post for the moderation queue.",
)
async def report_post(post_id: int, data: ReportCreate, user: CurrentUser, service: PostServiceDep) -> ReportRead:
    return ReportRead.model_validate(await service.report(user, post_id, data))
