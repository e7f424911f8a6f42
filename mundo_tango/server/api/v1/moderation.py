"""
API endpoints for content moderation.

``/check`` lets clients validate text before submitting it; the report
queue is reserved for administrators.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query

from mundo_tango.core.database.entities.moderation import ReportStatus
from mundo_tango.server.schemas.moderation import ModerationCheckRequest, ModerationCheckResponse, ReportResolve
from mundo_tango.server.schemas.posts import ReportRead
from mundo_tango.server.services.deps import AdminUser, ModerationServiceDep

router = APIRouter(tags=["moderation"])


@router.post(
    "/check",
    response_model=ModerationCheckResponse,
    summary="Check Content",
    description="Run the banned word, spam pattern and capitals checks plus the spam score on a text.",
)
async def check_content(request: ModerationCheckRequest, service: ModerationServiceDep) -> ModerationCheckResponse:
    """
    Check a text.

    - **text**: The text to check.
    - **author_id**: Optional author; repeating one of their recent posts raises the spam score.
    """
    return await service.check(request)


@router.get(
    "/reports",
    response_model=List[ReportRead],
    summary="List Reports",
    description="Reports in the moderation queue, oldest first. Administrators only.",
    responses={403: {"description": "Administrator role required"}},
)
async def list_reports(
    admin: AdminUser,
    service: ModerationServiceDep,
    report_status: Optional[ReportStatus] = Query(default=ReportStatus.PENDING, alias="status"),
    content_type: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> List[ReportRead]:
    reports = await service.list_reports(status=report_status, content_type=content_type, limit=limit, offset=offset)
    return [ReportRead.model_validate(r) for r in reports]


@router.post(
    "/reports/{report_id}/resolve",
    response_model=ReportRead,
    summary="Resolve Report",
    responses={400: {"description": "Report already resolved"}, 403: {"description": "Administrator role required"}},
)
async def resolve_report(
    report_id: int, data: ReportResolve, admin: AdminUser, service: ModerationServiceDep
) -> ReportRead:
    return ReportRead.model_validate(await service.resolve_report(admin, report_id, data))
