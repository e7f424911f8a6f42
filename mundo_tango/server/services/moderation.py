"""Moderation checks and the content report queue."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mundo_tango.algorithms.moderation import check_content, spam_score
from mundo_tango.core.database.entities.moderation import ContentReport, ReportStatus
from mundo_tango.core.database.entities.users import User
from mundo_tango.core.database.repositories import AsyncRepository
from mundo_tango.core.errors import BusinessRuleError
from mundo_tango.core.timeutils import utc_now
from mundo_tango.server.schemas.moderation import ModerationCheckRequest, ModerationCheckResponse, ReportResolve

from .posts import PostService

logger = logging.getLogger(__name__)


class ModerationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.reports = AsyncRepository(session, ContentReport)

    async def check(self, request: ModerationCheckRequest) -> ModerationCheckResponse:
        """Run the content check and the spam score on ``request.text``."""
        recent: List[str] = []
        if request.author_id is not None:
            await AsyncRepository(self.session, User).get_or_404(request.author_id, "User")
            recent = await PostService(self.session).recent_texts(request.author_id)
        verdict = check_content(request.text)
        assessment = spam_score(request.text, recent)
        return ModerationCheckResponse(
            clean=verdict.clean,
            violations=verdict.violations,
            spam_score=assessment.score,
            is_spam=assessment.is_spam,
            signals=assessment.signals,
        )

    async def list_reports(
        self,
        status: Optional[ReportStatus] = ReportStatus.PENDING,
        content_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[ContentReport]:
        return await self.reports.list(
            limit=limit,
            offset=offset,
            filters={"status": status, "content_type": content_type},
            order_by=[ContentReport.created_at, ContentReport.id],
        )

    async def resolve_report(self, reviewer: User, report_id: int, data: ReportResolve) -> ContentReport:
        report = await self.reports.get_or_404(report_id, "Report")
        if data.status == ReportStatus.PENDING:
            raise BusinessRuleError("A report can only be resolved as reviewed or dismissed")
        if report.status != ReportStatus.PENDING:
            raise BusinessRuleError(f"Report {report_id} was already {report.status.value}")
        report = await self.reports.update(
            report,
            {
                "status": data.status,
                "resolution": data.resolution,
                "reviewed_by": reviewer.id,
                "reviewed_at": utc_now(),
            },
        )
        logger.info(f"Report {report_id} {data.status.value} by moderator {reviewer.id}")
        return report
