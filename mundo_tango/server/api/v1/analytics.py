"""
API endpoints for engagement analytics.
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from mundo_tango.algorithms.engagement import ViralPrediction
from mundo_tango.server.schemas.analytics import EngagementReport
from mundo_tango.server.services.deps import AnalyticsServiceDep, CurrentUser

router = APIRouter(tags=["analytics"])


@router.get(
    "/users/{user_id}/engagement",
    response_model=EngagementReport,
    summary="Engagement Report",
    description=(
        "Engagement of a member's posts over the last period compared with the period before, "
        "top hashtags, viral posts and posting habits. Members can read their own report; "
        "administrators can read anyone's."
    ),
    responses={403: {"description": "Report of another member"}},
)
async def engagement_report(
    user_id: int,
    user: CurrentUser,
    service: AnalyticsServiceDep,
    period_days: int = Query(default=30, ge=1, le=365),
) -> EngagementReport:
    return await service.engagement_report(user, user_id, period_days=period_days)


@router.get(
    "/posts/{post_id}/viral-prediction",
    response_model=ViralPrediction,
    summary="Viral Prediction",
    description="Probability that a post spreads, from its engagement velocity, share ratio and the author's reach.",
)
async def viral_prediction(post_id: int, user: CurrentUser, service: AnalyticsServiceDep) -> ViralPrediction:
    return await service.viral_prediction(user, post_id)
