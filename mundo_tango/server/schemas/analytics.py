"""Schemas for the engagement analytics endpoints."""

from typing import List

from pydantic import BaseModel

from mundo_tango.algorithms.engagement import (
    BehaviorPatterns,
    EngagementMetrics,
    GrowthMetrics,
    HashtagPerformance,
    ViralContent,
)


class EngagementReport(BaseModel):
    """Engagement of a member's posts over the last ``period_days``, compared with the period before."""

    user_id: int
    period_days: int
    metrics: EngagementMetrics
    previous_metrics: EngagementMetrics
    growth: GrowthMetrics
    top_hashtags: List[HashtagPerformance]
    viral_content: List[ViralContent]
    behavior: BehaviorPatterns
