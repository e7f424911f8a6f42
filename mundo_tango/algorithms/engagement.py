"""
Engagement analytics for a member's posts.

Every figure derives from the weighted engagement score
``likes + 2*comments + 3*shares`` used by the feed as well.
"""

import math
from collections import Counter, defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from mundo_tango.core.timeutils import hours_between

from .feed import weighted_engagement

VIRALITY_THRESHOLD = 10.0
VIRAL_CONTENT_LIMIT = 10
HASHTAG_LIMIT = 20
PREVIEW_LENGTH = 100


class EngagementPost(BaseModel):
    id: int
    content: str = ""
    likes: int = 0
    comments: int = 0
    shares: int = 0
    reach: int = 0
    hashtags: List[str] = Field(default_factory=list)
    has_image: bool = False
    has_video: bool = False
    created_at: datetime

    @property
    def score(self) -> int:
        return weighted_engagement(self.likes, self.comments, self.shares)

    @property
    def content_type(self) -> str:
        if self.has_video:
            return "video"
        return "image" if self.has_image else "text"


class EngagementMetrics(BaseModel):
    post_count: int
    total_likes: int
    total_comments: int
    total_shares: int
    total_reach: int
    engagement_rate: float
    average_engagement: float


class ViralContent(BaseModel):
    post_id: int
    preview: str
    virality_score: float
    growth_rate: float


class ViralPrediction(BaseModel):
    post_id: int
    viral_probability: float = Field(ge=0, le=1)
    label: str
    velocity_per_hour: float
    factors: Dict[str, float]


class HashtagPerformance(BaseModel):
    hashtag: str
    usage: int
    avg_engagement: float
    trend_score: float


class BehaviorPatterns(BaseModel):
    most_active_hours: List[int]
    most_active_days: List[int]
    preferred_content_types: List[str]


class GrowthMetrics(BaseModel):
    engagement_growth: float
    reach_growth: float
    post_growth: float


def engagement_rate(score: float, reach: int) -> float:
    """Engagement as a percentage of reach; 0 when nobody was reached."""
    return score / reach * 100 if reach > 0 else 0.0


def summarize(posts: Iterable[EngagementPost]) -> EngagementMetrics:
    items = list(posts)
    likes = sum(p.likes for p in items)
    comments = sum(p.comments for p in items)
    shares = sum(p.shares for p in items)
    reach = sum(p.reach for p in items)
    score = sum(p.score for p in items)
    return EngagementMetrics(
        post_count=len(items),
        total_likes=likes,
        total_comments=comments,
        total_shares=shares,
        total_reach=reach,
        engagement_rate=round(engagement_rate(score, reach), 2),
        average_engagement=round(score / len(items), 2) if items else 0.0,
    )


def viral_content(posts: Iterable[EngagementPost], limit: int = VIRAL_CONTENT_LIMIT) -> List[ViralContent]:
    results = []
    for post in posts:
        reach = max(post.reach, 1)
        virality = post.score / reach * 100
        if virality <= VIRALITY_THRESHOLD:
            continue
        results.append(
            ViralContent(
                post_id=post.id,
                preview=post.content[:PREVIEW_LENGTH],
                virality_score=round(virality, 2),
                growth_rate=round(post.shares / reach * 100, 2),
            )
        )
    results.sort(key=lambda item: item.virality_score, reverse=True)
    return results[:limit]


def predict_virality(
    post: EngagementPost,
    author_average_engagement: float,
    author_follower_count: int,
    now: datetime,
) -> ViralPrediction:
    """Estimate how likely a post is to spread.

    Combines three factors in [0, 1]:

    * velocity (weight 0.5): engagement per hour relative to the author's
      usual engagement per hour; five times the usual pace saturates it
    * share ratio (weight 0.3): shares over all interactions; 30% saturates
    * reach (weight 0.2): log10 of the author's follower count over 4
    """
    age_hours = max(hours_between(post.created_at, now), 1.0)
    velocity = post.score / age_hours
    baseline = max(author_average_engagement / 24, 0.1)
    interactions = post.likes + post.comments + post.shares

    factors = {
        "velocity": min(velocity / baseline / 5, 1.0),
        "share_ratio": min((post.shares / interactions if interactions else 0.0) / 0.3, 1.0),
        "reach": min(math.log10(author_follower_count + 1) / 4, 1.0),
    }
    probability = 0.5 * factors["velocity"] + 0.3 * factors["share_ratio"] + 0.2 * factors["reach"]

    if probability >= 0.7:
        label = "high"
    elif probability >= 0.4:
        label = "medium"
    else:
        label = "low"
    return ViralPrediction(
        post_id=post.id,
        viral_probability=round(probability, 4),
        label=label,
        velocity_per_hour=round(velocity, 2),
        factors={name: round(value, 4) for name, value in factors.items()},
    )


def hashtag_performance(posts: Iterable[EngagementPost], limit: int = HASHTAG_LIMIT) -> List[HashtagPerformance]:
    scores: Dict[str, List[int]] = defaultdict(list)
    for post in posts:
        for tag in {t.lower().lstrip("#") for t in post.hashtags}:
            scores[tag].append(post.score)

    results = []
    for tag, values in scores.items():
        average = sum(values) / len(values)
        results.append(
            HashtagPerformance(
                hashtag=tag,
                usage=len(values),
                avg_engagement=round(average, 2),
                trend_score=round(len(values) * average, 2),
            )
        )
    results.sort(key=lambda item: (-item.trend_score, item.hashtag))
    return results[:limit]


def behavior_patterns(posts: Iterable[EngagementPost]) -> BehaviorPatterns:
    """Top three posting hours and weekdays (Monday is 0) and content types by frequency."""
    hours: Counter = Counter()
    days: Counter = Counter()
    types: Counter = Counter()
    for post in posts:
        hours[post.created_at.hour] += 1
        days[post.created_at.weekday()] += 1
        types[post.content_type] += 1
    return BehaviorPatterns(
        most_active_hours=[hour for hour, _ in hours.most_common(3)],
        most_active_days=[day for day, _ in days.most_common(3)],
        preferred_content_types=[kind for kind, _ in types.most_common()],
    )


def percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return round((current - previous) / previous * 100, 2)


def growth_metrics(current: EngagementMetrics, previous: EngagementMetrics) -> GrowthMetrics:
    return GrowthMetrics(
        engagement_growth=percent_change(current.average_engagement, previous.average_engagement),
        reach_growth=percent_change(current.total_reach, previous.total_reach),
        post_growth=percent_change(current.post_count, previous.post_count),
    )


def split_periods(
    posts: Iterable[EngagementPost], now: datetime, period_days: int = 30
) -> tuple[List[EngagementPost], List[EngagementPost]]:
    """Posts from the last ``period_days`` and from the period before that."""
    current: List[EngagementPost] = []
    previous: List[EngagementPost] = []
    for post in posts:
        age_days = hours_between(post.created_at, now) / 24
        if age_days <= period_days:
            current.append(post)
        elif age_days <= period_days * 2:
            previous.append(post)
    return current, previous


def average_engagement(posts: Iterable[EngagementPost], exclude_id: Optional[int] = None) -> float:
    scores = [p.score for p in posts if p.id != exclude_id]
    return sum(scores) / len(scores) if scores else 0.0
