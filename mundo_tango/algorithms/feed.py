"""
Feed ranking.

The personalized feed scores each candidate post on four signals:

* proximity: 40 if the author is a friend, 25 if the viewer only follows them
* engagement: ``(likes + 2*comments + 3*shares) / 10``, capped at 30
* recency: 20 for a brand new post, decaying linearly to 0 after 24 hours
* affinity: +10 when the viewer interacted with the author in the last 30 days

Ranked posts then go through diversity injection so a single author never
occupies more than ``max_consecutive`` slots in a row.

Discover and trending feeds rank by engagement velocity instead.
"""

from datetime import datetime
from typing import Callable, Generic, Iterable, List, Optional, Sequence, Set, TypeVar

from pydantic import BaseModel, Field

from mundo_tango.core.timeutils import hours_between

FRIEND_PROXIMITY_SCORE = 40.0
FOLLOW_PROXIMITY_SCORE = 25.0
MAX_ENGAGEMENT_SCORE = 30.0
MAX_RECENCY_SCORE = 20.0
INTERACTION_BONUS = 10.0

PERSONALIZED_WINDOW_DAYS = 7
DISCOVER_WINDOW_HOURS = 48
TRENDING_WINDOW_HOURS = 24
RECOMMENDED_WINDOW_DAYS = 7
INTERACTION_WINDOW_DAYS = 30


class PostSignals(BaseModel):
    """The subset of a post the ranking functions need."""

    id: int
    author_id: int
    likes: int = 0
    comments: int = 0
    shares: int = 0
    created_at: datetime


class ScoredPost(BaseModel):
    post_id: int
    author_id: int
    score: float
    breakdown: dict[str, float] = Field(default_factory=dict)


class ViewerContext(BaseModel):
    """Who is looking at the feed and how they relate to others."""

    user_id: int
    friend_ids: Set[int] = Field(default_factory=set)
    following_ids: Set[int] = Field(default_factory=set)
    interacted_author_ids: Set[int] = Field(default_factory=set)


T = TypeVar("T")


class FeedPage(BaseModel, Generic[T]):
    posts: List[T]
    next_offset: Optional[int] = None
    has_more: bool = False


def weighted_engagement(likes: int, comments: int, shares: int) -> int:
    return likes + 2 * comments + 3 * shares


def engagement_score(post: PostSignals) -> float:
    return min(weighted_engagement(post.likes, post.comments, post.shares) / 10, MAX_ENGAGEMENT_SCORE)


def recency_score(created_at: datetime, now: datetime) -> float:
    age_hours = hours_between(created_at, now)
    return max(MAX_RECENCY_SCORE - (age_hours / 24) * MAX_RECENCY_SCORE, 0.0)


def proximity_score(author_id: int, viewer: ViewerContext) -> float:
    if author_id in viewer.friend_ids:
        return FRIEND_PROXIMITY_SCORE
    if author_id in viewer.following_ids:
        return FOLLOW_PROXIMITY_SCORE
    return 0.0


def score_post(post: PostSignals, viewer: ViewerContext, now: datetime) -> ScoredPost:
    breakdown = {
        "proximity": proximity_score(post.author_id, viewer),
        "engagement": engagement_score(post),
        "recency": recency_score(post.created_at, now),
        "interaction": INTERACTION_BONUS if post.author_id in viewer.interacted_author_ids else 0.0,
    }
    return ScoredPost(
        post_id=post.id,
        author_id=post.author_id,
        score=round(sum(breakdown.values()), 4),
        breakdown=breakdown,
    )


def apply_diversity(items: Sequence[T], author_of: Callable[[T], int], max_consecutive: int = 3) -> List[T]:
    """Reorder ``items`` so no author appears more than ``max_consecutive`` times in a row.

    When the head of the queue would extend a run past the limit, the
    highest-ranked post by another author is pulled forward. If only the
    capped author is left, their posts are appended as they are; nothing is
    dropped and relative order within an author is preserved.
    """
    if max_consecutive < 1:
        raise ValueError("max_consecutive must be at least 1")

    remaining = list(items)
    result: List[T] = []
    last_author: Optional[int] = None
    run_length = 0

    while remaining:
        pick = 0
        if author_of(remaining[0]) == last_author and run_length >= max_consecutive:
            pick = next((i for i, item in enumerate(remaining) if author_of(item) != last_author), 0)
        item = remaining.pop(pick)
        author = author_of(item)
        if author == last_author:
            run_length += 1
        else:
            last_author, run_length = author, 1
        result.append(item)
    return result


def rank_personalized(
    posts: Iterable[PostSignals],
    viewer: ViewerContext,
    now: datetime,
    max_consecutive: int = 3,
) -> List[ScoredPost]:
    """Score, sort and diversify candidate posts for ``viewer``."""
    scored = sorted(
        (score_post(p, viewer, now) for p in posts if p.author_id != viewer.user_id),
        key=lambda s: s.score,
        reverse=True,
    )
    return apply_diversity(scored, lambda s: s.author_id, max_consecutive)


def discover_score(post: PostSignals, now: datetime) -> float:
    """Engagement per hour, with posts younger than an hour counted as one hour old."""
    age_hours = hours_between(post.created_at, now)
    return weighted_engagement(post.likes, post.comments, post.shares) / max(age_hours, 1.0)


def trending_score(post: PostSignals, now: datetime) -> float:
    age_hours = max(hours_between(post.created_at, now), 0.1)
    return weighted_engagement(post.likes, post.comments, post.shares) / age_hours


def rank_discover(posts: Iterable[PostSignals], now: datetime) -> List[ScoredPost]:
    scored = [ScoredPost(post_id=p.id, author_id=p.author_id, score=discover_score(p, now)) for p in posts]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def rank_trending(posts: Iterable[PostSignals], now: datetime, limit: int = 5) -> List[ScoredPost]:
    scored = [ScoredPost(post_id=p.id, author_id=p.author_id, score=trending_score(p, now)) for p in posts]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:limit]


def rank_recommended(posts: Iterable[PostSignals], limit: int = 50) -> List[ScoredPost]:
    """Basic popularity ranking: likes plus twice the comments."""
    scored = [ScoredPost(post_id=p.id, author_id=p.author_id, score=float(p.likes + 2 * p.comments)) for p in posts]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:limit]


def paginate(items: Sequence[T], limit: int, offset: int) -> FeedPage[T]:
    """Slice ``items`` and report where the next page starts."""
    page = list(items[offset : offset + limit])
    has_more = offset + limit < len(items)
    return FeedPage(posts=page, next_offset=offset + limit if has_more else None, has_more=has_more)


class ActivityRecord(BaseModel):
    user_id: int
    activity_at: datetime


def latest_activity_per_user(records: Iterable[ActivityRecord], limit: int = 20) -> List[ActivityRecord]:
    """Keep each user's most recent activity, newest first."""
    latest: dict[int, ActivityRecord] = {}
    for record in records:
        current = latest.get(record.user_id)
        if current is None or record.activity_at > current.activity_at:
            latest[record.user_id] = record
    return sorted(latest.values(), key=lambda r: r.activity_at, reverse=True)[:limit]
