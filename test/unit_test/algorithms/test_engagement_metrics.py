from datetime import datetime, timedelta

import pytest

from mundo_tango.algorithms.engagement import (
    EngagementMetrics,
    EngagementPost,
    average_engagement,
    behavior_patterns,
    growth_metrics,
    hashtag_performance,
    percent_change,
    predict_virality,
    split_periods,
    summarize,
    viral_content,
)

NOW = datetime(2024, 5, 8, 12, 0)


def post(post_id: int, **kwargs) -> EngagementPost:
    kwargs.setdefault("created_at", NOW)
    return EngagementPost(id=post_id, **kwargs)


def test_summarize():
    metrics = summarize([post(1, likes=10, comments=2, shares=1, reach=100), post(2)])
    assert metrics.post_count == 2
    assert metrics.total_likes == 10
    assert metrics.engagement_rate == 17.0
    assert metrics.average_engagement == 8.5


def test_summarize_without_posts():
    metrics = summarize([])
    assert (metrics.post_count, metrics.engagement_rate, metrics.average_engagement) == (0, 0.0, 0.0)


def test_viral_content_ordering():
    posts = [
        post(1, content="Vals night", likes=10, comments=2, shares=1, reach=100),
        post(2),
        post(3, content="Milonga!", likes=5, reach=10),
    ]
    results = viral_content(posts)
    assert [(r.post_id, r.virality_score) for r in results] == [(3, 50.0), (1, 17.0)]
    assert results[1].growth_rate == 1.0


def test_predict_virality():
    fresh = post(1, likes=4, comments=2, shares=2, created_at=NOW - timedelta(hours=2))
    prediction = predict_virality(fresh, author_average_engagement=24, author_follower_count=99, now=NOW)
    assert prediction.factors["velocity"] == 1.0
    assert prediction.factors["share_ratio"] == pytest.approx(0.8333, abs=1e-4)
    assert prediction.factors["reach"] == 0.5
    assert prediction.viral_probability == pytest.approx(0.85, abs=1e-4)
    assert prediction.label == "high"
    assert prediction.velocity_per_hour == 7.0


def test_hashtag_performance():
    posts = [
        post(1, likes=10, comments=2, shares=1, hashtags=["#Vals", "vals"]),
        post(2, likes=3, hashtags=["vals", "milonga"]),
    ]
    results = hashtag_performance(posts)
    assert [(r.hashtag, r.usage, r.avg_engagement, r.trend_score) for r in results] == [
        ("vals", 2, 10.0, 20.0),
        ("milonga", 1, 3.0, 3.0),
    ]


def test_behavior_patterns():
    monday_night = datetime(2024, 5, 6, 21, 30)
    posts = [
        post(1, created_at=monday_night),
        post(2, created_at=monday_night + timedelta(minutes=10)),
        post(3, has_image=True, created_at=datetime(2024, 5, 7, 10, 0)),
    ]
    patterns = behavior_patterns(posts)
    assert patterns.most_active_hours == [21, 10]
    assert patterns.most_active_days == [0, 1]
    assert patterns.preferred_content_types == ["text", "image"]


def test_growth():
    assert percent_change(150, 100) == 50.0
    assert percent_change(10, 0) == 0.0

    previous = EngagementMetrics(
        post_count=2, total_likes=0, total_comments=0, total_shares=0, total_reach=100, engagement_rate=0, average_engagement=4
    )
    current = EngagementMetrics(
        post_count=3, total_likes=0, total_comments=0, total_shares=0, total_reach=50, engagement_rate=0, average_engagement=6
    )
    growth = growth_metrics(current, previous)
    assert (growth.engagement_growth, growth.reach_growth, growth.post_growth) == (50.0, -50.0, 50.0)


def test_split_periods_and_average():
    posts = [
        post(1, likes=4, created_at=NOW - timedelta(days=1)),
        post(2, likes=2, created_at=NOW - timedelta(days=45)),
        post(3, likes=9, created_at=NOW - timedelta(days=90)),
    ]
    current, previous = split_periods(posts, NOW)
    assert [p.id for p in current] == [1]
    assert [p.id for p in previous] == [2]
    assert average_engagement(posts, exclude_id=3) == 3.0
    assert average_engagement([]) == 0.0
