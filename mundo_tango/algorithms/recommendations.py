"""
Recommendation scoring for friends, events, teachers and content.

Each recommender adds weighted points from independent signals and returns
``Recommendation`` objects carrying the score (one decimal) and the
human-readable reasons that contributed. Candidates that score zero are left
out, the rest are sorted best first and truncated to ``limit``.

Signal budgets (points):

========== ================================================================
friends    mutual friends 40, dance level 20, location 20, shared events 15,
           shared interests 5
events     location 30, friends attending 25, preferred type 20, style 15,
           popularity 10
teachers   location 35, level fit 25, specialties 20, rating 15,
           profile completeness 5
content    friend 40, followed 25, joined group 20, popularity 10, recency 5
========== ================================================================
"""

from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional, Set

from pydantic import BaseModel, Field

from mundo_tango.core.timeutils import hours_between


class Recommendation(BaseModel):
    id: int
    score: float
    reasons: List[str] = Field(default_factory=list)


class DancerProfile(BaseModel):
    """Profile signals of the user receiving recommendations, or of a candidate."""

    id: int
    city: Optional[str] = None
    country: Optional[str] = None
    leader_level: int = 0
    follower_level: int = 0
    interests: List[str] = Field(default_factory=list)

    @property
    def average_level(self) -> float:
        return (self.leader_level + self.follower_level) / 2


class FriendCandidate(DancerProfile):
    mutual_friend_count: int = 0
    shared_event_count: int = 0


class EventCandidate(BaseModel):
    id: int
    event_type: str = ""
    city: Optional[str] = None
    country: Optional[str] = None
    dance_styles: List[str] = Field(default_factory=list)
    current_attendees: int = 0
    friends_attending: int = 0


class TeacherCandidate(BaseModel):
    id: int
    city: Optional[str] = None
    country: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    years_teaching: Optional[int] = None
    average_rating: float = 0.0
    total_reviews: int = 0


class ContentCandidate(BaseModel):
    id: int
    author_id: int
    group_id: Optional[int] = None
    likes: int = 0
    comments: int = 0
    created_at: datetime


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def _location_points(
    profile: DancerProfile,
    city: Optional[str],
    country: Optional[str],
    city_points: float,
    country_points: float,
) -> tuple[float, Optional[str]]:
    """Points for sharing a city (and country), or only a country."""
    if not country or country != profile.country:
        return 0.0, None
    if city and city == profile.city:
        return city_points, city
    return country_points, country


def _finish(results: Iterable[Recommendation], limit: int) -> List[Recommendation]:
    kept = [r for r in results if r.score > 0]
    kept.sort(key=lambda r: r.score, reverse=True)
    return kept[:limit]


def score_friend_candidate(user: DancerProfile, candidate: FriendCandidate) -> Recommendation:
    score = 0.0
    reasons: List[str] = []

    if candidate.mutual_friend_count > 0:
        score += min(candidate.mutual_friend_count * 8, 40)
        reasons.append(_plural(candidate.mutual_friend_count, "mutual friend"))

    level_score = max(0.0, 20 - abs(user.average_level - candidate.average_level) * 4)
    score += level_score
    if level_score > 10:
        reasons.append("Similar dance level")

    location_score, place = _location_points(user, candidate.city, candidate.country, 20, 10)
    if location_score:
        score += location_score
        reasons.append(f"Lives in {place}")

    if candidate.shared_event_count > 0:
        score += min(candidate.shared_event_count * 5, 15)
        reasons.append(f"Attended {_plural(candidate.shared_event_count, 'same event')}")

    shared_interests = set(user.interests) & set(candidate.interests)
    if shared_interests:
        score += min(len(shared_interests) * 2.5, 5)
        reasons.append(_plural(len(shared_interests), "shared interest"))

    return Recommendation(id=candidate.id, score=round(score, 1), reasons=reasons)


def recommend_friends(
    user: DancerProfile,
    candidates: Iterable[FriendCandidate],
    exclude_ids: Optional[Set[int]] = None,
    limit: int = 10,
) -> List[Recommendation]:
    """Rank people ``user`` is not yet connected to."""
    excluded = set(exclude_ids or ()) | {user.id}
    return _finish((score_friend_candidate(user, c) for c in candidates if c.id not in excluded), limit)


def preferred_event_types(past_event_types: Iterable[str], top: int = 3) -> List[str]:
    """The ``top`` most frequent event types in the user's RSVP history."""
    return [event_type for event_type, _ in Counter(t for t in past_event_types if t).most_common(top)]


def score_event(user: DancerProfile, event: EventCandidate, preferred_types: List[str]) -> Recommendation:
    score = 0.0
    reasons: List[str] = []

    location_score, place = _location_points(user, event.city, event.country, 30, 15)
    if location_score:
        score += location_score
        reasons.append(f"In {place}")

    if event.friends_attending > 0:
        score += min(event.friends_attending * 8, 25)
        reasons.append(f"{_plural(event.friends_attending, 'friend')} attending")

    lead_style = event.dance_styles[0] if event.dance_styles else ""
    if lead_style and lead_style in preferred_types:
        score += 20
        reasons.append("Matches your interests")

    matching_styles = [i for i in user.interests if i in event.dance_styles]
    if matching_styles:
        score += min(len(matching_styles) * 7.5, 15)
        reasons.append(f"{matching_styles[0]} event")

    score += min(event.current_attendees * 0.5, 10)
    if event.current_attendees > 10:
        reasons.append(f"{event.current_attendees} attending")

    return Recommendation(id=event.id, score=round(score, 1), reasons=reasons)


def recommend_events(
    user: DancerProfile,
    events: Iterable[EventCandidate],
    past_event_types: Iterable[str] = (),
    limit: int = 10,
) -> List[Recommendation]:
    preferred = preferred_event_types(past_event_types)
    return _finish((score_event(user, e, preferred) for e in events), limit)


def score_teacher(user: DancerProfile, teacher: TeacherCandidate) -> Recommendation:
    score = 0.0
    reasons: List[str] = []

    location_score, place = _location_points(user, teacher.city, teacher.country, 35, 17)
    if location_score:
        score += location_score
        reasons.append(f"Located in {place}")

    years = teacher.years_teaching or 0
    if user.average_level < 3 and years >= 2:
        score += 25
        reasons.append("Great for beginners")
    elif user.average_level >= 3 and years >= 5:
        score += 25
        reasons.append("Advanced instruction")
    elif years >= 3:
        score += 15

    matching_specialties = [i for i in user.interests if i in teacher.specialties]
    if matching_specialties:
        score += min(len(matching_specialties) * 10, 20)
        reasons.append(f"Teaches {matching_specialties[0]}")

    score += (teacher.average_rating / 5) * 10 + min(teacher.total_reviews * 0.5, 5)
    if teacher.average_rating >= 4.5:
        reasons.append(f"{teacher.average_rating:.1f} star rating")

    if teacher.city:
        score += 1
    if teacher.specialties:
        score += 2
    if years > 0:
        score += 2

    return Recommendation(id=teacher.id, score=round(score, 1), reasons=reasons)


def recommend_teachers(
    user: DancerProfile, teachers: Iterable[TeacherCandidate], limit: int = 10
) -> List[Recommendation]:
    return _finish((score_teacher(user, t) for t in teachers), limit)


def score_content(
    post: ContentCandidate,
    friend_ids: Set[int],
    following_ids: Set[int],
    group_ids: Set[int],
    now: datetime,
) -> Recommendation:
    score = 0.0
    reasons: List[str] = []

    if post.author_id in friend_ids:
        score += 40
        reasons.append("From a friend")
    if post.author_id in following_ids:
        score += 25
        reasons.append("From someone you follow")
    if post.group_id is not None and post.group_id in group_ids:
        score += 20
        reasons.append("From your group")

    engagement = post.likes + post.comments * 2
    score += min(engagement * 0.5, 10)
    if engagement > 10:
        reasons.append("Popular post")

    score += max(0.0, 5 - hours_between(post.created_at, now) / 24)

    return Recommendation(id=post.id, score=round(score, 1), reasons=reasons)


def recommend_content(
    user_id: int,
    posts: Iterable[ContentCandidate],
    friend_ids: Set[int],
    following_ids: Set[int],
    group_ids: Set[int],
    now: datetime,
    limit: int = 20,
) -> List[Recommendation]:
    return _finish(
        (score_content(p, friend_ids, following_ids, group_ids, now) for p in posts if p.author_id != user_id),
        limit,
    )
