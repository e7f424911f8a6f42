"""
Points, levels and achievement progress.

Level ``n`` is left once a member holds ``100 * n * (n + 1) / 2`` points, so
level 2 starts at 100, level 3 at 300, level 4 at 600 and so on.
"""

from enum import Enum
from typing import Dict, List, Mapping, NamedTuple

from pydantic import BaseModel


class PointAction(str, Enum):
    POST_CREATED = "post_created"
    COMMENT_CREATED = "comment_created"
    LIKE_RECEIVED = "like_received"
    EVENT_RSVP = "event_rsvp"
    EVENT_HOSTED = "event_hosted"
    DONATION_MADE = "donation_made"
    GROUP_JOINED = "group_joined"
    PRODUCT_SOLD = "product_sold"


class PointCategory(str, Enum):
    SOCIAL = "social"
    EVENT = "event"
    CONTRIBUTION = "contribution"
    ACHIEVEMENT = "achievement"


class ActionReward(NamedTuple):
    points: int
    category: PointCategory


ACTION_POINTS: Dict[PointAction, ActionReward] = {
    PointAction.POST_CREATED: ActionReward(10, PointCategory.SOCIAL),
    PointAction.COMMENT_CREATED: ActionReward(5, PointCategory.SOCIAL),
    PointAction.LIKE_RECEIVED: ActionReward(1, PointCategory.SOCIAL),
    PointAction.GROUP_JOINED: ActionReward(5, PointCategory.SOCIAL),
    PointAction.EVENT_RSVP: ActionReward(15, PointCategory.EVENT),
    PointAction.EVENT_HOSTED: ActionReward(50, PointCategory.EVENT),
    PointAction.DONATION_MADE: ActionReward(20, PointCategory.CONTRIBUTION),
    PointAction.PRODUCT_SOLD: ActionReward(25, PointCategory.CONTRIBUTION),
}

# Counter each action advances for achievements.
ACTION_COUNTERS: Dict[PointAction, str] = {
    PointAction.POST_CREATED: "posts_created",
    PointAction.COMMENT_CREATED: "comments_created",
    PointAction.LIKE_RECEIVED: "likes_received",
    PointAction.EVENT_RSVP: "events_attended",
    PointAction.EVENT_HOSTED: "events_hosted",
    PointAction.DONATION_MADE: "donations_made",
    PointAction.GROUP_JOINED: "groups_joined",
    PointAction.PRODUCT_SOLD: "products_sold",
}

LEVEL_STEP = 100


class LevelInfo(BaseModel):
    level: int
    level_progress: int
    current_level_threshold: int
    next_level_threshold: int


class AchievementRule(BaseModel):
    id: int
    requirement_type: str
    requirement_value: int


class AchievementProgress(BaseModel):
    achievement_id: int
    progress: int
    progress_max: int
    is_completed: bool


def reward_for(action: PointAction) -> ActionReward:
    return ACTION_POINTS[action]


def level_threshold(level: int) -> int:
    """Cumulative points needed to move past ``level``."""
    return LEVEL_STEP * level * (level + 1) // 2


def level_for_points(points: int) -> LevelInfo:
    """Level reached with ``points`` and the percentage walked towards the next one."""
    if points < 0:
        raise ValueError("points cannot be negative")

    level = 1
    while points >= level_threshold(level):
        level += 1

    floor = level_threshold(level - 1)
    ceiling = level_threshold(level)
    return LevelInfo(
        level=level,
        level_progress=int((points - floor) * 100 / (ceiling - floor)),
        current_level_threshold=floor,
        next_level_threshold=ceiling,
    )


def evaluate_achievements(
    rules: List[AchievementRule], counters: Mapping[str, int]
) -> List[AchievementProgress]:
    results = []
    for rule in rules:
        progress = min(counters.get(rule.requirement_type, 0), rule.requirement_value)
        results.append(
            AchievementProgress(
                achievement_id=rule.id,
                progress=progress,
                progress_max=rule.requirement_value,
                is_completed=progress >= rule.requirement_value,
            )
        )
    return results
