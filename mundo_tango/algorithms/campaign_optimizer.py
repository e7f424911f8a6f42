"""
Campaign optimization scoring.

Rates how well a crowdfunding page is put together (title, story, main
image, reward tiers, update cadence, call to action) and produces concrete
suggestions for each part. Scores are 0-100 per part; the overall score is a
weighted mean with the story weighing the most.
"""

import re
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from mundo_tango.core.timeutils import days_between

SECTION_WEIGHTS = {
    "title": 0.15,
    "story": 0.30,
    "image": 0.15,
    "rewards": 0.20,
    "updates": 0.10,
    "call_to_action": 0.10,
}

TITLE_EMOTIONAL_KEYWORDS = ("help", "support", "save", "dream", "change", "transform", "inspire", "create", "build", "hope")
TITLE_ACTION_VERBS = ("build", "make", "launch", "start", "grow", "achieve", "reach", "fund")
STORY_EMOTIONAL_KEYWORDS = ("dream", "hope", "change", "transform", "inspire", "overcome", "achieve")
CTA_KEYWORDS = ("donate", "contribute", "support", "help", "join", "back", "pledge")
URGENCY_WORDS = ("today", "now", "limited", "soon")

_PROBLEM_RE = re.compile(r"problem|challenge|need|struggle|difficulty|obstacle", re.IGNORECASE)
_SOLUTION_RE = re.compile(r"solution|plan|will|goal|approach|strategy", re.IGNORECASE)
_IMPACT_RE = re.compile(r"impact|change|help|difference|transform|benefit", re.IGNORECASE)

SUGGESTED_REWARD_PRICES = [25, 50, 100, 250, 500]
SUGGESTED_CTAS = [
    "Support our mission today and help us reach our goal!",
    "Every donation brings us closer to making this dream a reality. Join us now!",
    "Be part of something special - contribute today and make a difference!",
]


class SectionScore(BaseModel):
    score: int = Field(ge=0, le=100)
    suggestions: List[str] = Field(default_factory=list)


class TitleAnalysis(SectionScore):
    improved_versions: List[str] = Field(default_factory=list)


class StoryAnalysis(SectionScore):
    structure_score: int
    readability_score: int
    emotional_appeal_score: int


class RewardAnalysis(SectionScore):
    current_tiers: int
    suggested_pricing: List[int] = Field(default_factory=lambda: list(SUGGESTED_REWARD_PRICES))


class UpdateAnalysis(SectionScore):
    current_frequency: str
    recommended_frequency: str = "2-3 updates per week"


class CallToActionAnalysis(SectionScore):
    current_cta: str
    improved_ctas: List[str] = Field(default_factory=lambda: list(SUGGESTED_CTAS))


class RewardTier(BaseModel):
    price: float
    description: str = ""


class OptimizationReport(BaseModel):
    campaign_id: int
    overall_score: int
    title: TitleAnalysis
    story: StoryAnalysis
    image: SectionScore
    rewards: RewardAnalysis
    updates: UpdateAnalysis
    call_to_action: CallToActionAnalysis


def _clamp(score: float) -> int:
    return int(max(0, min(100, score)))


def _contains_any(text: str, words: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in words)


def analyze_title(title: str) -> TitleAnalysis:
    score = 50
    suggestions: List[str] = []

    if _contains_any(title, TITLE_EMOTIONAL_KEYWORDS):
        score += 10
    else:
        score -= 15
        suggestions.append("Add emotional keywords like 'help', 'support', or 'transform' to create connection")

    if _contains_any(title, TITLE_ACTION_VERBS):
        score += 10
    else:
        score -= 10
        suggestions.append("Include action verbs like 'build', 'launch', or 'achieve' to show momentum")

    if len(title) < 30:
        score -= 15
        suggestions.append("Expand your title to 40-80 characters for better clarity")
    elif len(title) > 100:
        score -= 10
        suggestions.append("Shorten your title to under 80 characters for better readability")
    elif 40 <= len(title) <= 80:
        score += 15

    if re.search(r"[!?]", title):
        score += 5
    else:
        suggestions.append("Consider adding an exclamation point or question mark for impact")

    words = title.split()
    improved = [
        f"Help {' '.join(words[:8])}!",
        f"Support Our Mission: {' '.join(words[:6])}",
        f"Transform Lives: {' '.join(words[:7])}",
    ]
    return TitleAnalysis(score=_clamp(score), suggestions=suggestions, improved_versions=improved)


def analyze_story(story: str) -> StoryAnalysis:
    structure = 50
    readability = 50
    emotional = 50
    suggestions: List[str] = []

    if len(story) < 300:
        structure -= 20
        suggestions.append("Expand your story to at least 600 characters for better conversion")
    elif len(story) < 600:
        structure += 10
    else:
        structure += 20

    paragraphs = [p for p in story.split("\n\n") if p.strip()]
    if len(paragraphs) < 3:
        readability -= 15
        suggestions.append("Break your story into at least 3-5 paragraphs for better readability")
    else:
        readability += 15

    if not _PROBLEM_RE.search(story):
        structure -= 15
        suggestions.append("Add a clear problem statement explaining the challenge you're addressing")
    if not _SOLUTION_RE.search(story):
        structure -= 15
        suggestions.append("Describe your solution and action plan clearly")
    if not _IMPACT_RE.search(story):
        structure -= 15
        suggestions.append("Highlight the impact and how donations will make a difference")

    emotional_hits = sum(1 for word in STORY_EMOTIONAL_KEYWORDS if word in story.lower())
    emotional += emotional_hits * 8
    if emotional_hits == 0:
        suggestions.append("Add emotional appeal with words like 'dream', 'hope', 'transform'")

    return StoryAnalysis(
        score=_clamp(round((structure + readability + emotional) / 3)),
        suggestions=suggestions,
        structure_score=_clamp(structure),
        readability_score=_clamp(readability),
        emotional_appeal_score=_clamp(emotional),
    )


def analyze_image(image_url: Optional[str]) -> SectionScore:
    if not image_url:
        return SectionScore(
            score=30,
            suggestions=[
                "Add a high-quality main image; campaigns with images raise far more",
                "Use an authentic photo showing your project, team, or cause",
            ],
        )
    return SectionScore(
        score=85,
        suggestions=["Ensure your image is high resolution (minimum 1200x630 pixels)"],
    )


def analyze_rewards(rewards: List[RewardTier]) -> RewardAnalysis:
    if not rewards:
        return RewardAnalysis(
            score=30,
            current_tiers=0,
            suggestions=["Add 3-5 reward tiers, starting with an affordable early-bird tier"],
        )

    score = 50
    suggestions: List[str] = []
    count = len(rewards)
    if 3 <= count <= 5:
        score += 25
    elif count < 3:
        score -= 15
        suggestions.append("Offer at least 3 reward tiers")
    elif count > 8:
        score -= 10
        suggestions.append("Trim your reward tiers; more than 8 options overwhelm donors")

    prices = [r.price for r in rewards]
    for low, high, label in ((20, 30, "low"), (45, 75, "mid"), (100, 150, "high")):
        if any(low <= p <= high for p in prices):
            score += 10
        else:
            suggestions.append(f"Add a {label}-range tier between ${low} and ${high}")

    if sum(len(r.description) for r in rewards) / count > 80:
        score += 10
    else:
        suggestions.append("Describe each reward in more detail")

    return RewardAnalysis(score=_clamp(score), current_tiers=count, suggestions=suggestions)


def analyze_updates(update_count: int, launched_at: datetime, now: datetime) -> UpdateAnalysis:
    days_live = int(days_between(launched_at, now))
    if days_live <= 0:
        return UpdateAnalysis(score=50, current_frequency="None", suggestions=[])

    per_week = update_count / (days_live / 7)
    if 2 <= per_week <= 3:
        return UpdateAnalysis(score=100, current_frequency="Optimal (2-3 per week)")
    if 1 <= per_week < 2:
        return UpdateAnalysis(score=70, current_frequency="Good (1-2 per week)")
    if per_week < 1:
        return UpdateAnalysis(
            score=40,
            current_frequency="Too infrequent",
            suggestions=["Increase update frequency to 2-3 times per week"],
        )
    return UpdateAnalysis(
        score=60,
        current_frequency="Too frequent",
        suggestions=["Reduce updates to 2-3 per week to avoid overwhelming donors"],
    )


def extract_call_to_action(story: str) -> str:
    """The last sentence of the story that asks readers to act."""
    for sentence in reversed(re.split(r"[.!?]+", story)):
        if _contains_any(sentence, CTA_KEYWORDS):
            return sentence.strip()
    return "No clear call-to-action found"


def analyze_call_to_action(story: str) -> CallToActionAnalysis:
    score = 50
    suggestions: List[str] = []
    if _contains_any(story, CTA_KEYWORDS):
        score += 20
    else:
        suggestions.append("Ask readers directly to donate, support or join")
    if _contains_any(story, URGENCY_WORDS):
        score += 15
    else:
        suggestions.append("Add a sense of timing, e.g. 'today' or 'before the festival'")
    return CallToActionAnalysis(
        score=_clamp(score),
        suggestions=suggestions,
        current_cta=extract_call_to_action(story),
    )


def optimize_campaign(
    campaign_id: int,
    title: str,
    story: str,
    image_url: Optional[str],
    rewards: List[RewardTier],
    update_count: int,
    launched_at: datetime,
    now: datetime,
) -> OptimizationReport:
    title_analysis = analyze_title(title)
    story_analysis = analyze_story(story)
    image_analysis = analyze_image(image_url)
    reward_analysis = analyze_rewards(rewards)
    update_analysis = analyze_updates(update_count, launched_at, now)
    cta_analysis = analyze_call_to_action(story)

    overall = (
        title_analysis.score * SECTION_WEIGHTS["title"]
        + story_analysis.score * SECTION_WEIGHTS["story"]
        + image_analysis.score * SECTION_WEIGHTS["image"]
        + reward_analysis.score * SECTION_WEIGHTS["rewards"]
        + update_analysis.score * SECTION_WEIGHTS["updates"]
        + cta_analysis.score * SECTION_WEIGHTS["call_to_action"]
    )
    return OptimizationReport(
        campaign_id=campaign_id,
        overall_score=round(overall),
        title=title_analysis,
        story=story_analysis,
        image=image_analysis,
        rewards=reward_analysis,
        updates=update_analysis,
        call_to_action=cta_analysis,
    )
