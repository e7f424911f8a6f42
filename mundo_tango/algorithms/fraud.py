"""
Crowdfunding fraud detection.

A campaign is analysed by five independent legitimacy checks. Each returns a
0-100 score (100 = no concern) and a pass/fail verdict. The weighted failure
of the checks becomes the campaign's risk score, failed checks become flags,
and the risk score plus the flag severities decide the recommendation.

Story authenticity uses text heuristics only; no language model is called.
"""

import re
from collections import Counter
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from mundo_tango.core.timeutils import days_between

from .text import caps_ratio, string_similarity

CHECK_WEIGHTS: Dict[str, float] = {
    "creator_verification": 0.25,
    "story_authenticity": 0.30,
    "donation_patterns": 0.25,
    "duplicate_campaign": 0.15,
    "image_authenticity": 0.05,
}

FLAG_DESCRIPTIONS: Dict[str, str] = {
    "creator_verification": "Creator account verification issues",
    "story_authenticity": "Story authenticity concerns",
    "donation_patterns": "Unusual donation patterns detected",
    "duplicate_campaign": "Possible duplicate or similar campaign found",
    "image_authenticity": "Image verification concerns",
}

PASSING_SCORE = 60
SIMILARITY_THRESHOLD = 0.85
STORY_PREFIX_LENGTH = 500

_SPECIFICS_RE = re.compile(r"\$[\d,]+|\d+\s*(days?|weeks?|months?|people|children|students)", re.IGNORECASE)
_PRESSURE_PHRASES = (
    "act now",
    "donate immediately",
    "last chance",
    "wire transfer",
    "guaranteed return",
    "double your money",
    "send money",
)


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Recommendation(str, Enum):
    APPROVE = "approve"
    REVIEW = "review"
    FLAG = "flag"
    REJECT = "reject"


class CreatorSignals(BaseModel):
    is_verified: bool = False
    created_at: datetime
    mobile_no: Optional[str] = None
    profile_image: Optional[str] = None
    bio: Optional[str] = None


class DonationSignals(BaseModel):
    donor_user_id: Optional[int] = None
    amount: float
    donated_at: datetime
    donor_city: Optional[str] = None


class CampaignText(BaseModel):
    id: int
    title: str
    story: str = ""


class CheckResult(BaseModel):
    passed: bool
    score: int = Field(ge=0, le=100)
    details: str = ""
    anomalies: List[str] = Field(default_factory=list)


class FraudFlag(BaseModel):
    type: str
    severity: Severity
    description: str
    evidence: str


class FraudAnalysis(BaseModel):
    campaign_id: int
    risk_score: int
    risk_level: Severity
    flags: List[FraudFlag]
    checks: Dict[str, CheckResult]
    recommendation: Recommendation
    reasoning: str


def _clamp(score: float) -> int:
    return int(max(0, min(100, score)))


def check_creator(creator: CreatorSignals, now: datetime) -> CheckResult:
    score = 100
    issues: List[str] = []

    if not creator.is_verified:
        score -= 25
        issues.append("Account not verified")

    account_age_days = days_between(creator.created_at, now)
    if account_age_days < 7:
        score -= 30
        issues.append(f"Account very new ({int(account_age_days)} days old)")
    elif account_age_days < 30:
        score -= 15
        issues.append(f"Account relatively new ({int(account_age_days)} days old)")

    if not creator.mobile_no:
        score -= 15
        issues.append("Phone number not provided")
    if not creator.profile_image:
        score -= 10
        issues.append("No profile picture")
    if not creator.bio or len(creator.bio) < 50:
        score -= 10
        issues.append("Incomplete profile bio")

    return CheckResult(
        passed=score >= PASSING_SCORE,
        score=_clamp(score),
        details="; ".join(issues) if issues else "All verification checks passed",
    )


def check_story(story: str) -> CheckResult:
    """Heuristic authenticity review of the campaign story."""
    score = 70
    issues: List[str] = []
    red_flag = False

    if len(story) < 200:
        score -= 20
        issues.append("Story is very short")
    if not _SPECIFICS_RE.search(story):
        score -= 15
        issues.append("No concrete amounts, timelines or beneficiaries")

    lowered = story.lower()
    pressure = [phrase for phrase in _PRESSURE_PHRASES if phrase in lowered]
    if pressure:
        score -= 30
        red_flag = True
        issues.append(f"Pressure tactics: {', '.join(pressure)}")

    if story.count("!") > 5 or (len(story) > 40 and caps_ratio(story) > 0.5):
        score -= 10
        issues.append("Excessive punctuation or capitals")

    return CheckResult(
        passed=score >= PASSING_SCORE and not red_flag,
        score=_clamp(score),
        details="; ".join(issues) if issues else "Story contains specific, verifiable details",
    )


def check_donations(donations: Iterable[DonationSignals]) -> CheckResult:
    ordered = sorted(donations, key=lambda d: d.donated_at)
    if not ordered:
        return CheckResult(passed=True, score=100, details="No donations yet")

    score = 100
    passed = True
    anomalies: List[str] = []
    count = len(ordered)

    rapid = sum(
        1
        for earlier, later in zip(ordered, ordered[1:])
        if (later.donated_at - earlier.donated_at).total_seconds() < 60
    )
    if rapid > 3:
        score -= 30
        passed = False
        anomalies.append(f"{rapid} donations within 1 minute - suspicious coordination")

    unique_donors = {d.donor_user_id for d in ordered if d.donor_user_id is not None}
    if count > 5 and len(unique_donors) < count * 0.5:
        score -= 25
        anomalies.append("High rate of repeat donations from same users")

    amounts = [d.amount for d in ordered]
    if count > 5 and amounts.count(amounts[0]) / count > 0.7:
        score -= 20
        anomalies.append("Suspiciously uniform donation amounts")

    if sum(amounts) / count > 500 and count > 10:
        score -= 15
        anomalies.append("Unusually high average donation amount")

    cities = [d.donor_city for d in ordered if d.donor_city]
    if len(cities) > 5:
        _, top_count = Counter(cities).most_common(1)[0]
        if top_count / len(cities) > 0.8:
            score -= 25
            passed = False
            anomalies.append("Geographic clustering - most donors from same location")

    return CheckResult(
        passed=passed and score >= PASSING_SCORE and len(anomalies) < 3,
        score=_clamp(score),
        details="; ".join(anomalies),
        anomalies=anomalies,
    )


def is_similar_campaign(campaign: CampaignText, other: CampaignText) -> bool:
    if campaign.title == other.title:
        return True
    title_similarity = string_similarity(campaign.title.lower(), other.title.lower())
    story_similarity = string_similarity(
        campaign.story.lower()[:STORY_PREFIX_LENGTH],
        other.story.lower()[:STORY_PREFIX_LENGTH],
    )
    return title_similarity > SIMILARITY_THRESHOLD or story_similarity > SIMILARITY_THRESHOLD


def check_duplicates(campaign: CampaignText, creator_open_campaigns: Iterable[CampaignText]) -> CheckResult:
    """Compare against the creator's other campaigns that are not completed."""
    others = [c for c in creator_open_campaigns if c.id != campaign.id]
    duplicates = sum(1 for other in others if is_similar_campaign(campaign, other))

    score = 100 - duplicates * 50
    if len(others) > 3:
        score -= 20

    return CheckResult(
        passed=duplicates == 0,
        score=_clamp(score),
        details=f"{duplicates} similar campaign(s) by the same creator",
    )


def check_image(image_url: Optional[str]) -> CheckResult:
    if not image_url:
        return CheckResult(
            passed=False,
            score=40,
            details="No image provided - campaigns with images are more trustworthy",
        )
    return CheckResult(passed=True, score=85, details="Image present - manual review recommended")


def flag_severity(failure_score: float) -> Severity:
    if failure_score > 60:
        return Severity.CRITICAL
    if failure_score > 40:
        return Severity.HIGH
    if failure_score > 25:
        return Severity.MEDIUM
    return Severity.LOW


def risk_level(risk_score: int) -> Severity:
    if risk_score >= 90:
        return Severity.CRITICAL
    if risk_score >= 70:
        return Severity.HIGH
    if risk_score >= 40:
        return Severity.MEDIUM
    return Severity.LOW


def compute_risk(checks: Dict[str, CheckResult]) -> tuple[int, List[FraudFlag]]:
    """Weighted failure across checks, plus one flag per failed check."""
    total = 0.0
    flags: List[FraudFlag] = []
    for name, weight in CHECK_WEIGHTS.items():
        check = checks[name]
        failure = 100 - check.score
        total += failure * weight
        if not check.passed:
            flags.append(
                FraudFlag(
                    type=name,
                    severity=flag_severity(failure),
                    description=FLAG_DESCRIPTIONS[name],
                    evidence=check.details or "See details",
                )
            )
    return int(min(100, max(0, round(total)))), flags


def recommend(risk_score: int, flags: List[FraudFlag]) -> Recommendation:
    critical = sum(1 for f in flags if f.severity == Severity.CRITICAL)
    high = sum(1 for f in flags if f.severity == Severity.HIGH)

    if risk_score >= 90 or critical >= 2:
        return Recommendation.REJECT
    if risk_score >= 70 or critical >= 1:
        return Recommendation.FLAG
    if risk_score >= 40 or high >= 2:
        return Recommendation.REVIEW
    return Recommendation.APPROVE


def explain(risk_score: int, flags: List[FraudFlag]) -> str:
    if risk_score < 30:
        return "Campaign appears legitimate with no significant fraud indicators."
    if risk_score < 50:
        issues = ", ".join(f.type for f in flags) or "none"
        return f"Campaign has minor concerns but likely legitimate. Issues: {issues}. Manual review recommended."
    if risk_score < 70:
        serious = "; ".join(f.description for f in flags if f.severity in (Severity.HIGH, Severity.CRITICAL))
        return (
            f"Campaign shows moderate fraud risk. Key concerns: {serious or 'several minor issues'}. "
            "Requires thorough review before approval."
        )
    descriptions = "; ".join(f.description for f in flags)
    if risk_score < 90:
        return f"High fraud risk detected. Red flags: {descriptions}. Campaign should be flagged for investigation."
    return f"Critical fraud risk. Campaign should be rejected. Issues: {descriptions}."


def analyze_campaign(
    campaign: CampaignText,
    image_url: Optional[str],
    creator: CreatorSignals,
    donations: Iterable[DonationSignals],
    creator_open_campaigns: Iterable[CampaignText],
    now: datetime,
) -> FraudAnalysis:
    checks = {
        "creator_verification": check_creator(creator, now),
        "story_authenticity": check_story(campaign.story),
        "donation_patterns": check_donations(donations),
        "duplicate_campaign": check_duplicates(campaign, creator_open_campaigns),
        "image_authenticity": check_image(image_url),
    }
    risk_score, flags = compute_risk(checks)
    return FraudAnalysis(
        campaign_id=campaign.id,
        risk_score=risk_score,
        risk_level=risk_level(risk_score),
        flags=flags,
        checks=checks,
        recommendation=recommend(risk_score, flags),
        reasoning=explain(risk_score, flags),
    )
