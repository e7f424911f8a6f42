"""
Marketplace listing quality assurance.

Six checks grade a product listing from 0 to 100. Failures of the content
policy and duplicate checks are violations that block approval; the other
failures are warnings. A listing is approved when it has no violations and
averages at least 75, and is published without human review at 85 or more.
"""

import re
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from .text import string_similarity

PROHIBITED_KEYWORDS = (
    "weapon",
    "gun",
    "explosive",
    "drug",
    "illegal",
    "counterfeit",
    "pirated",
    "stolen",
    "hacked",
    "crack",
    "keygen",
)
ADULT_KEYWORDS = ("adult", "explicit", "nsfw", "mature")
BRAND_KEYWORDS = ("official", "authentic", "genuine", "licensed", "nike", "adidas", "apple", "microsoft", "adobe")

CATEGORY_HINTS: Dict[str, tuple] = {
    "course": ("course", "class", "lesson", "training"),
    "music": ("music", "song", "track", "album"),
    "choreography": ("choreography", "routine", "sequence"),
    "video": ("video", "tutorial", "recording"),
    "ebook": ("ebook", "book", "guide", "manual"),
    "template": ("template", "preset", "design"),
    "tutorial": ("tutorial", "how-to", "guide"),
}
VALID_CATEGORIES = tuple(CATEGORY_HINTS)

DESCRIPTION_SPAM_PATTERNS = (
    re.compile(r"click here", re.IGNORECASE),
    re.compile(r"buy now", re.IGNORECASE),
    re.compile(r"limited time", re.IGNORECASE),
    re.compile(r"urgent", re.IGNORECASE),
    re.compile(r"!!!"),
)

MIN_DESCRIPTION_LENGTH = 50
RECOMMENDED_IMAGE_COUNT = 3
MIN_APPROVE_SCORE = 75
AUTO_APPROVE_SCORE = 85
DUPLICATE_SIMILARITY = 0.8


class ListingDraft(BaseModel):
    id: Optional[int] = None
    title: str
    description: str = ""
    category: Optional[str] = None
    media_urls: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class PublishedListing(BaseModel):
    id: int
    title: str


class QACheck(BaseModel):
    passed: bool
    score: int = Field(ge=0, le=100)
    issues: List[str] = Field(default_factory=list)


class QAReport(BaseModel):
    product_id: Optional[int]
    approved: bool
    auto_approved: bool
    requires_manual_review: bool
    overall_score: int
    checks: Dict[str, QACheck]
    violations: List[str]
    warnings: List[str]
    recommendations: List[str]


def check_content_policy(listing: ListingDraft) -> QACheck:
    text = f"{listing.title} {listing.description} {' '.join(listing.tags)}".lower()
    prohibited = [k for k in PROHIBITED_KEYWORDS if k in text]
    if prohibited:
        return QACheck(
            passed=False,
            score=0,
            issues=[f"Potentially prohibited content detected: {', '.join(prohibited)}"],
        )
    if any(k in text for k in ADULT_KEYWORDS):
        return QACheck(passed=False, score=20, issues=["Adult content not permitted on this platform"])
    return QACheck(passed=True, score=100)


def check_images(listing: ListingDraft) -> QACheck:
    count = len(listing.media_urls)
    if count == 0:
        return QACheck(passed=False, score=0, issues=["No product images uploaded"])
    if count < RECOMMENDED_IMAGE_COUNT:
        return QACheck(passed=True, score=80, issues=[f"Only {count} image(s) - recommend at least 3"])
    return QACheck(passed=True, score=100)


def check_category(listing: ListingDraft) -> QACheck:
    if not listing.category:
        return QACheck(passed=False, score=0, issues=["No category selected"])
    if listing.category not in CATEGORY_HINTS:
        return QACheck(passed=False, score=30, issues=[f"Invalid category: {listing.category}"])
    title = listing.title.lower()
    if not any(hint in title for hint in CATEGORY_HINTS[listing.category]):
        return QACheck(passed=True, score=70, issues=[f'Title may not match category "{listing.category}"'])
    return QACheck(passed=True, score=100)


def check_description(listing: ListingDraft) -> QACheck:
    description = listing.description
    if len(description) < MIN_DESCRIPTION_LENGTH:
        return QACheck(
            passed=False,
            score=30,
            issues=[f"Description too short ({len(description)} characters - minimum {MIN_DESCRIPTION_LENGTH})"],
        )

    score = 100
    issues: List[str] = []
    has_structure = "\n" in description or "-" in description or "•" in description
    if not has_structure and len(description) < 150:
        score -= 15
        issues.append("Description could benefit from better formatting (bullet points, paragraphs)")

    if sum(1 for pattern in DESCRIPTION_SPAM_PATTERNS if pattern.search(description)) >= 2:
        score -= 30
        issues.append("Description contains spam-like language")

    return QACheck(passed=score >= 60, score=max(score, 0), issues=issues)


def check_duplicates(listing: ListingDraft, creator_published: Iterable[PublishedListing]) -> QACheck:
    title = listing.title.lower()
    duplicates = [
        other
        for other in creator_published
        if other.id != listing.id and string_similarity(title, other.title.lower()) > DUPLICATE_SIMILARITY
    ]
    if duplicates:
        return QACheck(
            passed=False,
            score=0,
            issues=[f'Potential duplicate listing detected: "{duplicates[0].title}"'],
        )
    return QACheck(passed=True, score=100)


def check_brands(listing: ListingDraft) -> QACheck:
    text = f"{listing.title} {listing.description}".lower()
    brands = [b for b in BRAND_KEYWORDS if b in text]
    if brands:
        return QACheck(
            passed=True,
            score=60,
            issues=[f"Brand references detected: {', '.join(brands)} - verify authenticity"],
        )
    return QACheck(passed=True, score=100)


_BLOCKING_CHECKS = ("content_policy", "duplicate_detection")


def review_listing(listing: ListingDraft, creator_published: Iterable[PublishedListing] = ()) -> QAReport:
    checks = {
        "content_policy": check_content_policy(listing),
        "image_quality": check_images(listing),
        "category_accuracy": check_category(listing),
        "description_accuracy": check_description(listing),
        "duplicate_detection": check_duplicates(listing, creator_published),
        "brand_authenticity": check_brands(listing),
    }

    violations: List[str] = []
    warnings: List[str] = []
    for name, check in checks.items():
        if not check.passed and name in _BLOCKING_CHECKS:
            violations.extend(check.issues)
        elif not check.passed or name == "brand_authenticity":
            warnings.extend(check.issues)

    recommendations: List[str] = []
    if checks["image_quality"].score < 60:
        recommendations.append("Add more high-quality product images")
    if checks["description_accuracy"].score < 60:
        recommendations.append("Expand product description with more details")
    if len(listing.tags) < 3:
        recommendations.append("Add more relevant tags to improve discoverability")

    overall = sum(c.score for c in checks.values()) / len(checks)
    approved = not violations and overall >= MIN_APPROVE_SCORE
    return QAReport(
        product_id=listing.id,
        approved=approved,
        auto_approved=approved and overall >= AUTO_APPROVE_SCORE,
        requires_manual_review=not approved,
        overall_score=round(overall),
        checks=checks,
        violations=violations,
        warnings=warnings,
        recommendations=recommendations,
    )
