"""
Content moderation checks for user generated text.

``check_content`` gives the quick verdict used when posts and comments are
submitted. ``spam_score`` grades how spam-like a text is and also considers
how often the same author posted the same text recently.
"""

import re
from typing import Iterable, List, Sequence

from pydantic import BaseModel, Field

from .text import caps_ratio, count_urls, letter_count, string_similarity

SPAM_PATTERNS: Sequence[re.Pattern] = (
    re.compile(r"click here", re.IGNORECASE),
    re.compile(r"buy now", re.IGNORECASE),
    re.compile(r"limited time", re.IGNORECASE),
    re.compile(r"\$\$\$"),
)

BANNED_WORDS: Sequence[str] = ("fuck", "shit", "bitch", "cunt", "asshole")

_REPEATED_CHAR_RE = re.compile(r"(.)\1{5,}")
_WORD_RE = re.compile(r"[a-z']+")

SPAM_THRESHOLD = 50
DUPLICATE_SIMILARITY = 0.9


class ModerationResult(BaseModel):
    clean: bool
    violations: List[str] = Field(default_factory=list)


class SpamAssessment(BaseModel):
    score: int = Field(ge=0, le=100)
    is_spam: bool
    signals: List[str] = Field(default_factory=list)


def has_excessive_caps(text: str) -> bool:
    """More than 20 letters, over 70% of them upper case."""
    return letter_count(text) > 20 and caps_ratio(text) > 0.7


def contains_profanity(text: str, banned_words: Iterable[str] = BANNED_WORDS) -> bool:
    words = set(_WORD_RE.findall(text.lower()))
    return any(word in words for word in banned_words)


def matches_spam_pattern(text: str) -> bool:
    return any(pattern.search(text) for pattern in SPAM_PATTERNS)


def check_content(text: str) -> ModerationResult:
    violations: List[str] = []
    if contains_profanity(text):
        violations.append("profanity")
    if matches_spam_pattern(text):
        violations.append("spam")
    if has_excessive_caps(text):
        violations.append("excessive_caps")
    return ModerationResult(clean=not violations, violations=violations)


def spam_score(text: str, recent_texts_by_author: Iterable[str] = ()) -> SpamAssessment:
    score = 0
    signals: List[str] = []

    pattern_hits = sum(1 for pattern in SPAM_PATTERNS if pattern.search(text))
    if pattern_hits:
        score += min(pattern_hits * 25, 50)
        signals.append(f"{pattern_hits} spam phrase(s)")

    urls = count_urls(text)
    words = max(len(text.split()), 1)
    if urls >= 3 or (urls and urls / words > 0.2):
        score += 25
        signals.append("link heavy")

    if _REPEATED_CHAR_RE.search(text):
        score += 10
        signals.append("repeated characters")

    if has_excessive_caps(text):
        score += 15
        signals.append("excessive caps")

    duplicates = sum(1 for previous in recent_texts_by_author if string_similarity(previous, text) >= DUPLICATE_SIMILARITY)
    if duplicates:
        score += min(duplicates * 20, 40)
        signals.append(f"repeated {duplicates} time(s) recently")

    score = min(score, 100)
    return SpamAssessment(score=score, is_spam=score >= SPAM_THRESHOLD, signals=signals)
