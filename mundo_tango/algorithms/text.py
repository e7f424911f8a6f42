"""
Text helpers used by the scoring modules.

Similarity is the normalized Levenshtein ratio: identical strings score 1.0,
completely different strings of equal length score 0.0.
"""

import re
from typing import List

_HASHTAG_RE = re.compile(r"#(\w+)", re.UNICODE)
_MENTION_RE = re.compile(r"(?<![\w@])@([A-Za-z0-9_.]{2,60})")
_URL_RE = re.compile(r"https?://\S+|www\.\S+", re.IGNORECASE)


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between ``a`` and ``b`` (insertions, deletions, substitutions)."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """Similarity ratio in [0, 1] based on edit distance over the longer string."""
    longer = a if len(a) >= len(b) else b
    if not longer:
        return 1.0
    return (len(longer) - levenshtein_distance(a, b)) / len(longer)


def _unique(items: List[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def extract_hashtags(text: str) -> List[str]:
    """Lower-cased hashtags in order of first appearance, without ``#``."""
    return _unique([tag.lower() for tag in _HASHTAG_RE.findall(text or "")])


def extract_mentions(text: str) -> List[str]:
    """Mentioned usernames in order of first appearance, without ``@``."""
    return _unique([name.rstrip(".") for name in _MENTION_RE.findall(text or "")])


def count_urls(text: str) -> int:
    return len(_URL_RE.findall(text or ""))


def caps_ratio(text: str) -> float:
    """Share of upper-case letters among all letters (0 when there are none)."""
    letters = [c for c in text if c.isalpha()]
    if not letters:
        return 0.0
    return sum(1 for c in letters if c.isupper()) / len(letters)


def letter_count(text: str) -> int:
    return sum(1 for c in text if c.isalpha())
