"""Time helpers shared by the persistence layer and the scoring modules."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hours_between(earlier: datetime, later: datetime) -> float:
    """Elapsed hours from ``earlier`` to ``later`` (negative if reversed)."""
    return (later - earlier).total_seconds() / 3600


def days_between(earlier: datetime, later: datetime) -> float:
    """Elapsed days from ``earlier`` to ``later`` (negative if reversed)."""
    return (later - earlier).total_seconds() / 86400


def as_naive_utc(value: datetime) -> datetime:
    """``value`` converted to UTC with the timezone dropped; naive values are returned as is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
