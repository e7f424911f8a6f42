"""
Base database models and utilities.

This module provides the foundational database components used across
all entities in the persistence layer using SQLModel.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import BeforeValidator, ConfigDict, NaiveDatetime, TypeAdapter
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from mundo_tango.core.timeutils import as_naive_utc, utc_now

_DATETIME = TypeAdapter(datetime)


def _to_naive_utc(value: Any) -> Any:
    if value is None or (isinstance(value, datetime) and value.tzinfo is None):
        return value
    return as_naive_utc(_DATETIME.validate_python(value))


# Client supplied timestamps: offsets such as "Z" or "+02:00" are converted to UTC
UtcNaiveDatetime = Annotated[NaiveDatetime, BeforeValidator(_to_naive_utc)]


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


def json_list_field(description: str = "", default: Optional[List[Any]] = None) -> Any:
    """A list-valued column stored as JSON.

    Each call builds a fresh ``Column`` since SQLAlchemy columns cannot be
    shared between tables.
    """
    return Field(
        default_factory=lambda: list(default or []),
        sa_column=Column(JSON, nullable=False),
        description=description,
    )


def timestamp_column(nullable: bool = True, index: bool = False, **kwargs: Any) -> Column:
    """A ``DateTime`` column holding naive UTC values."""
    return Column(DateTime(timezone=False), nullable=nullable, index=index, **kwargs)


def timestamp_field(nullable: bool = True, index: bool = False) -> Any:
    """Naive UTC timestamp; optional ones default to ``None``, required ones have no default.

    Annotate the attribute with ``NaiveDatetime`` so the model and the column agree
    that no timezone is stored.
    """
    column = timestamp_column(nullable=nullable, index=index)
    if nullable:
        return Field(default=None, sa_column=column)
    return Field(sa_column=column)


def created_at_field() -> Any:
    return Field(default_factory=utc_now, sa_column=timestamp_column(nullable=False, index=True))


def updated_at_field() -> Any:
    return Field(default_factory=utc_now, sa_column=timestamp_column(nullable=False, onupdate=utc_now))


__all__ = [
    "Base",
    "NaiveDatetime",
    "UtcNaiveDatetime",
    "created_at_field",
    "json_list_field",
    "timestamp_column",
    "timestamp_field",
    "updated_at_field",
]
