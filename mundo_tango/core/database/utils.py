"""
Engine and session factory helpers.

The application always talks to the database through an async driver:
Postgres URLs are rewritten to ``asyncpg`` and bare SQLite URLs to
``aiosqlite``, so a plain ``DATABASE_URL`` copied from a hosting dashboard
works unchanged.
"""

from __future__ import annotations

import re

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .base import Base

_POSTGRES_PREFIX = re.compile(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://")
_SQLITE_PREFIX = re.compile(r"^sqlite://")


def async_database_url(db_url: str) -> str:
    """``db_url`` with its driver replaced by the async one for its backend."""
    url = _POSTGRES_PREFIX.sub("postgresql+asyncpg://", db_url, count=1)
    return _SQLITE_PREFIX.sub("sqlite+aiosqlite://", url, count=1)


def create_engine(db_url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for ``db_url``; connections are pinged before reuse.

    Args:
        db_url: Database URL, with or without an explicit driver.
        echo: Log every SQL statement.
    """
    return create_async_engine(async_database_url(db_url), pool_pre_ping=True, echo=echo)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows stay readable after commit; responses are built from them.
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create every missing table of the social schema."""
    # Importing the entities registers their tables on the shared metadata
    from . import entities  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
