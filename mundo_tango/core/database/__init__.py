"""
Persistence layer for Mundo Tango.

Structure:
- entities/: SQLModel table models grouped by domain
- repositories/: data access helpers shared by the services
- session.py: global engine and session factory management
- utils.py: engine, session factory and schema creation helpers
"""

from .base import Base
from .session import (
    async_session_maker,
    engine,
    get_session,
    init_db,
)
from .utils import (
    create_all,
    create_engine,
    create_sessionmaker,
)

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "init_db",
]
