"""
Database repository layer using SQLModel.

Modules:
- base: generic ``AsyncRepository`` CRUD and ``QueryBuilder`` utilities
- social: follow, friendship and membership lookups for the social graph
"""

from .base import AsyncRepository, QueryBuilder
from .social import SocialGraphRepository

__all__ = ["AsyncRepository", "QueryBuilder", "SocialGraphRepository"]
