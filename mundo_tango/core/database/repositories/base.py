"""
Base repository and query helpers.

Services use ``AsyncRepository`` for the plain CRUD they need on every
entity and build richer queries with ``select`` themselves. All operations
are async and commit through the session they were given.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from mundo_tango.core.errors import NotFoundError

# Generic type for SQLModel entities
EntityType = TypeVar("EntityType", bound=SQLModel)


class QueryBuilder:
    """Utility class for building SQLModel-based database queries."""

    @staticmethod
    def apply_filters(stmt, model: Type[SQLModel], filters: Dict[str, Any]):
        """Apply equality filters to a select statement.

        ``None`` values and names that are not columns of ``model`` are skipped.

        Args:
            stmt: SQLModel select statement
            model: SQLModel entity class
            filters: Dictionary of field filters

        Returns:
            Modified select statement with filters applied
        """
        for key, value in filters.items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == value)
        return stmt

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        """Apply pagination to a select statement.

        Args:
            stmt: SQLModel select statement
            limit: Maximum number of records
            offset: Number of records to skip

        Returns:
            Modified select statement with pagination applied
        """
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt


class AsyncRepository(Generic[EntityType]):
    """Async CRUD operations for one SQLModel entity."""

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        """Initialize repository with async database session and SQLModel entity class.

        Args:
            session: Async session for database operations
            model: SQLModel entity class for this repository
        """
        self.session = session
        self.model = model

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    async def create(self, entity: EntityType) -> EntityType:
        """Persist a new entity and return it with generated fields populated."""
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def get_by_id(self, entity_id: int) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)

    async def get_or_404(self, entity_id: int, label: Optional[str] = None) -> EntityType:
        """Like ``get_by_id`` but raises ``NotFoundError`` when the row is missing."""
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError.for_entity(label or self.entity_name, entity_id)
        return entity

    async def update(self, entity: EntityType, changes: Optional[Dict[str, Any]] = None) -> EntityType:
        """Apply ``changes`` (if any) to ``entity`` and persist it."""
        for key, value in (changes or {}).items():
            setattr(entity, key, value)
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity_id: int) -> bool:
        """Delete entity by its primary key.

        Returns:
            True if deleted, False if not found
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.commit()
        return True

    async def list(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Sequence[Any]] = None,
    ) -> List[EntityType]:
        """List entities with optional filtering, ordering and pagination.

        Args:
            limit: Maximum number of records to return
            offset: Number of records to skip
            filters: Dictionary of equality filters
            order_by: Column expressions to sort by

        Returns:
            List of entity instances
        """
        stmt = select(self.model)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, self.model, filters)
        for clause in order_by or ():
            stmt = stmt.order_by(clause)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first(self, **filters: Any) -> Optional[EntityType]:
        stmt = QueryBuilder.apply_filters(select(self.model), self.model, filters)
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first()

    async def count(self, **filters: Any) -> int:
        stmt = QueryBuilder.apply_filters(select(func.count()).select_from(self.model), self.model, filters)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
