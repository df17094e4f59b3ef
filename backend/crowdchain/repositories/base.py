"""Entity Store Base — generic async CRUD over one ORM model.

Invariants:
    - get / get_by / update return None for unknown rows (never raise for control flow)
    - create fills the primary key and column defaults, then flushes so the row is readable
    - update merges only the given fields and refreshes updated_at when the model has one
    - Repositories never commit — the calling service owns the unit of work

Design Decisions:
    - One generic class + thin typed subclasses: entity-specific queries live next to
      the model they read, shared CRUD is written once
    - flush() after create/update: defaults (id, timestamps) are populated before return
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crowdchain.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class SqlRepository(Generic[ModelT]):
    """Async CRUD for a single model class."""

    model: type[ModelT]

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, entity_id: UUID) -> ModelT | None:
        return await self.db.get(self.model, entity_id)

    async def get_for_update(self, entity_id: UUID) -> ModelT | None:
        """Fresh read bypassing the identity map, row-locked where the dialect supports it."""
        stmt = (
            select(self.model)
            .where(self.model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(self, **criteria: Any) -> ModelT | None:
        stmt = select(self.model).filter_by(**criteria).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> ModelT:
        entity = self.model(**fields)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def update(self, entity_id: UUID, **fields: Any) -> ModelT | None:
        entity = await self.get(entity_id)
        if entity is None:
            return None
        for name, value in fields.items():
            setattr(entity, name, value)
        if hasattr(entity, "updated_at"):
            entity.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return entity

    async def list_where(self, *criteria: Any, order_by: Any = None) -> Sequence[ModelT]:
        stmt = select(self.model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.db.execute(stmt)
        return result.scalars().all()
