from __future__ import annotations
from typing import Any, Generic, Sequence, TypeVar
from sqlalchemy import select, delete as sa_delete, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

T = TypeVar("T")  # SQLAlchemy model class (Declarative)

class BaseRepository(Generic[T]):
    """
    Shared async repository over one SQLAlchemy model.
    - Filters are equality-only (`where` dict of column name -> value).
    - Each write commits; callers do not manage transactions.
    """

    def __init__(self, model: type[T]) -> None:
        self.model = model

    # ------------------------ Read ------------------------

    async def get(self, session: AsyncSession, pk: Any) -> T | None:
        return await session.get(self.model, pk)

    async def first(self, session: AsyncSession, **filters: Any) -> T | None:
        stmt = select(self.model).filter_by(**filters).limit(1)
        res = await session.execute(stmt)
        return res.scalars().first()

    async def list(
        self,
        session: AsyncSession,
        *,
        where: dict[str, Any] | None = None,
        order_by: Sequence[InstrumentedAttribute] | None = None,
    ) -> list[T]:
        stmt = select(self.model)
        if where:
            stmt = stmt.filter_by(**where)
        if order_by:
            stmt = stmt.order_by(*order_by)
        res = await session.execute(stmt)
        return list(res.scalars().all())

    # ------------------------ Write ------------------------

    async def create(self, session: AsyncSession, obj: T) -> T:
        session.add(obj)
        await session.commit()
        await session.refresh(obj)
        return obj

    async def update_where(self, session: AsyncSession, where: dict[str, Any], patch: dict[str, Any]) -> list[T]:
        """Apply `patch` to every row matching `where`; returns the updated rows."""
        stmt = sa_update(self.model).filter_by(**where).values(**patch)
        await session.execute(stmt)
        await session.commit()
        return await self.list(session, where=where_after_patch(where, patch))

    async def delete_where(self, session: AsyncSession, where: dict[str, Any]) -> int:
        stmt = sa_delete(self.model).filter_by(**where)
        res = await session.execute(stmt)
        await session.commit()
        return res.rowcount or 0


def where_after_patch(where: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    # a patched column may no longer match its old filter value
    return {k: patch.get(k, v) for k, v in where.items()}
