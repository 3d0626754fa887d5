from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from app.models.todo import Todo
from app.repositories.base import BaseRepository

class TodoRepository(BaseRepository[Todo]):
    """Todo rows, always scoped to one owner."""

    def __init__(self):
        super().__init__(Todo)

    async def create_for(self, db: AsyncSession, user_id: str, title: str, completed: bool = False) -> Todo:
        return await self.create(db, Todo(title=title, completed=completed, user_id=user_id))

    async def list_for(self, db: AsyncSession, user_id: str, filters: dict[str, Any], ascending: bool = True):
        order = Todo.id.asc() if ascending else Todo.id.desc()
        return await self.list(db, where={**filters, "user_id": user_id}, order_by=[order])

    async def update_for(self, db: AsyncSession, user_id: str, filters: dict[str, Any], patch: dict[str, Any]):
        return await self.update_where(db, {**filters, "user_id": user_id}, patch)

    async def delete_for(self, db: AsyncSession, user_id: str, filters: dict[str, Any]) -> int:
        return await self.delete_where(db, {**filters, "user_id": user_id})
