from sqlalchemy.ext.asyncio import AsyncSession
from app.models.user import User
from app.repositories.base import BaseRepository

class UserRepository(BaseRepository[User]):
    def __init__(self):
        super().__init__(User)

    async def create_user(self, db: AsyncSession, email: str, password_hash: str) -> User:
        return await self.create(db, User(email=email, password_hash=password_hash))

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        return await self.first(db, email=email)
