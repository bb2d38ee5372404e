from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select

from buyer_intake.models.user import User
from buyer_intake.repositories.base import BaseRepository


class UserRepository(BaseRepository):
    """Encapsulates queries against the ``users`` table."""

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self._db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self._db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> User:
        """Insert a new user and flush so its id is usable immediately."""
        user = User(**kwargs)
        self._db.add(user)
        await self._db.flush()
        return user
