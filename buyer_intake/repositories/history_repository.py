from typing import Any, List
from uuid import UUID

from sqlalchemy import func, select

from buyer_intake.models.buyer_history import BuyerHistory
from buyer_intake.repositories.base import BaseRepository


class BuyerHistoryRepository(BaseRepository):
    """Append-only access to ``buyer_history``."""

    async def create(self, **kwargs: Any) -> BuyerHistory:
        """Stage a new history entry on the current transaction."""
        entry = BuyerHistory(**kwargs)
        self._db.add(entry)
        return entry

    async def recent_for_buyer(self, buyer_id: UUID, limit: int) -> List[BuyerHistory]:
        """Return the newest *limit* entries for a buyer, newest first."""
        result = await self._db.execute(
            select(BuyerHistory)
            .where(BuyerHistory.buyer_id == buyer_id)
            .order_by(BuyerHistory.changed_at.desc(), BuyerHistory.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_buyer(self, buyer_id: UUID) -> int:
        result = await self._db.execute(
            select(func.count())
            .select_from(BuyerHistory)
            .where(BuyerHistory.buyer_id == buyer_id)
        )
        return result.scalar() or 0
