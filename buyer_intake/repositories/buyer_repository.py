from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.orm import selectinload

from buyer_intake.models.buyer import Buyer
from buyer_intake.models.buyer_history import BuyerHistory
from buyer_intake.repositories.base import BaseRepository
from buyer_intake.schemas.buyer import BuyerFilters, PageRequest


class BuyerRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``buyers`` table."""

    async def get_by_id(
        self, buyer_id: UUID, *, with_owner: bool = False
    ) -> Optional[Buyer]:
        """Return a single buyer by primary key, or ``None``."""
        query = select(Buyer).where(Buyer.id == buyer_id)
        if with_owner:
            query = query.options(selectinload(Buyer.owner))
        result = await self._db.execute(query)
        return result.scalar_one_or_none()

    async def get_for_update(self, buyer_id: UUID) -> Optional[Buyer]:
        """Load a buyer and lock its row until the transaction ends.

        The version check and the write that follows it happen under this
        lock, so two updates cannot both pass the check.  (SQLite ignores
        ``FOR UPDATE``; it serialises writers at the database level.)
        """
        result = await self._db.execute(
            select(Buyer)
            .where(Buyer.id == buyer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> Buyer:
        """Stage a new buyer on the current transaction."""
        buyer = Buyer(**kwargs)
        self._db.add(buyer)
        return buyer

    async def apply_changes(self, buyer: Buyer, changes: Dict[str, Any]) -> None:
        """Assign changed column values on a loaded buyer."""
        for attr, value in changes.items():
            setattr(buyer, attr, value)

    async def delete(self, buyer_id: UUID) -> None:
        """Delete a buyer together with its history entries."""
        await self._db.execute(
            delete(BuyerHistory).where(BuyerHistory.buyer_id == buyer_id)
        )
        await self._db.execute(delete(Buyer).where(Buyer.id == buyer_id))

    # ------------------------------------------------------------------
    # Filtered reads (list + export)
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_filters(query: Select, filters: BuyerFilters) -> Select:
        """AND-combine every supplied predicate."""
        if filters.search:
            term = filters.search
            query = query.where(
                or_(
                    Buyer.full_name.icontains(term, autoescape=True),
                    Buyer.email.icontains(term, autoescape=True),
                    Buyer.phone.icontains(term, autoescape=True),
                )
            )
        if filters.city is not None:
            query = query.where(Buyer.city == filters.city.value)
        if filters.property_type is not None:
            query = query.where(Buyer.property_type == filters.property_type.value)
        if filters.status is not None:
            query = query.where(Buyer.status == filters.status.value)
        if filters.timeline is not None:
            query = query.where(Buyer.timeline == filters.timeline.value)
        return query

    def _ordered(self, filters: BuyerFilters) -> Select:
        query = select(Buyer).options(selectinload(Buyer.owner))
        return self._apply_filters(query, filters).order_by(
            Buyer.updated_at.desc(), Buyer.id.desc()
        )

    async def count(self, filters: BuyerFilters) -> int:
        query = self._apply_filters(select(func.count()).select_from(Buyer), filters)
        return (await self._db.execute(query)).scalar() or 0

    async def list_page(
        self, filters: BuyerFilters, page: PageRequest
    ) -> Tuple[List[Buyer], int]:
        """One page of buyers, most recently updated first, plus the total."""
        total = await self.count(filters)
        result = await self._db.execute(
            self._ordered(filters).offset(page.offset).limit(page.page_size)
        )
        return list(result.scalars().all()), total

    async def list_all(self, filters: BuyerFilters) -> List[Buyer]:
        """Every matching buyer, most recently updated first."""
        result = await self._db.execute(self._ordered(filters))
        return list(result.scalars().all())
