import logging
import math
from typing import Any, Dict, List, Mapping
from uuid import UUID, uuid4

from buyer_intake.core.config import settings
from buyer_intake.core.exceptions import BuyerNotFoundError
from buyer_intake.models.base import utcnow
from buyer_intake.models.buyer import Buyer
from buyer_intake.repositories.buyer_repository import BuyerRepository
from buyer_intake.repositories.history_repository import BuyerHistoryRepository
from buyer_intake.schemas.buyer import (
    BuyerFields,
    BuyerFilters,
    BuyerListItem,
    BuyerOut,
    OwnerOut,
    PageRequest,
)
from buyer_intake.schemas.common import HistoryAction
from buyer_intake.schemas.history import HistoryEntryOut
from buyer_intake.services.auth_service import Identity
from buyer_intake.services.buyer_validation import FIELD_ALIASES, BuyerValidator
from buyer_intake.services.concurrency_guard import (
    ensure_current_version,
    ensure_owner,
    next_version,
)
from buyer_intake.services.history_recorder import (
    HistoryRecorder,
    snapshot,
    stored_fields,
)

logger = logging.getLogger(__name__)

# wire name -> column attribute
_ATTRS_BY_WIRE: Dict[str, str] = {wire: attr for attr, wire in FIELD_ALIASES.items()}


class BuyerService:
    """Buyer lifecycle: every write pairs the record change with its audit
    entry inside a single transaction.

    Repositories share one session; ``BuyerRepository.atomic()`` commits
    both writes together or rolls both back.
    """

    def __init__(
        self,
        buyer_repo: BuyerRepository,
        history_repo: BuyerHistoryRepository,
        history_preview_limit: int = settings.HISTORY_PREVIEW_LIMIT,
    ) -> None:
        self._buyers = buyer_repo
        self._history = history_repo
        self._recorder = HistoryRecorder(history_repo)
        self._history_preview_limit = history_preview_limit

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_buyer(self, payload: Mapping[str, Any], actor: Identity) -> Buyer:
        """Validate *payload* and persist it with a CREATED history entry.

        Raises:
            InvalidBuyerDataError: If any field or cross-field rule fails.
            PersistenceError: If the database rejects the write.
        """
        fields = BuyerValidator.validate_new(payload)
        async with self._buyers.atomic():
            buyer = await self.add_buyer(fields, actor.user_id, HistoryAction.CREATED)
        logger.info("Buyer %s created by %s", buyer.id, actor.user_id)
        return buyer

    async def import_buyers(
        self, batch: List[BuyerFields], actor: Identity
    ) -> List[Buyer]:
        """Persist an already-validated batch in one transaction.

        Each row goes through :meth:`add_buyer` with action IMPORTED; a
        failure on any row rolls back every row of the batch.
        """
        buyers: List[Buyer] = []
        async with self._buyers.atomic():
            for fields in batch:
                buyers.append(
                    await self.add_buyer(fields, actor.user_id, HistoryAction.IMPORTED)
                )
                # Surface constraint violations row by row, inside the batch
                await self._buyers.flush()
        logger.info("Imported %d buyers for %s", len(buyers), actor.user_id)
        return buyers

    async def add_buyer(
        self, fields: BuyerFields, owner_id: UUID, action: HistoryAction
    ) -> Buyer:
        """Stage a buyer and its creation entry on the open transaction.

        Does not commit; callers wrap it in ``atomic()``.
        """
        now = utcnow()
        buyer = await self._buyers.create(
            id=uuid4(),
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            **fields.model_dump(mode="json"),
        )
        await self._recorder.record(
            buyer_id=buyer.id,
            actor_id=owner_id,
            action=action,
            old=None,
            new=snapshot(fields),
            changed_at=now,
        )
        return buyer

    async def update_buyer(
        self, buyer_id: UUID, payload: Mapping[str, Any], actor: Identity
    ) -> Buyer:
        """Apply a partial update guarded by ownership and version checks.

        Order inside the transaction: lock row → owner → version →
        validate merged record → write changed columns → history entry.
        Nothing is written when the merged record equals the stored one,
        and ``updatedAt`` then stays put.

        Raises:
            BuyerNotFoundError, NotBuyerOwnerError, StaleBuyerVersionError,
            InvalidBuyerDataError, PersistenceError.
        """
        expected_version, changes = BuyerValidator.split_version(payload)

        async with self._buyers.atomic():
            buyer = await self._buyers.get_for_update(buyer_id)
            if buyer is None:
                raise BuyerNotFoundError()
            ensure_owner(buyer, actor)
            ensure_current_version(buyer, expected_version)

            before = snapshot(stored_fields(buyer))
            merged, supplied = BuyerValidator.validate_changes(before, changes)
            after = snapshot(merged)

            changed = [wire for wire in supplied if before[wire] != after[wire]]
            if not changed:
                logger.info("Buyer %s update by %s changed nothing", buyer_id, actor.user_id)
                return buyer

            version = next_version(buyer.updated_at, utcnow())
            columns = merged.model_dump(mode="json")
            await self._buyers.apply_changes(
                buyer,
                {
                    **{_ATTRS_BY_WIRE[wire]: columns[_ATTRS_BY_WIRE[wire]] for wire in changed},
                    "updated_at": version,
                },
            )
            await self._recorder.record(
                buyer_id=buyer.id,
                actor_id=actor.user_id,
                action=HistoryAction.UPDATED,
                old=before,
                new=after,
                keys=changed,
                changed_at=version,
            )

        logger.info(
            "Buyer %s updated by %s: %s", buyer_id, actor.user_id, ", ".join(changed)
        )
        return buyer

    async def delete_buyer(self, buyer_id: UUID, actor: Identity) -> None:
        """Delete a buyer (owner only); its history goes with it."""
        async with self._buyers.atomic():
            buyer = await self._buyers.get_for_update(buyer_id)
            if buyer is None:
                raise BuyerNotFoundError()
            ensure_owner(buyer, actor)
            await self._buyers.delete(buyer_id)
        logger.info("Buyer %s deleted by %s", buyer_id, actor.user_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_buyer(self, buyer_id: UUID) -> Dict[str, Any]:
        """Buyer with owner and the most recent history entries.

        Returns a dict suitable for building ``BuyerDetailOut``.
        """
        buyer = await self._buyers.get_by_id(buyer_id, with_owner=True)
        if buyer is None:
            raise BuyerNotFoundError()
        history = await self._history.recent_for_buyer(
            buyer_id, self._history_preview_limit
        )
        return {
            **BuyerOut.model_validate(buyer).model_dump(),
            "owner": OwnerOut.model_validate(buyer.owner),
            "history": [HistoryEntryOut.model_validate(entry) for entry in history],
        }

    async def list_buyers(
        self, filters: BuyerFilters, page: PageRequest
    ) -> Dict[str, Any]:
        """Returns a dict suitable for building ``BuyerListResponse``."""
        buyers, total = await self._buyers.list_page(filters, page)
        return {
            "items": [BuyerListItem.model_validate(buyer) for buyer in buyers],
            "page": page.page,
            "page_size": page.page_size,
            "total": total,
            "pages": math.ceil(total / page.page_size) if total else 0,
        }
