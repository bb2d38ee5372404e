import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional
from uuid import UUID

from buyer_intake.models.buyer import Buyer
from buyer_intake.models.buyer_history import BuyerHistory
from buyer_intake.repositories.history_repository import BuyerHistoryRepository
from buyer_intake.schemas.buyer import BuyerFields
from buyer_intake.schemas.common import HistoryAction
from buyer_intake.schemas.history import FieldChange, HistoryDiff

logger = logging.getLogger(__name__)


def snapshot(fields: BuyerFields) -> Dict[str, Any]:
    """JSON-safe view of a field-set keyed by wire name."""
    return fields.model_dump(mode="json", by_alias=True)


def stored_fields(buyer: Buyer) -> BuyerFields:
    """Re-read a persisted buyer as a field-set."""
    return BuyerFields.model_validate(
        {name: getattr(buyer, name) for name in BuyerFields.model_fields}
    )


def compute_diff(
    old: Optional[Mapping[str, Any]],
    new: Mapping[str, Any],
    keys: Optional[Iterable[str]] = None,
) -> Dict[str, FieldChange]:
    """Field-level changes between two snapshots.

    Without *old* (create/import) every supplied value is reported as
    ``{new}``.  With *old*, only the *keys* (default: all of *new*) whose
    values differ are reported as ``{old, new}``.
    """
    if old is None:
        return {
            name: FieldChange(new=value)
            for name, value in new.items()
            if value is not None and value != []
        }

    changes: Dict[str, FieldChange] = {}
    for name in keys if keys is not None else new.keys():
        before = old.get(name)
        after = new.get(name)
        if before != after:
            changes[name] = FieldChange(old=before, new=after)
    return changes


class HistoryRecorder:
    """Builds and stages audit entries on the caller's transaction."""

    def __init__(self, history_repo: BuyerHistoryRepository) -> None:
        self._history = history_repo

    async def record(
        self,
        *,
        buyer_id: UUID,
        actor_id: UUID,
        action: HistoryAction,
        old: Optional[Mapping[str, Any]],
        new: Mapping[str, Any],
        changed_at: datetime,
        keys: Optional[Iterable[str]] = None,
    ) -> Optional[BuyerHistory]:
        """Stage one history entry, or nothing for an empty update diff."""
        fields = compute_diff(old, new, keys)
        if action == HistoryAction.UPDATED and not fields:
            logger.debug("No-op update on buyer %s; history unchanged", buyer_id)
            return None

        diff = HistoryDiff(action=action, fields=fields)
        return await self._history.create(
            buyer_id=buyer_id,
            changed_by=actor_id,
            changed_at=changed_at,
            diff=diff.model_dump(mode="json"),
        )
