from datetime import datetime, timedelta, timezone
from typing import Optional

from buyer_intake.core.exceptions import NotBuyerOwnerError, StaleBuyerVersionError
from buyer_intake.models.buyer import Buyer
from buyer_intake.services.auth_service import Identity


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ensure_owner(buyer: Buyer, actor: Identity) -> None:
    """Only the creating user may edit or delete a buyer."""
    if buyer.owner_id != actor.user_id:
        raise NotBuyerOwnerError()


def ensure_current_version(buyer: Buyer, expected: Optional[datetime]) -> None:
    """Reject the write if the client's view of the record is stale.

    ``expected`` is the ``updatedAt`` the client last read.  When it is
    omitted the write proceeds unconditionally (last writer wins).
    """
    if expected is None:
        return
    if _as_utc(expected) != _as_utc(buyer.updated_at):
        raise StaleBuyerVersionError()


def next_version(previous: datetime, now: datetime) -> datetime:
    """New version token, strictly later than the previous one."""
    previous = _as_utc(previous)
    now = _as_utc(now)
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now
