from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from buyer_intake.models.buyer_history import BuyerHistory


# History rows are immutable once written
@event.listens_for(Session, "before_flush")
def block_history_rewrites(session: Session, flush_context, instances):
    for obj in session.dirty:
        if not isinstance(obj, BuyerHistory):
            continue
        state = inspect(obj)
        changed = [attr.key for attr in state.attrs if attr.history.has_changes()]
        if changed:
            raise ValueError(
                f"History entry {obj.id} is append-only; "
                f"refusing to modify {', '.join(changed)}"
            )
