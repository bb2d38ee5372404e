from uuid import uuid4

from sqlalchemy import JSON, Column, ForeignKey, Index, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from buyer_intake.models.base import Base, UTCDateTime, utcnow


class BuyerHistory(Base):
    """Append-only audit entry for one buyer mutation.

    ``diff`` holds ``{"action": ..., "fields": {name: {"old"?, "new"}}}``
    as produced by :class:`buyer_intake.schemas.history.HistoryDiff`.
    Rows are written once alongside the buyer change and only removed by
    the cascade when their buyer is deleted.
    """

    __tablename__ = "buyer_history"
    id = Column(Uuid, primary_key=True, default=uuid4)
    buyer_id = Column(
        Uuid,
        ForeignKey("buyers.id", ondelete="CASCADE"),
        nullable=False,
    )
    changed_by = Column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    changed_at = Column(UTCDateTime, nullable=False, default=utcnow)
    diff = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)

    buyer = relationship("Buyer", back_populates="history")

    __table_args__ = (
        Index("idx_buyer_history_buyer_changed", "buyer_id", "changed_at"),
    )
