from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from buyer_intake.core.constants import (
    BHK_CHECK_CLAUSE,
    BUDGET_ORDER_CHECK_CLAUSE,
    BUYER_STATUSES,
    CITIES,
    PROPERTY_TYPES,
    TIMELINES,
    enum_check_clause,
)
from buyer_intake.models.base import Base, UTCDateTime, utcnow


class Buyer(Base):
    """Prospect intake profile for a property purchase or rental.

    Holds contact details, location and property preferences, an optional
    budget range, and free-text tags.  ``owner_id`` is the only user
    allowed to edit or delete the record.  ``updated_at`` is the
    optimistic-lock version token: it only moves when a field actually
    changes.
    """

    __tablename__ = "buyers"
    id = Column(Uuid, primary_key=True, default=uuid4)
    full_name = Column(String(80), nullable=False)
    email = Column(String(255))
    phone = Column(String(15), nullable=False)
    city = Column(String(20), nullable=False)
    property_type = Column(String(20), nullable=False)
    bhk = Column(String(10))
    purpose = Column(String(10), nullable=False)
    budget_min = Column(BigInteger)
    budget_max = Column(BigInteger)
    timeline = Column(String(30), nullable=False)
    source = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="NEW")
    notes = Column(Text)
    tags = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list)
    owner_id = Column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)

    owner = relationship("User", back_populates="buyers")
    history = relationship(
        "BuyerHistory",
        back_populates="buyer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BuyerHistory.changed_at.desc()",
    )

    __table_args__ = (
        Index("idx_buyers_updated_at", "updated_at"),
        Index("idx_buyers_owner", "owner_id"),
        Index("idx_buyers_city_status", "city", "status"),
        CheckConstraint(enum_check_clause("city", CITIES), name="ck_buyer_city"),
        CheckConstraint(
            enum_check_clause("property_type", PROPERTY_TYPES),
            name="ck_buyer_property_type",
        ),
        CheckConstraint(
            enum_check_clause("status", BUYER_STATUSES), name="ck_buyer_status"
        ),
        CheckConstraint(
            enum_check_clause("timeline", TIMELINES), name="ck_buyer_timeline"
        ),
        CheckConstraint(BHK_CHECK_CLAUSE, name="ck_buyer_bhk_matches_type"),
        CheckConstraint(BUDGET_ORDER_CHECK_CLAUSE, name="ck_buyer_budget_order"),
        CheckConstraint(
            "budget_min IS NULL OR budget_min >= 0", name="ck_buyer_budget_min_nonneg"
        ),
        CheckConstraint(
            "budget_max IS NULL OR budget_max >= 0", name="ck_buyer_budget_max_nonneg"
        ),
    )
