"""create users, buyers and buyer_history

Revision ID: 0001_create_buyer_intake_tables
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from buyer_intake.core.constants import (
    BHK_CHECK_CLAUSE,
    BUDGET_ORDER_CHECK_CLAUSE,
    BUYER_STATUSES,
    CITIES,
    PROPERTY_TYPES,
    TIMELINES,
    enum_check_clause,
)

# revision identifiers, used by Alembic.
revision: str = "0001_create_buyer_intake_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(120)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "buyers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("full_name", sa.String(80), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(15), nullable=False),
        sa.Column("city", sa.String(20), nullable=False),
        sa.Column("property_type", sa.String(20), nullable=False),
        sa.Column("bhk", sa.String(10)),
        sa.Column("purpose", sa.String(10), nullable=False),
        sa.Column("budget_min", sa.BigInteger()),
        sa.Column("budget_max", sa.BigInteger()),
        sa.Column("timeline", sa.String(30), nullable=False),
        sa.Column("source", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="NEW"),
        sa.Column("notes", sa.Text()),
        sa.Column("tags", _JSON, nullable=False),
        sa.Column(
            "owner_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(enum_check_clause("city", CITIES), name="ck_buyer_city"),
        sa.CheckConstraint(
            enum_check_clause("property_type", PROPERTY_TYPES),
            name="ck_buyer_property_type",
        ),
        sa.CheckConstraint(
            enum_check_clause("status", BUYER_STATUSES), name="ck_buyer_status"
        ),
        sa.CheckConstraint(
            enum_check_clause("timeline", TIMELINES), name="ck_buyer_timeline"
        ),
        sa.CheckConstraint(BHK_CHECK_CLAUSE, name="ck_buyer_bhk_matches_type"),
        sa.CheckConstraint(BUDGET_ORDER_CHECK_CLAUSE, name="ck_buyer_budget_order"),
        sa.CheckConstraint(
            "budget_min IS NULL OR budget_min >= 0", name="ck_buyer_budget_min_nonneg"
        ),
        sa.CheckConstraint(
            "budget_max IS NULL OR budget_max >= 0", name="ck_buyer_budget_max_nonneg"
        ),
    )
    # list/export ordering and the common filter combinations
    op.create_index("idx_buyers_updated_at", "buyers", ["updated_at"])
    op.create_index("idx_buyers_owner", "buyers", ["owner_id"])
    op.create_index("idx_buyers_city_status", "buyers", ["city", "status"])

    op.create_table(
        "buyer_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "buyer_id",
            sa.Uuid(),
            sa.ForeignKey("buyers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "changed_by",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("diff", _JSON, nullable=False),
    )
    op.create_index(
        "idx_buyer_history_buyer_changed",
        "buyer_history",
        ["buyer_id", "changed_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_buyer_history_buyer_changed", table_name="buyer_history")
    op.drop_table("buyer_history")
    op.drop_index("idx_buyers_city_status", table_name="buyers")
    op.drop_index("idx_buyers_owner", table_name="buyers")
    op.drop_index("idx_buyers_updated_at", table_name="buyers")
    op.drop_table("buyers")
    op.drop_table("users")
