from typing import FrozenSet, Tuple

from buyer_intake.schemas.common import (
    BuyerStatus,
    City,
    PropertyType,
    Timeline,
)

CITIES: FrozenSet[str] = frozenset(c.value for c in City)
PROPERTY_TYPES: FrozenSet[str] = frozenset(p.value for p in PropertyType)
BUYER_STATUSES: FrozenSet[str] = frozenset(s.value for s in BuyerStatus)
TIMELINES: FrozenSet[str] = frozenset(t.value for t in Timeline)

# Property types that carry a bedroom classification; bhk must be absent
# for every other type.
BHK_PROPERTY_TYPES: FrozenSet[PropertyType] = frozenset(
    {PropertyType.APARTMENT, PropertyType.VILLA}
)


def enum_check_clause(column: str, values: FrozenSet[str]) -> str:
    """SQL CHECK clause restricting *column* to *values*."""
    return f"{column} IN ({', '.join(repr(v) for v in sorted(values))})"


BHK_CHECK_CLAUSE: str = (
    "(property_type IN ('APARTMENT', 'VILLA') AND bhk IS NOT NULL) "
    "OR (property_type NOT IN ('APARTMENT', 'VILLA') AND bhk IS NULL)"
)
BUDGET_ORDER_CHECK_CLAUSE: str = (
    "budget_min IS NULL OR budget_max IS NULL OR budget_max >= budget_min"
)

FULL_NAME_MIN_LENGTH: int = 2
FULL_NAME_MAX_LENGTH: int = 80
NOTES_MAX_LENGTH: int = 1000
PHONE_PATTERN: str = r"^\d{10,15}$"
# Budgets are stored as BIGINT.
BUDGET_MAX_VALUE: int = 2**63 - 1

# CSV column layout.  Import headers must match exactly; export appends
# the read-only columns.
IMPORT_HEADERS: Tuple[str, ...] = (
    "fullName",
    "email",
    "phone",
    "city",
    "propertyType",
    "bhk",
    "purpose",
    "budgetMin",
    "budgetMax",
    "timeline",
    "source",
    "notes",
    "tags",
)
EXPORT_HEADERS: Tuple[str, ...] = IMPORT_HEADERS + (
    "status",
    "owner",
    "createdAt",
    "updatedAt",
)

DEFAULT_PAGE_SIZE: int = 10
MAX_PAGE_SIZE: int = 100
