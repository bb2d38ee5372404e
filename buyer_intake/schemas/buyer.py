"""Buyer-specific Pydantic schemas (field-set, filters, responses)."""

import re
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from buyer_intake.core.constants import (
    BUDGET_MAX_VALUE,
    DEFAULT_PAGE_SIZE,
    FULL_NAME_MAX_LENGTH,
    FULL_NAME_MIN_LENGTH,
    MAX_PAGE_SIZE,
    NOTES_MAX_LENGTH,
    PHONE_PATTERN,
)
from buyer_intake.schemas.common import (
    Bhk,
    BuyerStatus,
    City,
    PropertyType,
    Purpose,
    Source,
    Timeline,
)
from buyer_intake.schemas.history import HistoryEntryOut

_PHONE_RE = re.compile(PHONE_PATTERN)


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# ---------------------------------------------------------------------------
# Field-set
# ---------------------------------------------------------------------------


class BuyerFields(BaseModel):
    """Complete, normalised buyer field-set.

    Accepts both typed JSON values and the raw strings of a CSV row:
    blank optional values become ``None`` (never zero), numeric text is
    parsed strictly, and a comma-separated ``tags`` string is split.
    Structural rules only; the cross-field rules live in
    :mod:`buyer_intake.services.buyer_validation` so their failures can be
    attached to the ``bhk`` and ``budgetMax`` paths.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    full_name: str = Field(
        ..., min_length=FULL_NAME_MIN_LENGTH, max_length=FULL_NAME_MAX_LENGTH
    )
    email: Optional[EmailStr] = None
    phone: str
    city: City
    property_type: PropertyType
    bhk: Optional[Bhk] = None
    purpose: Purpose
    budget_min: Optional[int] = Field(None, ge=0, le=BUDGET_MAX_VALUE)
    budget_max: Optional[int] = Field(None, ge=0, le=BUDGET_MAX_VALUE)
    timeline: Timeline
    source: Source
    status: BuyerStatus = BuyerStatus.NEW
    notes: Optional[str] = Field(None, max_length=NOTES_MAX_LENGTH)
    tags: List[str] = Field(default_factory=list)

    @field_validator("email", "bhk", "notes", "budget_min", "budget_max", mode="before")
    @classmethod
    def blank_is_absent(cls, value):
        return _blank_to_none(value)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        if not _PHONE_RE.match(value):
            raise PydanticCustomError("phone_format", "Phone must be 10-15 digits")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return value.split(",")
        return value

    @field_validator("tags")
    @classmethod
    def normalise_tags(cls, value: List[str]) -> List[str]:
        """Trim, drop empties, keep first occurrence order."""
        tags: List[str] = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


# ---------------------------------------------------------------------------
# Query schemas
# ---------------------------------------------------------------------------


class BuyerFilters(BaseModel):
    """Supported list/export predicates.

    All supplied predicates are AND-combined; ``search`` matches
    ``fullName``, ``email`` or ``phone`` case-insensitively.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    search: Optional[str] = None
    city: Optional[City] = None
    property_type: Optional[PropertyType] = None
    status: Optional[BuyerStatus] = None
    timeline: Optional[Timeline] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_absent(cls, value):
        return _blank_to_none(value)


class PageRequest(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OwnerOut(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    name: Optional[str] = None
    email: str


class BuyerOut(BaseModel):
    """Stored buyer as returned by the API."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    full_name: str
    email: Optional[str] = None
    phone: str
    city: City
    property_type: PropertyType
    bhk: Optional[Bhk] = None
    purpose: Purpose
    budget_min: Optional[int] = None
    budget_max: Optional[int] = None
    timeline: Timeline
    source: Source
    status: BuyerStatus
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    owner_id: UUID
    created_at: datetime
    updated_at: datetime


class BuyerListItem(BuyerOut):
    owner: OwnerOut


class BuyerDetailOut(BuyerOut):
    """Buyer joined with its owner and most recent history, newest first."""

    owner: OwnerOut
    history: List[HistoryEntryOut] = Field(default_factory=list)


class BuyerListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[BuyerListItem]
    page: int
    page_size: int
    total: int
    pages: int
