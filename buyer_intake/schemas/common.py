from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class City(str, Enum):
    CHANDIGARH = "CHANDIGARH"
    MOHALI = "MOHALI"
    ZIRAKPUR = "ZIRAKPUR"
    PANCHKULA = "PANCHKULA"
    OTHER = "OTHER"


class PropertyType(str, Enum):
    APARTMENT = "APARTMENT"
    VILLA = "VILLA"
    PLOT = "PLOT"
    OFFICE = "OFFICE"
    RETAIL = "RETAIL"


class Bhk(str, Enum):
    STUDIO = "STUDIO"
    ONE = "ONE"
    TWO = "TWO"
    THREE = "THREE"
    FOUR = "FOUR"


class Purpose(str, Enum):
    BUY = "BUY"
    RENT = "RENT"


class Timeline(str, Enum):
    ZERO_TO_THREE_MONTHS = "ZERO_TO_THREE_MONTHS"
    THREE_TO_SIX_MONTHS = "THREE_TO_SIX_MONTHS"
    MORE_THAN_SIX_MONTHS = "MORE_THAN_SIX_MONTHS"
    EXPLORING = "EXPLORING"


class Source(str, Enum):
    WEBSITE = "WEBSITE"
    REFERRAL = "REFERRAL"
    WALK_IN = "WALK_IN"
    CALL = "CALL"
    OTHER = "OTHER"


class BuyerStatus(str, Enum):
    NEW = "NEW"
    QUALIFIED = "QUALIFIED"
    CONTACTED = "CONTACTED"
    VISITED = "VISITED"
    NEGOTIATION = "NEGOTIATION"
    CONVERTED = "CONVERTED"
    DROPPED = "DROPPED"


class HistoryAction(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    IMPORTED = "IMPORTED"


class FieldError(BaseModel):
    """A single validation failure attached to a wire-level field path."""

    field: str
    message: str


class RowError(BaseModel):
    """All validation failures of one CSV data row (1-based)."""

    row: int
    errors: List[FieldError]

    @property
    def summary(self) -> str:
        joined = ", ".join(f"{e.field}: {e.message}" for e in self.errors)
        return f"Row {self.row}: {joined}"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
    message: Optional[str] = None
