"""CSV import response schemas."""

from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from buyer_intake.schemas.common import RowError, SuccessResponse


class ImportResultOut(SuccessResponse):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    count: int
    buyer_ids: List[UUID] = Field(default_factory=list)


class ImportRejectedOut(BaseModel):
    """Body returned when at least one row failed; nothing was imported."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = False
    detail: str
    type: str = "import_rejected"
    errors: List[str]
    row_errors: List[RowError]
    valid_count: int
    invalid_count: int
