"""Typed audit-diff payload and history response schema."""

from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel
from typing_extensions import Self

from buyer_intake.schemas.common import HistoryAction


class FieldChange(BaseModel):
    """Before/after value of one field.

    ``old`` is only present on UPDATED entries; an unset ``old`` is left
    out of the serialised payload rather than rendered as ``null``.
    """

    model_config = ConfigDict(extra="forbid")

    old: Any = None
    new: Any = None

    @model_serializer(mode="wrap")
    def _omit_unset_old(self, handler):
        data = handler(self)
        if "old" not in self.model_fields_set:
            data.pop("old", None)
        return data


class HistoryDiff(BaseModel):
    """Tagged diff stored in ``buyer_history.diff``."""

    model_config = ConfigDict(extra="forbid")

    action: HistoryAction
    fields: Dict[str, FieldChange]

    @model_validator(mode="after")
    def check_shape_matches_action(self) -> Self:
        for name, change in self.fields.items():
            has_old = "old" in change.model_fields_set
            if self.action == HistoryAction.UPDATED and not has_old:
                raise ValueError(f"UPDATED change for '{name}' is missing 'old'")
            if self.action != HistoryAction.UPDATED and has_old:
                raise ValueError(
                    f"{self.action.value} change for '{name}' must not carry 'old'"
                )
        return self


class HistoryEntryOut(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    buyer_id: UUID
    changed_by: UUID
    changed_at: datetime
    diff: HistoryDiff
