"""Structural and cross-field validation of buyer payloads.

The same rules serve single-record creates, partial updates and every row
of a CSV import.  Failures are reported as :class:`FieldError` objects
keyed by the wire-level (camelCase) field path.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from buyer_intake.core.constants import BHK_PROPERTY_TYPES, IMPORT_HEADERS
from buyer_intake.core.exceptions import InvalidBuyerDataError
from buyer_intake.schemas.buyer import BuyerFields
from buyer_intake.schemas.common import FieldError, RowError

logger = logging.getLogger(__name__)

# attribute name -> wire name, e.g. ``budget_max`` -> ``budgetMax``
FIELD_ALIASES: Dict[str, str] = {name: to_camel(name) for name in BuyerFields.model_fields}
WIRE_FIELDS = frozenset(FIELD_ALIASES.values())

VERSION_FIELD = "updatedAt"

_version_adapter = TypeAdapter(Optional[datetime])


def field_errors_from(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic error into ``{field, message}`` pairs."""
    errors: List[FieldError] = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "__root__"
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(FieldError(field=path, message=message))
    return errors


class BuyerValidator:
    """Validation entry points for every buyer write path.

    All methods are pure: they never touch the database and either return
    a normalised :class:`BuyerFields` or report every failing field.
    """

    @staticmethod
    def business_rule_errors(fields: BuyerFields) -> List[FieldError]:
        """Cross-field rules, evaluated on a structurally valid record."""
        errors: List[FieldError] = []

        if fields.property_type in BHK_PROPERTY_TYPES and fields.bhk is None:
            errors.append(
                FieldError(
                    field="bhk",
                    message="BHK is required for Apartment and Villa properties",
                )
            )
        elif fields.property_type not in BHK_PROPERTY_TYPES and fields.bhk is not None:
            errors.append(
                FieldError(
                    field="bhk",
                    message="BHK only applies to Apartment and Villa properties",
                )
            )

        if (
            fields.budget_min is not None
            and fields.budget_max is not None
            and fields.budget_max < fields.budget_min
        ):
            errors.append(
                FieldError(
                    field="budgetMax",
                    message=(
                        "Maximum budget must be greater than or equal to "
                        "minimum budget"
                    ),
                )
            )
        return errors

    @staticmethod
    def check(payload: Mapping[str, Any]) -> Tuple[Optional[BuyerFields], List[FieldError]]:
        """Validate a complete field-set without raising."""
        try:
            fields = BuyerFields.model_validate(dict(payload))
        except ValidationError as exc:
            return None, field_errors_from(exc)
        errors = BuyerValidator.business_rule_errors(fields)
        if errors:
            return None, errors
        return fields, []

    @staticmethod
    def validate_new(payload: Mapping[str, Any]) -> BuyerFields:
        """Validate a create payload; ``status`` defaults to NEW."""
        fields, errors = BuyerValidator.check(payload)
        if errors:
            raise InvalidBuyerDataError(errors)
        return fields

    @staticmethod
    def normalise_keys(changes: Mapping[str, Any]) -> Dict[str, Any]:
        """Map attribute or wire names to wire names; drop unknown keys."""
        normalised: Dict[str, Any] = {}
        for key, value in changes.items():
            if key in WIRE_FIELDS:
                normalised[key] = value
            elif key in FIELD_ALIASES:
                normalised[FIELD_ALIASES[key]] = value
            else:
                logger.debug("Ignoring unknown buyer field %r", key)
        return normalised

    @staticmethod
    def validate_changes(
        current: Mapping[str, Any], changes: Mapping[str, Any]
    ) -> Tuple[BuyerFields, List[str]]:
        """Validate a partial update against the stored record.

        *current* is the stored snapshot keyed by wire name.  Supplied
        fields are overlaid on it and the merged record is validated as a
        whole, so the cross-field rules see the logical result of the
        update (e.g. clearing ``bhk`` on an APARTMENT fails).  Returns the
        merged field-set and the wire names that were supplied.
        """
        supplied = BuyerValidator.normalise_keys(changes)
        merged = {**current, **supplied}
        fields, errors = BuyerValidator.check(merged)
        if errors:
            raise InvalidBuyerDataError(errors)
        return fields, list(supplied)

    @staticmethod
    def split_version(
        payload: Mapping[str, Any],
    ) -> Tuple[Optional[datetime], Dict[str, Any]]:
        """Separate the optimistic-lock token from the field changes."""
        changes = dict(payload)
        raw_version = changes.pop(VERSION_FIELD, None)
        changes.pop("updated_at", None)
        try:
            version = _version_adapter.validate_python(raw_version)
        except ValidationError:
            raise InvalidBuyerDataError(
                [
                    FieldError(
                        field=VERSION_FIELD,
                        message="updatedAt must be an ISO-8601 timestamp",
                    )
                ]
            )
        return version, changes

    @staticmethod
    def validate_csv_row(
        row: Mapping[Optional[str], Any], row_number: int
    ) -> Tuple[Optional[BuyerFields], Optional[RowError]]:
        """Validate one parsed CSV row (all values are text).

        ``row_number`` is 1-based over data rows.  ``csv.DictReader``
        stores surplus cells under the ``None`` key and fills missing
        trailing cells with ``None``.
        """
        extra = row.get(None)
        if extra:
            return None, RowError(
                row=row_number,
                errors=[
                    FieldError(
                        field="row",
                        message=f"Row has {len(extra)} more value(s) than the header",
                    )
                ],
            )

        payload = {header: row.get(header) or "" for header in IMPORT_HEADERS}
        fields, errors = BuyerValidator.check(payload)
        if errors:
            return None, RowError(row=row_number, errors=errors)
        return fields, None
