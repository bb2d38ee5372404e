from typing import List, Optional

from buyer_intake.schemas.common import FieldError, RowError


class BuyerIntakeError(Exception):
    """Base class for all buyer-intake domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except BuyerIntakeError`` clause can catch any domain
    error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class InvalidBuyerDataError(BuyerIntakeError):
    """Raised when a buyer payload fails structural or business-rule checks.

    ``errors`` lists every failing field with its wire-level path so the
    client can render the message next to the right input.
    """

    def __init__(
        self,
        errors: List[FieldError],
        detail: str = "Buyer data failed validation",
    ):
        self.errors = errors
        super().__init__(detail)


class BuyerNotFoundError(BuyerIntakeError):
    """Raised when a requested buyer does not exist."""

    def __init__(self, detail: str = "Buyer not found"):
        super().__init__(detail)


class NotBuyerOwnerError(BuyerIntakeError):
    """Raised when someone other than the owner edits or deletes a buyer."""

    def __init__(self, detail: str = "You can only modify buyers you own"):
        super().__init__(detail)


class StaleBuyerVersionError(BuyerIntakeError):
    """Raised when the client's ``updatedAt`` no longer matches the record."""

    def __init__(
        self,
        detail: str = (
            "Buyer has been modified by another user. "
            "Please refresh and try again."
        ),
    ):
        super().__init__(detail)


class ImportLimitError(BuyerIntakeError):
    """Raised when an import payload exceeds the size or row-count cap."""

    def __init__(self, detail: str = "Import exceeds the allowed limits"):
        super().__init__(detail)


class InvalidImportFileError(BuyerIntakeError):
    """Raised when an import payload cannot be read as a buyer CSV."""

    def __init__(self, detail: str = "Invalid import file"):
        super().__init__(detail)


class ImportValidationError(BuyerIntakeError):
    """Raised when one or more CSV rows fail validation.

    Nothing from the batch is persisted.  ``row_errors`` enumerates every
    invalid row; the counts describe the whole batch.
    """

    def __init__(
        self,
        row_errors: List[RowError],
        valid_count: int,
        invalid_count: int,
        detail: Optional[str] = None,
    ):
        self.row_errors = row_errors
        self.valid_count = valid_count
        self.invalid_count = invalid_count
        super().__init__(
            detail or f"{invalid_count} row(s) failed validation; nothing imported"
        )


class AuthenticationError(BuyerIntakeError):
    """Raised when a request carries no valid identity."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class PersistenceError(BuyerIntakeError):
    """Raised when the database rejects a write; the transaction is rolled back."""

    def __init__(self, detail: str = "The change could not be saved"):
        super().__init__(detail)
