import csv
import io
import logging
from typing import Any, Dict, List, Optional, Tuple

from buyer_intake.core.config import settings
from buyer_intake.core.constants import IMPORT_HEADERS
from buyer_intake.core.exceptions import (
    ImportLimitError,
    ImportValidationError,
    InvalidImportFileError,
)
from buyer_intake.schemas.buyer import BuyerFields
from buyer_intake.schemas.common import RowError
from buyer_intake.services.auth_service import Identity
from buyer_intake.services.buyer_service import BuyerService
from buyer_intake.services.buyer_validation import BuyerValidator

logger = logging.getLogger(__name__)

Row = Dict[Optional[str], Any]


def _human_size(num_bytes: int) -> str:
    if num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)} MB"
    return f"{num_bytes} bytes"


class BuyerImportService:
    """All-or-nothing CSV ingestion.

    Pipeline: size cap → parse (header check, row cap) → validate every
    row → commit the whole batch, or reject it with every row error and
    write nothing.
    """

    def __init__(
        self,
        buyer_service: BuyerService,
        max_rows: int = settings.IMPORT_MAX_ROWS,
        max_bytes: int = settings.IMPORT_MAX_BYTES,
    ) -> None:
        self._buyer_service = buyer_service
        self._max_rows = max_rows
        self._max_bytes = max_bytes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def import_csv(self, content: bytes, actor: Identity) -> Dict[str, Any]:
        """Import a buyer CSV owned by *actor*.

        Returns a dict suitable for building ``ImportResultOut``.

        Raises:
            ImportLimitError: If the payload is too large or has too many rows.
            InvalidImportFileError: If the payload is not a usable buyer CSV.
            ImportValidationError: If any row is invalid (nothing persisted).
            PersistenceError: If the batch write fails (nothing persisted).
        """
        if len(content) > self._max_bytes:
            raise ImportLimitError(f"File size must be at most {_human_size(self._max_bytes)}")

        rows = self.parse_rows(content)
        batch, row_errors = self.validate_rows(rows)

        if row_errors:
            logger.info(
                "Import by %s rejected: %d invalid of %d rows",
                actor.user_id,
                len(row_errors),
                len(rows),
            )
            raise ImportValidationError(
                row_errors=row_errors,
                valid_count=len(batch),
                invalid_count=len(row_errors),
            )

        buyers = await self._buyer_service.import_buyers(batch, actor)
        return {
            "message": f"Successfully imported {len(buyers)} buyers",
            "count": len(buyers),
            "buyer_ids": [buyer.id for buyer in buyers],
        }

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def parse_rows(self, content: bytes) -> List[Row]:
        """Decode and split the CSV, enforcing headers and the row cap."""
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise InvalidImportFileError("CSV file must be UTF-8 encoded")

        reader = csv.DictReader(io.StringIO(text))
        try:
            header = reader.fieldnames
            if not header:
                raise InvalidImportFileError("CSV file is empty; a header row is required")
            self._check_header(header)

            rows: List[Row] = []
            for row in reader:
                rows.append(row)
                if len(rows) > self._max_rows:
                    raise ImportLimitError(
                        f"Maximum {self._max_rows} rows allowed per import"
                    )
        except csv.Error as exc:
            raise InvalidImportFileError(f"Malformed CSV: {exc}")

        if not rows:
            raise InvalidImportFileError("CSV file contains no data rows")
        return rows

    @staticmethod
    def _check_header(header: List[str]) -> None:
        missing = [name for name in IMPORT_HEADERS if name not in header]
        unexpected = [name for name in header if name not in IMPORT_HEADERS]
        duplicated = sorted({name for name in header if header.count(name) > 1})
        if not (missing or unexpected or duplicated):
            return

        problems = []
        if missing:
            problems.append(f"missing: {', '.join(missing)}")
        if unexpected:
            problems.append(f"unexpected: {', '.join(unexpected)}")
        if duplicated:
            problems.append(f"duplicated: {', '.join(duplicated)}")
        raise InvalidImportFileError(
            f"CSV headers must be exactly {','.join(IMPORT_HEADERS)} "
            f"({'; '.join(problems)})"
        )

    @staticmethod
    def validate_rows(rows: List[Row]) -> Tuple[List[BuyerFields], List[RowError]]:
        """Validate every row; never stops at the first failure."""
        batch: List[BuyerFields] = []
        row_errors: List[RowError] = []
        for row_number, row in enumerate(rows, start=1):
            fields, error = BuyerValidator.validate_csv_row(row, row_number)
            if error is not None:
                row_errors.append(error)
            else:
                batch.append(fields)
        return batch, row_errors
