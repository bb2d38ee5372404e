import csv
import io
from datetime import datetime, timezone
from typing import Dict, List

from buyer_intake.core.constants import EXPORT_HEADERS
from buyer_intake.models.buyer import Buyer
from buyer_intake.repositories.buyer_repository import BuyerRepository
from buyer_intake.schemas.buyer import BuyerFilters


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. ``2025-01-31T09:15:00.000Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _text(value) -> str:
    return "" if value is None else str(value)


class BuyerExportService:
    """Read-only projection of filtered buyers into CSV rows."""

    def __init__(self, buyer_repo: BuyerRepository) -> None:
        self._buyers = buyer_repo

    @staticmethod
    def project(buyer: Buyer) -> Dict[str, str]:
        """Flatten one buyer (owner must be loaded) into an export row."""
        return {
            "fullName": buyer.full_name,
            "email": _text(buyer.email),
            "phone": buyer.phone,
            "city": buyer.city,
            "propertyType": buyer.property_type,
            "bhk": _text(buyer.bhk),
            "purpose": buyer.purpose,
            "budgetMin": _text(buyer.budget_min),
            "budgetMax": _text(buyer.budget_max),
            "timeline": buyer.timeline,
            "source": buyer.source,
            "notes": _text(buyer.notes),
            "tags": ",".join(buyer.tags or []),
            "status": buyer.status,
            "owner": buyer.owner.display_name,
            "createdAt": format_timestamp(buyer.created_at),
            "updatedAt": format_timestamp(buyer.updated_at),
        }

    async def export_rows(self, filters: BuyerFilters) -> List[Dict[str, str]]:
        """Every matching buyer, most recently updated first."""
        buyers = await self._buyers.list_all(filters)
        return [self.project(buyer) for buyer in buyers]

    async def export_csv(self, filters: BuyerFilters) -> str:
        rows = await self.export_rows(filters)
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=list(EXPORT_HEADERS))
        writer.writeheader()
        writer.writerows(rows)
        return buffer.getvalue()
