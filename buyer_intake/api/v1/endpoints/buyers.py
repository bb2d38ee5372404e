from datetime import date
from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Request, Response, UploadFile

from buyer_intake.api.deps import (
    get_buyer_export_service,
    get_buyer_filters,
    get_buyer_import_service,
    get_buyer_service,
    get_current_user,
    get_page_request,
)
from buyer_intake.core.config import settings
from buyer_intake.core.exceptions import InvalidImportFileError
from buyer_intake.core.rate_limit import limiter
from buyer_intake.schemas.buyer import (
    BuyerDetailOut,
    BuyerFilters,
    BuyerListResponse,
    BuyerOut,
    PageRequest,
)
from buyer_intake.schemas.common import SuccessResponse
from buyer_intake.schemas.imports import ImportRejectedOut, ImportResultOut
from buyer_intake.services.auth_service import Identity
from buyer_intake.services.buyer_export_service import BuyerExportService
from buyer_intake.services.buyer_import_service import BuyerImportService
from buyer_intake.services.buyer_service import BuyerService

router = APIRouter(prefix="/buyers", tags=["Buyers"])

_CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}


@router.get("", response_model=BuyerListResponse)
async def list_buyers(
    filters: BuyerFilters = Depends(get_buyer_filters),
    page: PageRequest = Depends(get_page_request),
    service: BuyerService = Depends(get_buyer_service),
    _user: Identity = Depends(get_current_user),
) -> BuyerListResponse:
    """Filtered page of buyers, most recently updated first."""
    result = await service.list_buyers(filters, page)
    return BuyerListResponse(**result)


@router.post("", response_model=BuyerOut, status_code=201)
async def create_buyer(
    payload: Dict[str, Any] = Body(...),
    service: BuyerService = Depends(get_buyer_service),
    user: Identity = Depends(get_current_user),
) -> BuyerOut:
    """Create a buyer owned by the caller.

    The raw body goes straight to the validation engine so every failure
    comes back as a ``{field, message}`` list.
    """
    buyer = await service.create_buyer(payload, user)
    return BuyerOut.model_validate(buyer)


@router.get("/export")
async def export_buyers(
    filters: BuyerFilters = Depends(get_buyer_filters),
    service: BuyerExportService = Depends(get_buyer_export_service),
    _user: Identity = Depends(get_current_user),
) -> Response:
    """Every buyer matching the filters as a CSV attachment."""
    content = await service.export_csv(filters)
    filename = f"buyers-{date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/import",
    response_model=ImportResultOut,
    responses={400: {"model": ImportRejectedOut}},
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_buyers(
    request: Request,
    file: UploadFile = File(...),
    service: BuyerImportService = Depends(get_buyer_import_service),
    user: Identity = Depends(get_current_user),
) -> ImportResultOut:
    """Import up to the configured number of buyers from a CSV upload.

    Rate-limited per client address.  Either every row is imported or
    none is.
    """
    filename = file.filename or ""
    if file.content_type not in _CSV_CONTENT_TYPES and not filename.lower().endswith(
        ".csv"
    ):
        raise InvalidImportFileError("File must be a CSV")

    # One byte past the cap is enough to detect an oversized upload
    content = await file.read(settings.IMPORT_MAX_BYTES + 1)
    result = await service.import_csv(content, user)
    return ImportResultOut(**result)


@router.get("/{buyer_id}", response_model=BuyerDetailOut)
async def get_buyer(
    buyer_id: UUID,
    service: BuyerService = Depends(get_buyer_service),
    _user: Identity = Depends(get_current_user),
) -> BuyerDetailOut:
    """Buyer with owner and its most recent history entries."""
    result = await service.get_buyer(buyer_id)
    return BuyerDetailOut(**result)


@router.put("/{buyer_id}", response_model=BuyerOut)
async def update_buyer(
    buyer_id: UUID,
    payload: Dict[str, Any] = Body(...),
    service: BuyerService = Depends(get_buyer_service),
    user: Identity = Depends(get_current_user),
) -> BuyerOut:
    """Partially update a buyer.

    Send the ``updatedAt`` last read to be protected against overwriting
    someone else's change (409 on mismatch).
    """
    buyer = await service.update_buyer(buyer_id, payload, user)
    return BuyerOut.model_validate(buyer)


@router.delete("/{buyer_id}", response_model=SuccessResponse)
async def delete_buyer(
    buyer_id: UUID,
    service: BuyerService = Depends(get_buyer_service),
    user: Identity = Depends(get_current_user),
) -> SuccessResponse:
    await service.delete_buyer(buyer_id, user)
    return SuccessResponse(message="Buyer deleted successfully")
