import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from buyer_intake.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from buyer_intake.core.database import get_db
from buyer_intake.core.exceptions import AuthenticationError, InvalidBuyerDataError
from buyer_intake.core.security import decode_access_token
from buyer_intake.repositories.buyer_repository import BuyerRepository
from buyer_intake.repositories.history_repository import BuyerHistoryRepository
from buyer_intake.repositories.user_repository import UserRepository
from buyer_intake.schemas.buyer import BuyerFilters, PageRequest
from buyer_intake.services.auth_service import (
    CredentialVerifier,
    DemoCredentialVerifier,
    Identity,
)
from buyer_intake.services.buyer_export_service import BuyerExportService
from buyer_intake.services.buyer_import_service import BuyerImportService
from buyer_intake.services.buyer_service import BuyerService
from buyer_intake.services.buyer_validation import field_errors_from

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_user_repo(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def get_buyer_repo(db: AsyncSession = Depends(get_db)) -> BuyerRepository:
    return BuyerRepository(db)


async def get_history_repo(
    db: AsyncSession = Depends(get_db),
) -> BuyerHistoryRepository:
    return BuyerHistoryRepository(db)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


async def get_credential_verifier(
    user_repo: UserRepository = Depends(get_user_repo),
) -> CredentialVerifier:
    """Swap this dependency to plug in a real identity provider."""
    return DemoCredentialVerifier(user_repo)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user_repo: UserRepository = Depends(get_user_repo),
) -> Identity:
    """Resolve the bearer token to the calling identity.

    Raises:
        AuthenticationError: If the token is missing, invalid, expired,
            or names a user that no longer exists.
    """
    if credentials is None:
        raise AuthenticationError()

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError("Invalid token payload")

    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return Identity.from_user(user)


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------


async def get_buyer_filters(
    search: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    status: Optional[str] = Query(None),
    timeline: Optional[str] = Query(None),
) -> BuyerFilters:
    """Build the filter model; blank parameters count as not supplied."""
    try:
        return BuyerFilters(
            search=search,
            city=city,
            property_type=property_type,
            status=status,
            timeline=timeline,
        )
    except ValidationError as exc:
        raise InvalidBuyerDataError(field_errors_from(exc), "Invalid filter parameters")


async def get_page_request(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
) -> PageRequest:
    return PageRequest(page=page, page_size=page_size)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_buyer_service(
    buyer_repo: BuyerRepository = Depends(get_buyer_repo),
    history_repo: BuyerHistoryRepository = Depends(get_history_repo),
) -> BuyerService:
    """Build a :class:`BuyerService` with injected repositories."""
    return BuyerService(buyer_repo=buyer_repo, history_repo=history_repo)


async def get_buyer_import_service(
    buyer_service: BuyerService = Depends(get_buyer_service),
) -> BuyerImportService:
    return BuyerImportService(buyer_service=buyer_service)


async def get_buyer_export_service(
    buyer_repo: BuyerRepository = Depends(get_buyer_repo),
) -> BuyerExportService:
    return BuyerExportService(buyer_repo=buyer_repo)
