"""API-layer dependency functions.

Re-exports all dependency factories from ``buyer_intake.dependencies`` so
that endpoint modules only need to import from ``buyer_intake.api.deps``.
"""

from buyer_intake.dependencies import (
    # Repository factories
    get_user_repo,
    get_buyer_repo,
    get_history_repo,
    # Authentication
    get_credential_verifier,
    get_current_user,
    # Query parameters
    get_buyer_filters,
    get_page_request,
    # Service factories
    get_buyer_service,
    get_buyer_import_service,
    get_buyer_export_service,
)

__all__ = [
    "get_user_repo",
    "get_buyer_repo",
    "get_history_repo",
    "get_credential_verifier",
    "get_current_user",
    "get_buyer_filters",
    "get_page_request",
    "get_buyer_service",
    "get_buyer_import_service",
    "get_buyer_export_service",
]
