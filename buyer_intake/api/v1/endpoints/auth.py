from fastapi import APIRouter, Depends, Request

from buyer_intake.api.deps import get_credential_verifier, get_current_user
from buyer_intake.core.config import settings
from buyer_intake.core.exceptions import AuthenticationError
from buyer_intake.core.rate_limit import limiter
from buyer_intake.core.security import create_access_token
from buyer_intake.schemas.auth import IdentityOut, LoginRequest, TokenResponse
from buyer_intake.services.auth_service import CredentialVerifier, Identity

router = APIRouter(prefix="/auth", tags=["Auth"])


def _identity_out(identity: Identity) -> IdentityOut:
    return IdentityOut(id=identity.user_id, email=identity.email, name=identity.name)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    credentials: LoginRequest,
    verifier: CredentialVerifier = Depends(get_credential_verifier),
) -> TokenResponse:
    """Exchange an email/password pair for a bearer token."""
    identity = await verifier.verify(credentials.email, credentials.password)
    if identity is None:
        raise AuthenticationError("Invalid credentials")

    token = create_access_token(
        {"sub": str(identity.user_id), "email": identity.email}
    )
    return TokenResponse(access_token=token, user=_identity_out(identity))


@router.get("/me", response_model=IdentityOut)
async def me(user: Identity = Depends(get_current_user)) -> IdentityOut:
    return _identity_out(user)
