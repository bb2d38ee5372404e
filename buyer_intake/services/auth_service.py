import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from buyer_intake.core.config import settings
from buyer_intake.models.user import User
from buyer_intake.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as seen by the buyer services."""

    user_id: UUID
    email: str
    name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(user_id=user.id, email=user.email, name=user.name)


class CredentialVerifier(Protocol):
    """Single capability: turn an email/password pair into an identity."""

    async def verify(self, email: str, password: str) -> Optional[Identity]:
        ...


class DemoCredentialVerifier:
    """Accepts only the configured demo credential.

    The matching user row is provisioned on first successful login so the
    identity always has an id that buyer records can reference.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        email: str = settings.DEMO_USER_EMAIL,
        password: str = settings.DEMO_USER_PASSWORD,
        name: str = settings.DEMO_USER_NAME,
    ) -> None:
        self._users = user_repo
        self._email = email.lower()
        self._password = password
        self._name = name

    async def verify(self, email: str, password: str) -> Optional[Identity]:
        email_ok = hmac.compare_digest(email.lower().encode(), self._email.encode())
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if not (email_ok and password_ok):
            logger.warning("Failed login attempt for %s", email)
            return None

        user = await self._users.get_by_email(self._email)
        if user is None:
            user = await self._provision()
        return Identity.from_user(user)

    async def _provision(self) -> User:
        try:
            user = await self._users.create(email=self._email, name=self._name)
            await self._users.commit()
        except IntegrityError:
            # A concurrent first login inserted the row first
            await self._users.rollback()
            user = await self._users.get_by_email(self._email)
            if user is None:
                raise
            return user
        logger.info("Provisioned demo user %s", user.id)
        return user
