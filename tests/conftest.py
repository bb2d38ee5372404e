import os

# Settings are read at import time; point them at an in-memory database
# before anything from the package is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import AsyncGenerator, Dict  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from buyer_intake.core.database import get_db  # noqa: E402
from buyer_intake.core.rate_limit import limiter  # noqa: E402
from buyer_intake.core.security import create_access_token  # noqa: E402
from buyer_intake.main import app  # noqa: E402
from buyer_intake.models import Base, User  # noqa: E402
from buyer_intake.repositories import (  # noqa: E402
    BuyerHistoryRepository,
    BuyerRepository,
)
from buyer_intake.services.auth_service import Identity  # noqa: E402
from buyer_intake.services.buyer_service import BuyerService  # noqa: E402

VALID_BUYER = {
    "fullName": "Rajesh Kumar",
    "email": "rajesh.kumar@example.com",
    "phone": "9876543210",
    "city": "CHANDIGARH",
    "propertyType": "APARTMENT",
    "bhk": "TWO",
    "purpose": "BUY",
    "budgetMin": 5000000,
    "budgetMax": 7000000,
    "timeline": "ZERO_TO_THREE_MONTHS",
    "source": "WEBSITE",
    "notes": "Prefers a furnished flat",
    "tags": ["urgent", "family"],
}


def _buyer_payload(**overrides) -> Dict:
    return {**VALID_BUYER, **overrides}


@pytest.fixture
def buyer_payload():
    """Factory for a valid create payload with overrides applied (wire names)."""
    return _buyer_payload


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test, with foreign keys enforced."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def _make_user(session_factory, email: str, name=None) -> Identity:
    async with session_factory() as session:
        user = User(id=uuid4(), email=email, name=name)
        session.add(user)
        await session.commit()
        return Identity.from_user(user)


@pytest_asyncio.fixture
async def owner(session_factory) -> Identity:
    return await _make_user(session_factory, "owner@example.com", "Olivia Owner")


@pytest_asyncio.fixture
async def other_user(session_factory) -> Identity:
    return await _make_user(session_factory, "other@example.com")


@pytest.fixture
def buyer_service(db_session) -> BuyerService:
    return BuyerService(
        buyer_repo=BuyerRepository(db_session),
        history_repo=BuyerHistoryRepository(db_session),
    )


def auth_headers_for(identity: Identity) -> Dict[str, str]:
    token = create_access_token({"sub": str(identity.user_id), "email": identity.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner) -> Dict[str, str]:
    return auth_headers_for(owner)


@pytest.fixture
def other_headers(other_user) -> Dict[str, str]:
    return auth_headers_for(other_user)


@pytest_asyncio.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the app and the test database."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    limiter.enabled = True
    app.dependency_overrides.clear()
