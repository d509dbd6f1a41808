"""
Pytest configuration and fixtures for the account service tests.
"""

import os
from dataclasses import dataclass
from typing import AsyncGenerator, Callable, Dict, List, Optional

# Required settings must be present before the service modules are imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "30")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from account_service.app import app as fastapi_app
from account_service.database import Base, get_db
from account_service.errors import NotificationError
from account_service.notifications import EmailSender, get_email_sender
from account_service.security import create_token_for_user

STRONG_PASSWORD = "Str0ng!Pass"
OTHER_STRONG_PASSWORD = "An0ther!Secret"


@dataclass
class SentEmail:
    address: str
    subject: str
    body: str


class RecordingEmailSender(EmailSender):
    """Email sender that keeps messages in memory instead of delivering them."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: List[SentEmail] = []
        self.error: Optional[str] = None

    async def send_message(self, address: str, subject: str, body: str) -> None:
        if self.error is not None:
            raise NotificationError(self.error)
        self.sent.append(SentEmail(address, subject, body))


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def async_engine():
    """In-memory database shared by every connection of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide database session for service tests."""
    async with session_factory() as session:
        yield session


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest_asyncio.fixture
async def app(session_factory, email_sender):
    """FastAPI application wired to the test database and email sender."""

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _get_test_db
    fastapi_app.dependency_overrides[get_email_sender] = lambda: email_sender

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def auth_headers() -> Callable[[int, str], Dict[str, str]]:
    """Build an Authorization header for a user id and email."""

    def _headers(user_id: int, email: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_token_for_user(user_id, email)}"}

    return _headers


@pytest_asyncio.fixture
async def registered_user(client, email_sender) -> dict:
    """A user registered and logged in through the API."""
    email = "reader@books.org"
    response = await client.post(
        "/api/user", json={"email": email, "password": STRONG_PASSWORD}
    )
    assert response.status_code == 200

    response = await client.post(
        "/api/user/login", json={"email": email, "password": STRONG_PASSWORD}
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    users = (await client.get("/api/user/users")).json()
    user_id = next(user["id"] for user in users if user["email"] == email)

    email_sender.sent.clear()
    return {
        "id": user_id,
        "email": email,
        "password": STRONG_PASSWORD,
        "headers": {"Authorization": f"Bearer {token}"},
    }
