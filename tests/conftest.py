"""Shared test fixtures.

Database tests run against a per-test SQLite file (aiosqlite) with the
schema created from Base.metadata. The mail provider is an
httpx.MockTransport that records every request.
"""

import base64
import json
import uuid
from collections.abc import AsyncGenerator, Iterator
from dataclasses import dataclass

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from newsletter.core.config import Settings
from newsletter.core.database import build_session_factory
from newsletter.core.email import EmailClient
from newsletter.core.rate_limiting import limiter
from newsletter.domain.subscriber_email import SubscriberEmail
from newsletter.main import create_app
from newsletter.models import Base, Subscription
from newsletter.repositories.user_repository import UserRepository
from newsletter.services.credentials import compute_password_hash

# Security: Test-only secrets. Production values come from the environment.
TEST_HMAC_SECRET = "test-hmac-secret-that-is-at-least-32-characters"  # nosec B105
TEST_MAIL_TOKEN = "test-postmark-token"  # nosec B105

TEST_BASE_URL = "http://127.0.0.1:8000"
TEST_MAIL_BASE_URL = "http://mail.example.com"
TEST_SENDER = "newsletter@example.com"

TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
TEST_USERNAME = "publisher"
TEST_PASSWORD = "correct horse battery staple"  # nosec B105


# =============================================================================
# Mail provider double
# =============================================================================


class MockMailServer:
    """Request-recording stand-in for the mail provider HTTP API.

    Attributes:
        requests: Every request received, in order.
        status_code: Status returned for each request.
        fail_with: httpx exception class raised instead of responding
            (e.g. httpx.ReadTimeout, httpx.ConnectError).
        fail_for: When set, only requests to this recipient fail.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.fail_with: type[httpx.TransportError] | None = None
        self.fail_for: str | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_for is not None:
            if json.loads(request.content)["To"] != self.fail_for:
                return httpx.Response(200)
        if self.fail_with is not None:
            raise self.fail_with("simulated provider failure", request=request)
        return httpx.Response(self.status_code)

    @property
    def bodies(self) -> list[dict]:
        """Decoded JSON bodies of every recorded request."""
        return [json.loads(request.content) for request in self.requests]

    @property
    def recipients(self) -> list[str]:
        return [body["To"] for body in self.bodies]


@pytest.fixture
def mail_server() -> MockMailServer:
    """Fresh recording mail provider for each test."""
    return MockMailServer()


@pytest_asyncio.fixture
async def email_client(
    mail_server: MockMailServer,
) -> AsyncGenerator[EmailClient, None]:
    """EmailClient wired to the recording mail provider."""
    client = EmailClient(
        base_url=TEST_MAIL_BASE_URL,
        sender=SubscriberEmail.parse(TEST_SENDER),
        authorization_token=SecretStr(TEST_MAIL_TOKEN),
        timeout=1.0,
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(mail_server.handler)
        ),
    )
    yield client
    await client.aclose()


# =============================================================================
# Settings and database
# =============================================================================


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a per-test SQLite file."""
    return Settings(
        _env_file=None,
        database_url_override=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        base_url=TEST_BASE_URL,
        email_base_url=TEST_MAIL_BASE_URL,
        email_sender=TEST_SENDER,
        email_authorization_token=SecretStr(TEST_MAIL_TOKEN),
        hmac_secret=SecretStr(TEST_HMAC_SECRET),
        # Test client talks plain HTTP
        session_cookie_secure=False,
        rate_limit_enabled=False,
    )


@pytest_asyncio.fixture
async def db_engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create the test database engine and schema."""
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    session_factory = build_session_factory(db_engine)
    async with session_factory() as session:
        yield session
        await session.rollback()


@dataclass(frozen=True)
class PublisherAccount:
    """Provisioned publisher account with its plaintext password."""

    user_id: uuid.UUID
    username: str
    password: str


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> PublisherAccount:
    """Create a publisher account with an Argon2id password hash."""
    await UserRepository.create(
        db_session,
        user_id=TEST_USER_ID,
        username=TEST_USERNAME,
        password_hash=compute_password_hash(SecretStr(TEST_PASSWORD)),
    )
    await db_session.commit()
    return PublisherAccount(
        user_id=TEST_USER_ID, username=TEST_USERNAME, password=TEST_PASSWORD
    )


async def fetch_subscriptions(
    db_session: AsyncSession,
) -> list[tuple[str, str, str]]:
    """Read (email, name, status) of every subscription.

    Column selects bypass the identity map, so rows written by the app are
    seen as stored.
    """
    result = await db_session.execute(
        select(Subscription.email, Subscription.name, Subscription.status)
    )
    return [tuple(row) for row in result.all()]


# =============================================================================
# API fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting for all tests.

    Tests that exercise the limiter turn it back on explicitly.
    """
    original = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = original
    limiter.reset()


@pytest.fixture
def app(settings: Settings, db_engine: AsyncEngine, email_client: EmailClient):
    """Application wired to the test database and mail provider."""
    return create_app(settings, engine=db_engine, email_client=email_client)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client driving the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def logged_in_client(
    client: AsyncClient, test_user: PublisherAccount
) -> AsyncClient:
    """Client holding an authenticated session cookie."""
    response = await client.post(
        "/login",
        data={"username": test_user.username, "password": test_user.password},
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/dashboard"
    return client


def basic_auth_header(username: str, password: str) -> dict[str, str]:
    """Authorization header for HTTP Basic."""
    encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {encoded}"}
