"""
MovieGo API: Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Nothing here needs PostgreSQL or an SMTP relay. HTTP tests run the
       real middleware chain over in-memory stores through httpx's
       ASGITransport; SQL store tests drive a mocked AsyncSession.

Fixture Hierarchy:
    settings ──┐
    stores ────┼── app ── test_client
    mailer ────┘
    mock_db_session ── session_factory
    clock (FakeClock), monotonic (FakeMonotonic)
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Applied BEFORE any moviego import so get_settings() never reads a developer .env
os.environ["STORE_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_COST"] = "4"

from moviego.config import Settings  # noqa: E402
from moviego.main import create_app  # noqa: E402
from moviego.schemas.token import SCOPE_AUTHENTICATION  # noqa: E402
from moviego.schemas.user import User  # noqa: E402
from moviego.services.metrics import MetricsCollector  # noqa: E402
from moviego.store.memory import create_memory_stores  # noqa: E402

TRUSTED_ORIGIN = "https://trusted.example"


# ══════════════════════════════════════════════════════════════════════════
# Test doubles
# ══════════════════════════════════════════════════════════════════════════


class FakeClock:
    """Wall clock for token expiry and timestamps; only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class FakeMonotonic:
    """Monotonic seconds for the rate limiter."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingMailer:
    """Stands in for Mailer; keeps every message instead of sending it."""

    def __init__(self):
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []

    async def send(self, recipient: str, template_name: str, data: Dict[str, Any]) -> None:
        self.sent.append((recipient, template_name, data))

    async def wait_for(self, count: int = 1, timeout: float = 2.0) -> None:
        """Background delivery runs on the supervisor; wait for it to land."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while len(self.sent) < count:
            if loop.time() > deadline:
                raise AssertionError(f"expected {count} mail(s), got {len(self.sent)}")
            await asyncio.sleep(0.01)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def settings():
    """Fast, isolated settings: memory store, cheap bcrypt, limiter off."""
    return Settings(
        _env_file=None,
        store_backend="memory",
        bcrypt_cost=4,
        limiter_enabled=False,
        cors_trusted_origins=TRUSTED_ORIGIN,
        log_level="WARNING",
    )


@pytest.fixture
def stores():
    return create_memory_stores()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def metrics_collector():
    return MetricsCollector()


@pytest.fixture
def app(settings, stores, mailer, metrics_collector):
    return create_app(settings, stores=stores, mailer=mailer, metrics_collector=metrics_collector)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient wired straight to the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/v1/healthcheck")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = row
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def session_factory(mock_db_session):
    """Stands in for async_sessionmaker: every call hands out the same mock session."""
    return MagicMock(return_value=mock_db_session)


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════


async def seed_user(
    stores,
    email: str = "alice@example.com",
    activated: bool = True,
    permissions=("movies:read",),
):
    """
    Insert a user straight into the stores and issue an authentication token.

    Returns (user, bearer_headers). Skips bcrypt and the HTTP flow for tests
    that only care about what happens after authentication.
    """
    user = await stores.users.insert(
        User(name="Alice", email=email, password_hash=b"unused", activated=activated)
    )
    if permissions:
        await stores.permissions.add_for_user(user.id, *permissions)
    token = await stores.tokens.new(user.id, timedelta(hours=24), SCOPE_AUTHENTICATION)
    return user, {"Authorization": f"Bearer {token.plaintext}"}
