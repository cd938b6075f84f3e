"""Shared test fixtures."""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

_UPLOAD_DIR = os.environ.get("SPORTSCLUB_UPLOAD_DIR") or tempfile.mkdtemp(prefix="sportsclub_test_uploads_")

# Settings are read once and cached: configure before importing the app.
os.environ.update(
    {
        "SPORTSCLUB_STORAGE_BACKEND": "memory",
        "SPORTSCLUB_REDIS_URL": "",
        "SPORTSCLUB_JWT_SECRET": "test-secret-key-that-is-long-enough-for-hs256",
        "SPORTSCLUB_JWT_ALGORITHM": "HS256",
        "SPORTSCLUB_EMAIL_PROVIDER": "console",
        "SPORTSCLUB_UPLOAD_DIR": _UPLOAD_DIR,
        "SPORTSCLUB_LOG_FORMAT": "console",
        "SPORTSCLUB_OTP_DELIVERY_BACKEND": "background",
    }
)

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from sportsclub.auth.otp import OtpManager  # noqa: E402
from sportsclub.auth.session import SessionIssuer  # noqa: E402
from sportsclub.email.delivery import get_code_delivery  # noqa: E402
from sportsclub.email.service import reset_email_service  # noqa: E402
from sportsclub.main import create_app  # noqa: E402
from sportsclub.storage import Stores  # noqa: E402
from sportsclub.storage.memory import get_memory_stores, reset_memory_stores  # noqa: E402

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
PASSWORD = "correct-horse-battery"


class RecordingDelivery:
    """Code delivery that records instead of emailing."""

    def __init__(self, send_result: bool = True) -> None:
        self.submitted: list[tuple[str, str]] = []
        self.sent: list[tuple[str, str]] = []
        self.send_result = send_result

    async def submit(self, to: str, code: str) -> None:
        self.submitted.append((to, code))

    async def send(self, to: str, code: str) -> bool:
        self.sent.append((to, code))
        return self.send_result

    def last_code(self, to: str) -> str:
        codes = [c for t, c in self.submitted + self.sent if t == to]
        assert codes, f"no code delivered to {to}"
        return codes[-1]


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _reset_state() -> None:
    """Fresh in-memory stores and email service for every test."""
    reset_memory_stores()
    reset_email_service()


@pytest.fixture
def stores() -> Stores:
    return get_memory_stores()


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sessions(stores: Stores) -> SessionIssuer:
    return SessionIssuer(stores.accounts)


@pytest.fixture
def otp_manager(stores: Stores, delivery: RecordingDelivery, sessions: SessionIssuer, clock: FakeClock) -> OtpManager:
    return OtpManager(stores.accounts, delivery, sessions, clock=clock)


@pytest.fixture
def app(delivery: RecordingDelivery) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_code_delivery] = lambda: delivery
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client against the in-memory backend."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def signup_and_verify(
    client: AsyncClient,
    delivery: RecordingDelivery,
    name: str = "Alice",
    email: str = "alice@example.com",
    password: str = PASSWORD,
) -> dict:
    """Register and verify an account through the API. Returns id, email and token."""
    response = await client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    code = delivery.last_code(email)
    response = await client.post("/api/auth/verify-email", json={"email": email, "otp": code})
    assert response.status_code == 200, response.text
    data = response.json()
    return {"id": data["user"]["id"], "email": email, "password": password, "token": data["token"]}


def auth_headers(account: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {account['token']}"}


@pytest_asyncio.fixture
async def alice(client: AsyncClient, delivery: RecordingDelivery) -> dict:
    """A verified account with a session token."""
    return await signup_and_verify(client, delivery)


@pytest_asyncio.fixture
async def bob(client: AsyncClient, delivery: RecordingDelivery) -> dict:
    return await signup_and_verify(client, delivery, name="Bob", email="bob@example.com")
