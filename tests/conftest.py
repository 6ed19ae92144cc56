"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any application import so the global
settings object is built for tests: fast bcrypt, no inbound throttling, no
real SMTP, and a throwaway database path.
"""

import os
import tempfile

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-0123456789abcdef0123456789")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_EXPOSE_RESET_TOKEN", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault(
    "DB_PATH",
    os.path.join(tempfile.mkdtemp(prefix="library-api-tests-"), "library.db"),
)

from typing import Any, Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from app.adapters.email.base import AbstractEmailSender
from app.adapters.email.factory import get_email_sender
from app.adapters.openlibrary.factory import get_openlibrary_client
from app.adapters.openlibrary.http_client import OpenLibraryClient
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.db.database import Database, get_database
from app.main import app
from app.utils.simple_cache import SimpleTTLCache

DEFAULT_PASSWORD = "secret123"


class FakeEmailSender(AbstractEmailSender):
    """Records messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    def send(self, *, to: str, subject: str, html: str, text: str | None = None) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return True

    def last_to(self, address: str) -> dict[str, Any]:
        matching = [message for message in self.sent if message["to"] == address]
        assert matching, f"no email sent to {address}"
        return matching[-1]


class OpenLibraryStub:
    """Route table for httpx.MockTransport keyed by request path.

    Values are ``(status, json_body)`` tuples or callables taking the
    request and returning one.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, body: Any, status: int = 200) -> None:
        self.routes[path] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "notfound"})
        status, body = route(request) if callable(route) else route
        return httpx.Response(status, json=body)


@pytest.fixture
def database(tmp_path) -> Database:
    return Database(tmp_path / "library.db")


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def openlibrary_stub() -> OpenLibraryStub:
    return OpenLibraryStub()


@pytest.fixture
def openlibrary_client(openlibrary_stub: OpenLibraryStub) -> OpenLibraryClient:
    return OpenLibraryClient(
        base_url="https://openlibrary.org",
        covers_url="https://covers.openlibrary.org",
        user_agent="LibraryAPI-tests",
        rate_limiter=InMemoryFixedWindowRateLimiter(limit=5, window_seconds=60, clock=lambda: 1000.0),
        cache=SimpleTTLCache(ttl_seconds=3600, max_entries=64),
        transport=httpx.MockTransport(openlibrary_stub.handler),
    )


@pytest.fixture
def client(
    database: Database,
    email_sender: FakeEmailSender,
    openlibrary_client: OpenLibraryClient,
) -> Iterator[TestClient]:
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_openlibrary_client] = lambda: openlibrary_client
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def create_user(client: TestClient, database: Database) -> Callable[..., dict[str, Any]]:
    """Register (and by default verify) a user; returns its id, email and password."""

    def _create(
        email: str = "reader@example.com",
        *,
        name: str = "Reader",
        password: str = DEFAULT_PASSWORD,
        role: str = "USER",
        verified: bool = True,
    ) -> dict[str, Any]:
        resp = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["userId"]
        if verified:
            with database.connection() as conn:
                conn.execute("UPDATE users SET email_verified = 1 WHERE id = ?", (user_id,))
        return {"id": user_id, "email": email, "password": password, "name": name}

    return _create


@pytest.fixture
def login(client: TestClient) -> Callable[[str, str], dict[str, str]]:
    """Log in and return Authorization headers."""

    def _login(email: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login


@pytest.fixture
def user_headers(create_user, login) -> dict[str, str]:
    user = create_user("reader@example.com", name="Reader")
    return login(user["email"])


@pytest.fixture
def admin_headers(create_user, login) -> dict[str, str]:
    admin = create_user("admin@example.com", name="Admin", role="ADMIN")
    return login(admin["email"])
