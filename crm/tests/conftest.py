"""Async test fixtures for CRM tests using SQLite."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, unquote

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from crm.config import settings
from crm.database import get_db, get_session_factory
from crm.models.auth import UserRole
from crm.models.base import Base
from crm.models.calendar import CalendarIntegration
from crm.models.contact import Contact
from crm.security.auth import issue_access_token


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def test_settings(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Isolate file storage and disable every external integration."""
    monkeypatch.setattr(settings, "auth_secret", "test-auth-secret")
    monkeypatch.setattr(settings, "encryption_key", "test-encryption-key")
    monkeypatch.setattr(settings, "storage_dir", str(tmp_path / "storage"))
    monkeypatch.setattr(settings, "storage_public_url", "http://test/storage")
    monkeypatch.setattr(settings, "webhook_processor_secret", "processor-secret")
    monkeypatch.setattr(settings, "stripe_secret_key", None)
    monkeypatch.setattr(settings, "twilio_account_sid", None)
    monkeypatch.setattr(settings, "twilio_auth_token", None)
    monkeypatch.setattr(settings, "twilio_from_number", None)
    monkeypatch.setattr(settings, "sendgrid_api_key", None)
    monkeypatch.setattr(settings, "openai_api_key", None)
    monkeypatch.setattr(settings, "google_client_id", None)
    monkeypatch.setattr(settings, "google_client_secret", None)
    return settings


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def contact(db: AsyncSession):
    c = Contact(
        id=uuid.uuid4(),
        name="Jane Doe",
        email="jane@example.com",
        phone="+15550001111",
    )
    db.add(c)
    await db.commit()
    await db.refresh(c)
    return c


@pytest_asyncio.fixture
async def make_headers(db: AsyncSession):
    """Build Authorization headers for a user holding the given role."""

    async def _make(role: str = "admin", user_id: str | None = None, email: str | None = None) -> dict:
        uid = user_id or f"user-{uuid.uuid4().hex[:8]}"
        if role != "customer":
            db.add(UserRole(user_id=uid, role=role))
            await db.commit()
        token = issue_access_token(settings, uid, email or f"{uid}@example.com")
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest_asyncio.fixture
async def admin_headers(make_headers):
    return await make_headers("admin", user_id="admin-user", email="admin@example.com")


@pytest_asyncio.fixture
async def client(engine):
    """HTTPX async test client against the CRM app."""
    from crm.app import app

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


class GoogleMock:
    """Canned Google API responses keyed by method and URL fragment."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: list[tuple[str, str, object]] = []
        self.token_response: dict = {"refresh_token": "rt-1", "access_token": "at-1", "expires_in": 3600}

    def on(self, method: str, fragment: str, response=None, status: int = 200) -> None:
        """`response` is a JSON body, bytes, or a callable taking the request."""
        self.routes.append((method, fragment, response if callable(response) else (status, response)))

    def sent(self, method: str, fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and fragment in unquote(str(r.url))]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "oauth2.googleapis.com":
            form = parse_qs(request.content.decode())
            if form["grant_type"] == ["refresh_token"]:
                return httpx.Response(200, json={"access_token": "at-2", "expires_in": 3600})
            return httpx.Response(200, json=self.token_response)
        url = unquote(str(request.url))
        for method, fragment, response in self.routes:
            if method == request.method and fragment in url:
                if callable(response):
                    return response(request)
                status, body = response
                if isinstance(body, bytes):
                    return httpx.Response(status, content=body)
                return httpx.Response(status, json=body if body is not None else {})
        return httpx.Response(404, json={"error": {"message": "Not found"}})


@pytest_asyncio.fixture
async def google_api(db: AsyncSession, monkeypatch: pytest.MonkeyPatch):
    """User "google-user" connected with every Google service, and the API mock."""
    monkeypatch.setattr(settings, "google_client_id", "client-id")
    monkeypatch.setattr(settings, "google_client_secret", "client-secret")

    db.add(
        CalendarIntegration(
            user_id="google-user",
            provider="google",
            refresh_token="rt-1",
            access_token="at-1",
            token_expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
            scopes=[],
            calendar_enabled=True,
            sheets_enabled=True,
            drive_enabled=True,
            contacts_enabled=True,
        )
    )
    await db.commit()

    mock = GoogleMock()
    real = httpx.AsyncClient
    monkeypatch.setattr(
        httpx, "AsyncClient", lambda **kw: real(transport=httpx.MockTransport(mock.handler), **kw)
    )
    return mock


@pytest_asyncio.fixture
async def google_headers(make_headers, google_api):
    return await make_headers("admin", user_id="google-user")
