"""Test Google Calendar service and routes."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config import settings
from crm.models.contact import Contact
from crm.services import activity_svc, calendar_svc


@pytest.fixture
def google(monkeypatch: pytest.MonkeyPatch):
    """Configure OAuth credentials and route Google calls to a mock transport."""
    monkeypatch.setattr(settings, "google_client_id", "client-id")
    monkeypatch.setattr(settings, "google_client_secret", "client-secret")

    state = {"requests": [], "token_response": {"refresh_token": "rt-1", "access_token": "at-1", "expires_in": 3600}}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if request.url.host == "oauth2.googleapis.com":
            form = parse_qs(request.content.decode())
            if form["grant_type"] == ["refresh_token"]:
                return httpx.Response(200, json={"access_token": "at-2"})
            return httpx.Response(200, json=state["token_response"])
        return httpx.Response(200, json={"id": "evt-123"})

    real = httpx.AsyncClient
    monkeypatch.setattr(
        calendar_svc.httpx,
        "AsyncClient",
        lambda **kw: real(transport=httpx.MockTransport(handler), **kw),
    )
    return state


def test_auth_url_requires_config():
    with pytest.raises(calendar_svc.CalendarNotConfigured):
        calendar_svc.build_auth_url()


def test_auth_url_params(google):
    url = urlparse(calendar_svc.build_auth_url(state="abc"))
    params = parse_qs(url.query)
    assert url.netloc == "accounts.google.com"
    assert params["client_id"] == ["client-id"]
    assert params["access_type"] == ["offline"]
    assert params["redirect_uri"] == [f"{settings.site_url}/api/calendar/google/callback"]
    assert params["state"] == ["abc"]


@pytest.mark.asyncio
async def test_connect_upserts_integration(db: AsyncSession, google):
    first = await calendar_svc.connect(db, "user-1", "code-1")
    assert first.refresh_token == "rt-1"
    assert first.token_expires_at is not None

    google["token_response"] = {"refresh_token": "rt-2", "access_token": "at-9"}
    second = await calendar_svc.connect(db, "user-1", "code-2")
    assert second.id == first.id
    assert second.refresh_token == "rt-2"


@pytest.mark.asyncio
async def test_connect_without_refresh_token(db: AsyncSession, google):
    google["token_response"] = {"access_token": "at-1"}
    with pytest.raises(calendar_svc.MissingRefreshToken):
        await calendar_svc.connect(db, "user-1", "code-1")
    assert await calendar_svc.get_integration(db, "user-1") is None


@pytest.mark.asyncio
async def test_create_event_requires_connection(db: AsyncSession, google):
    with pytest.raises(calendar_svc.CalendarNotConnected):
        await calendar_svc.create_event(
            db, "user-1", title="Install", start=datetime(2026, 4, 1, 9, tzinfo=timezone.utc)
        )


@pytest.mark.asyncio
async def test_create_event_logs_activity(db: AsyncSession, google, contact: Contact):
    await calendar_svc.connect(db, "user-1", "code-1")

    event_id = await calendar_svc.create_event(
        db,
        "user-1",
        title="Furnace install",
        start=datetime(2026, 4, 1, 9, 0),
        description="Bring ladder",
        contact_id=contact.id,
    )
    assert event_id == "evt-123"

    event_request = google["requests"][-1]
    assert event_request.headers["Authorization"] == "Bearer at-2"
    event = json.loads(event_request.content)
    assert event["summary"] == "Furnace install"
    assert "Contact: Jane Doe" in event["description"]
    assert event["end"]["dateTime"] == "2026-04-01T10:00:00+00:00"

    activities = await activity_svc.list_activities(db, contact_id=contact.id)
    assert [a.title for a in activities] == ["Calendar Event: Furnace install"]
    assert activities[0].type == "meeting"


@pytest.mark.asyncio
async def test_status_route(client: AsyncClient, make_headers, google):
    headers = await make_headers("csr", user_id="cal-user")

    resp = await client.get("/api/calendar/google", headers=headers)
    assert resp.json() == {"success": False, "connected": False}

    resp = await client.post("/api/calendar/google", json={"code": "abc"}, headers=headers)
    assert resp.status_code == 200

    resp = await client.get("/api/calendar/google", headers=headers)
    assert resp.json()["connected"] is True
    assert resp.json()["integration"]["user_id"] == "cal-user"

    await client.delete("/api/calendar/google", headers=headers)
    resp = await client.get("/api/calendar/google", headers=headers)
    assert resp.json()["connected"] is False


@pytest.mark.asyncio
async def test_auth_action_not_configured(client: AsyncClient):
    resp = await client.get("/api/calendar/google", params={"action": "auth"})
    assert resp.status_code == 500
    assert "not configured" in resp.json()["error"]


@pytest.mark.asyncio
async def test_status_requires_user(client: AsyncClient):
    resp = await client.get("/api/calendar/google")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_callback_redirects(client: AsyncClient):
    resp = await client.get("/api/calendar/google/callback", params={"code": "xyz"})
    assert resp.status_code == 307
    assert resp.headers["location"] == "http://test/settings?calendar_code=xyz"

    resp = await client.get("/api/calendar/google/callback")
    assert resp.headers["location"].endswith("error=no_code")

    resp = await client.get("/api/calendar/google/callback", params={"error": "access_denied"})
    assert resp.headers["location"].endswith("error=access_denied")


@pytest.mark.asyncio
async def test_event_route_validation(client: AsyncClient, make_headers):
    headers = await make_headers("csr")
    resp = await client.post("/api/calendar/events", json={"title": "No start"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Title and start date/time are required"

    resp = await client.post(
        "/api/calendar/events",
        json={"title": "Visit", "startDateTime": "2026-04-01T09:00:00Z"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Google Calendar not connected"
