"""Google connection: granted services, token caching and the status routes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from crm.services import calendar_svc, google_svc
from crm.services.google_svc import GoogleServiceNotConnected

SHEETS = "https://www.googleapis.com/auth/spreadsheets"
DRIVE = "https://www.googleapis.com/auth/drive"


def test_granted_services_from_scope_string():
    calendar = " ".join(calendar_svc.SERVICE_SCOPES["calendar"])
    assert calendar_svc.granted_services(None) == ["calendar"]
    assert calendar_svc.granted_services(f"{calendar} {SHEETS}") == ["calendar", "sheets"]
    # Only one of the two calendar scopes: calendar is not usable.
    assert calendar_svc.granted_services(f"{calendar_svc.SERVICE_SCOPES['calendar'][0]} {DRIVE}") == ["drive"]


def test_scopes_for_rejects_unknown_service():
    with pytest.raises(ValueError, match="gmail"):
        calendar_svc.scopes_for(["sheets", "gmail"])


@pytest.mark.asyncio
async def test_connect_enables_granted_services(db: AsyncSession, google_api):
    google_api.token_response = {
        "refresh_token": "rt-9",
        "access_token": "at-9",
        "expires_in": 3600,
        "scope": f"{SHEETS} {DRIVE}",
    }
    integration = await calendar_svc.connect(db, "new-user", "code-1")

    assert integration.scopes == [SHEETS, DRIVE]
    assert integration.sheets_enabled and integration.drive_enabled
    assert not integration.calendar_enabled
    assert not integration.contacts_enabled


@pytest.mark.asyncio
async def test_access_token_cached_until_near_expiry(db: AsyncSession, google_api):
    assert await google_svc.get_access_token(db, "google-user", "sheets") == "at-1"
    assert google_api.requests == []

    integration = await calendar_svc.get_integration(db, "google-user")
    integration.token_expires_at = datetime.now(timezone.utc) + timedelta(minutes=2)
    await db.commit()

    assert await google_svc.get_access_token(db, "google-user", "sheets") == "at-2"
    assert len(google_api.requests) == 1
    await db.refresh(integration)
    assert integration.access_token == "at-2"
    assert google_svc._aware(integration.token_expires_at) > datetime.now(timezone.utc) + timedelta(minutes=50)


@pytest.mark.asyncio
async def test_disabled_service_is_not_connected(db: AsyncSession, google_api):
    await google_svc.update_services(db, "google-user", drive=False)

    with pytest.raises(GoogleServiceNotConnected, match="Google Drive integration not connected"):
        await google_svc.get_access_token(db, "google-user", "drive")
    with pytest.raises(GoogleServiceNotConnected):
        await google_svc.get_access_token(db, "someone-else", "sheets")
    with pytest.raises(ValueError):
        await google_svc.update_services(db, "google-user", gmail=True)

    # The fixture row records no scopes, so only calendar counts as granted.
    with pytest.raises(GoogleServiceNotConnected, match="access was not granted"):
        await google_svc.update_services(db, "google-user", drive=True)
    assert (await google_svc.update_services(db, "google-user", calendar=True)).calendar_enabled


@pytest.mark.asyncio
async def test_status_and_toggle_routes(client: AsyncClient, google_headers):
    resp = await client.get("/api/integrations/google", headers=google_headers)
    data = resp.json()["data"]
    assert data["connected"] is True
    assert data["sheets"] is True

    resp = await client.put("/api/integrations/google", json={"contacts": False}, headers=google_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["contacts"] is False
    assert resp.json()["data"]["drive"] is True


@pytest.mark.asyncio
async def test_status_route_without_connection(client: AsyncClient, make_headers):
    headers = await make_headers("csr")
    resp = await client.get("/api/integrations/google", headers=headers)
    assert resp.json()["data"] == {
        "connected": False,
        "calendar": False,
        "sheets": False,
        "drive": False,
        "contacts": False,
    }

    resp = await client.put("/api/integrations/google", json={"sheets": True}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Google integration not connected"


@pytest.mark.asyncio
async def test_auth_url_for_requested_services(client: AsyncClient, google_headers):
    resp = await client.get(
        "/api/integrations/google",
        params={"action": "auth", "services": "sheets,drive"},
        headers=google_headers,
    )
    url = urlparse(resp.json()["authUrl"])
    assert parse_qs(url.query)["scope"] == [f"{SHEETS} {DRIVE}"]

    resp = await client.get(
        "/api/integrations/google",
        params={"action": "auth", "services": "gmail"},
        headers=google_headers,
    )
    assert resp.status_code == 400
