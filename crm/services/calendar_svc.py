"""Google OAuth connection (shared by Calendar, Sheets, Drive and Contacts) and calendar events."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

import httpx
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.calendar import CalendarIntegration
from . import activity_svc, contact_svc, pipeline_svc

log = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"

SERVICE_SCOPES: dict[str, tuple[str, ...]] = {
    "calendar": (
        "https://www.googleapis.com/auth/calendar",
        "https://www.googleapis.com/auth/calendar.events",
    ),
    "sheets": ("https://www.googleapis.com/auth/spreadsheets",),
    "drive": ("https://www.googleapis.com/auth/drive",),
    "contacts": ("https://www.googleapis.com/auth/contacts",),
}

DEFAULT_EVENT_LENGTH = timedelta(hours=1)


class CalendarNotConfigured(Exception):
    """Raised when Google OAuth client credentials are missing."""


class CalendarNotConnected(Exception):
    pass


class MissingRefreshToken(Exception):
    pass


def _require_config() -> None:
    if not settings.google_configured:
        raise CalendarNotConfigured(
            "Google Calendar is not configured. Set CRM_GOOGLE_* env vars."
        )


def scopes_for(services) -> list[str]:
    unknown = [s for s in services if s not in SERVICE_SCOPES]
    if unknown:
        raise ValueError(f"Unknown Google service: {', '.join(unknown)}")
    return [scope for s in services for scope in SERVICE_SCOPES[s]]


def granted_services(scope: str | None) -> list[str]:
    """Services whose scopes all appear in a token response `scope` string."""
    if scope is None:
        return ["calendar"]
    granted = set(scope.split())
    return [s for s, needed in SERVICE_SCOPES.items() if granted.issuperset(needed)]


def build_auth_url(state: str | None = None, services=("calendar",)) -> str:
    _require_config()
    scopes = scopes_for(services)
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.calendar_redirect_uri,
        "response_type": "code",
        "scope": " ".join(scopes),
        "access_type": "offline",
        "prompt": "consent",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code(code: str) -> dict:
    """Trade an authorization code for tokens."""
    _require_config()
    async with httpx.AsyncClient() as client:
        resp = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "redirect_uri": settings.calendar_redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        resp.raise_for_status()
        return resp.json()


async def refresh_grant(refresh_token: str) -> dict:
    """Refresh-token grant. Returns the token response (access_token, expires_in)."""
    _require_config()
    async with httpx.AsyncClient() as client:
        resp = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "refresh_token": refresh_token,
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "grant_type": "refresh_token",
            },
        )
        resp.raise_for_status()
        return resp.json()


async def refresh_access_token(refresh_token: str) -> str:
    return (await refresh_grant(refresh_token))["access_token"]


async def insert_event(refresh_token: str, event: dict) -> str:
    """Create an event on the user's primary calendar. Returns the event id."""
    access_token = await refresh_access_token(refresh_token)
    async with httpx.AsyncClient() as client:
        resp = await client.post(
            GOOGLE_EVENTS_URL,
            json=event,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        resp.raise_for_status()
        return resp.json().get("id") or ""


# ── Integrations ───────────────────────────────────────────────────────────

async def get_integration(db: AsyncSession, user_id: str) -> CalendarIntegration | None:
    stmt = (
        select(CalendarIntegration)
        .where(CalendarIntegration.user_id == user_id)
        .where(CalendarIntegration.provider == "google")
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def connect(db: AsyncSession, user_id: str, code: str) -> CalendarIntegration:
    """Exchange the code and upsert the user's integration."""
    tokens = await exchange_code(code)
    if not tokens.get("refresh_token"):
        raise MissingRefreshToken("No refresh token received")

    expires_at = None
    if tokens.get("expires_in"):
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(tokens["expires_in"]))

    stmt = select(CalendarIntegration).where(CalendarIntegration.user_id == user_id)
    integration = (await db.execute(stmt)).scalar_one_or_none()
    if integration is None:
        integration = CalendarIntegration(user_id=user_id, provider="google")
        db.add(integration)
    else:
        integration.updated_at = func.now()
    integration.refresh_token = tokens["refresh_token"]
    integration.access_token = tokens.get("access_token")
    integration.token_expires_at = expires_at
    services = granted_services(tokens.get("scope"))
    integration.scopes = (tokens.get("scope") or "").split()
    for service in SERVICE_SCOPES:
        setattr(integration, f"{service}_enabled", service in services)

    await db.commit()
    await db.refresh(integration)
    log.info("Google connected for user %s (%s)", user_id, ", ".join(services) or "no services")
    return integration


async def disconnect(db: AsyncSession, user_id: str) -> None:
    integration = await get_integration(db, user_id)
    if integration is not None:
        await db.delete(integration)
        await db.commit()


async def create_event(
    db: AsyncSession,
    user_id: str,
    *,
    title: str,
    start: datetime,
    end: datetime | None = None,
    description: str | None = None,
    location: str | None = None,
    contact_id: uuid.UUID | None = None,
    deal_id: uuid.UUID | None = None,
) -> str:
    integration = await get_integration(db, user_id)
    if integration is None:
        raise CalendarNotConnected("Google Calendar not connected")

    text = description or ""
    contact = await contact_svc.find_contact(db, contact_id)
    if contact is not None:
        text += f"\n\nContact: {contact.name}"
        if contact.email:
            text += f"\nEmail: {contact.email}"
        if contact.phone:
            text += f"\nPhone: {contact.phone}"
    deal = await pipeline_svc.find_deal(db, deal_id)
    if deal is not None:
        text += f"\n\nDeal: {deal.title}"
        if deal.value:
            text += f"\nValue: ${deal.value:g}"

    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    end = end or start + DEFAULT_EVENT_LENGTH
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    event = {
        "summary": title,
        "description": text,
        "start": {"dateTime": start.isoformat(), "timeZone": "UTC"},
        "end": {"dateTime": end.isoformat(), "timeZone": "UTC"},
    }
    if location:
        event["location"] = location

    event_id = await insert_event(integration.refresh_token, event)

    if deal_id or contact_id:
        await activity_svc.log_activity(
            db,
            type="meeting",
            title=f"Calendar Event: {title}",
            description=f"Created Google Calendar event: {event_id}",
            deal_id=deal_id,
            contact_id=contact_id,
            created_by=user_id,
        )
    return event_id
