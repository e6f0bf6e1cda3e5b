"""Access tokens and per-service switches for the user's Google connection.

Sheets, Drive and Contacts reuse the refresh token stored by calendar_svc.
Access tokens are cached on the integration row and refreshed when they are
within five minutes of expiry.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.calendar import CalendarIntegration
from . import calendar_svc

log = logging.getLogger(__name__)

SERVICES = tuple(calendar_svc.SERVICE_SCOPES)
SERVICE_LABELS = {
    "calendar": "Google Calendar",
    "sheets": "Google Sheets",
    "drive": "Google Drive",
    "contacts": "Google Contacts",
}
EXPIRY_MARGIN = timedelta(minutes=5)
REQUEST_TIMEOUT = 30.0


class GoogleServiceNotConnected(Exception):
    """The user has no Google connection, or has not enabled this service."""


async def require_integration(db: AsyncSession, user_id: str, service: str) -> CalendarIntegration:
    integration = await calendar_svc.get_integration(db, user_id)
    if integration is None or not integration.is_enabled(service):
        raise GoogleServiceNotConnected(f"{SERVICE_LABELS[service]} integration not connected")
    return integration


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def get_access_token(db: AsyncSession, user_id: str, service: str) -> str:
    integration = await require_integration(db, user_id, service)

    now = datetime.now(timezone.utc)
    expires_at = _aware(integration.token_expires_at)
    if integration.access_token and expires_at and expires_at > now + EXPIRY_MARGIN:
        return integration.access_token

    grant = await calendar_svc.refresh_grant(integration.refresh_token)
    integration.access_token = grant["access_token"]
    integration.token_expires_at = now + timedelta(seconds=int(grant.get("expires_in") or 3600))
    integration.updated_at = func.now()
    await db.commit()
    log.debug("Refreshed Google access token for user %s", user_id)
    return grant["access_token"]


async def api_request(access_token: str, method: str, url: str, **kwargs) -> httpx.Response:
    """Authorized call to a Google REST API; raises httpx.HTTPStatusError on 4xx/5xx."""
    headers = {"Authorization": f"Bearer {access_token}", **kwargs.pop("headers", {})}
    async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
        resp = await client.request(method, url, headers=headers, **kwargs)
        resp.raise_for_status()
        return resp


def integration_status(integration: CalendarIntegration | None) -> dict:
    if integration is None:
        return {"connected": False, **{s: False for s in SERVICES}}
    return {
        "connected": True,
        **{s: integration.is_enabled(s) for s in SERVICES},
        "scopes": integration.scopes or [],
    }


async def update_services(db: AsyncSession, user_id: str, **enabled: bool) -> CalendarIntegration:
    """Switch services on or off.

    Unknown names raise ValueError; a service can only be switched on when
    its scopes were granted at connect time.
    """
    integration = await calendar_svc.get_integration(db, user_id)
    if integration is None:
        raise GoogleServiceNotConnected("Google integration not connected")
    unknown = set(enabled) - set(SERVICES)
    if unknown:
        raise ValueError(f"Unknown Google service: {', '.join(sorted(unknown))}")
    # Rows connected before scopes were recorded only ever had calendar access.
    granted = ["calendar"]
    if integration.scopes:
        granted = calendar_svc.granted_services(" ".join(integration.scopes))
    for service, value in enabled.items():
        if value and service not in granted:
            raise GoogleServiceNotConnected(
                f"{SERVICE_LABELS[service]} access was not granted; reconnect Google with that service"
            )
    for service, value in enabled.items():
        setattr(integration, f"{service}_enabled", bool(value))
    integration.updated_at = func.now()
    await db.commit()
    await db.refresh(integration)
    return integration
