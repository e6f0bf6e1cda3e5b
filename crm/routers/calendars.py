"""Google Calendar routes - OAuth connect/disconnect and event creation."""

from __future__ import annotations

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import dump, ok
from ..schemas.messaging import CalendarCodeExchange, CalendarEventCreate, CalendarIntegrationRead
from ..security.auth import AuthUser
from ..security.deps import get_current_user, require_user
from ..services import calendar_svc
from ..services.calendar_svc import CalendarNotConfigured, CalendarNotConnected, MissingRefreshToken

router = APIRouter(tags=["calendar"])


def _settings_redirect(request: Request, **params: str) -> RedirectResponse:
    url = str(request.base_url).rstrip("/") + "/settings?" + urlencode(params)
    return RedirectResponse(url, status_code=307)


@router.get("/api/calendar/google")
async def google_status(
    db: AsyncSession = Depends(get_db),
    user: AuthUser | None = Depends(get_current_user),
    action: str | None = None,
):
    if action == "auth":
        try:
            return ok(authUrl=calendar_svc.build_auth_url())
        except CalendarNotConfigured as exc:
            raise HTTPException(status_code=500, detail=str(exc))

    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    integration = await calendar_svc.get_integration(db, user.id)
    if integration is None:
        return {"success": False, "connected": False}
    return ok(connected=True, integration=dump(CalendarIntegrationRead, integration))


@router.post("/api/calendar/google")
async def google_connect(
    body: CalendarCodeExchange,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    if not body.code:
        raise HTTPException(status_code=400, detail="Code is required")
    try:
        integration = await calendar_svc.connect(db, user.id, body.code)
    except MissingRefreshToken as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except CalendarNotConfigured as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return ok(dump(CalendarIntegrationRead, integration))


@router.delete("/api/calendar/google")
async def google_disconnect(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    await calendar_svc.disconnect(db, user.id)
    return ok()


@router.get("/api/calendar/google/callback")
async def google_callback(request: Request, code: str | None = None, error: str | None = None):
    """Hand the code to the settings page, which posts it back to connect."""
    if error:
        return _settings_redirect(request, error=error)
    if not code:
        return _settings_redirect(request, error="no_code")
    return _settings_redirect(request, calendar_code=code)


@router.post("/api/calendar/events")
async def event_create(
    body: CalendarEventCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    if not body.title or body.start_date_time is None:
        raise HTTPException(status_code=400, detail="Title and start date/time are required")
    try:
        event_id = await calendar_svc.create_event(
            db,
            user.id,
            title=body.title,
            start=body.start_date_time,
            end=body.end_date_time,
            description=body.description,
            location=body.location,
            contact_id=body.contact_id,
            deal_id=body.deal_id,
        )
    except CalendarNotConnected as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except CalendarNotConfigured as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return ok(eventId=event_id)
