"""Outbound webhook routes - subscriptions and the delivery processor."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.automation import WebhookCreate, WebhookCreated, WebhookRead, WebhookUpdate
from ..schemas.common import dump, dump_many, ok
from ..security.auth import AuthUser
from ..security.deps import require_permission
from ..security.webhooks import verify_processor_auth
from ..services import audit_svc, webhook_svc

router = APIRouter(tags=["webhooks"])


@router.get("/api/webhooks")
async def webhook_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:read")),
    organization_id: uuid.UUID | None = None,
):
    rows = await webhook_svc.list_webhooks(db, organization_id=organization_id)
    return ok(dump_many(WebhookRead, rows))


@router.post("/api/webhooks")
async def webhook_create(
    body: WebhookCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not body.url or not body.events:
        raise HTTPException(status_code=400, detail="url and events array are required")
    if not webhook_svc.is_valid_url(body.url):
        raise HTTPException(status_code=400, detail="Invalid URL format")

    webhook = await webhook_svc.create_webhook(db, body.url, body.events, body.organization_id)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="webhook",
        resource_id=str(webhook.id),
        changes=body.model_dump(mode="json"),
        request=request,
    )
    # The secret is only ever returned here.
    return ok(dump(WebhookCreated, webhook))


@router.put("/api/webhooks")
async def webhook_update(
    body: WebhookUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not body.id:
        raise HTTPException(status_code=400, detail="id is required")
    if body.url is not None and not webhook_svc.is_valid_url(body.url):
        raise HTTPException(status_code=400, detail="Invalid URL format")
    if "events" in body.model_fields_set and not body.events:
        raise HTTPException(status_code=400, detail="events must be a non-empty array")

    webhook = await webhook_svc.update_webhook(db, body.id, **body.provided("id"))
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="update",
        resource_type="webhook",
        resource_id=str(body.id),
        changes=body.model_dump(mode="json", exclude_unset=True, exclude={"id"}),
        request=request,
    )
    return ok(dump(WebhookRead, webhook))


@router.delete("/api/webhooks")
async def webhook_delete(
    request: Request,
    id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not id:
        raise HTTPException(status_code=400, detail="id is required")
    await webhook_svc.delete_webhook(db, id)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="delete",
        resource_type="webhook",
        resource_id=str(id),
        changes={},
        request=request,
    )
    return ok()


@router.api_route("/api/webhooks/process", methods=["GET", "POST"])
async def webhook_process(request: Request, db: AsyncSession = Depends(get_db)):
    verify_processor_auth(request)
    result = await webhook_svc.process_deliveries(db)
    return ok(result)
