"""Action executors for automations."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Awaitable, Callable

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.appliance import Appliance
from ..models.contact import Contact
from ..models.pipeline import Deal
from ..models.service import Service
from ..models.task import Task
from ..services import messaging_svc, task_svc
from .context import TriggerContext

log = logging.getLogger(__name__)

ActionHandler = Callable[[dict, TriggerContext, AsyncSession], Awaitable[dict]]

ENTITY_MODELS: dict[str, type] = {
    "contact": Contact,
    "deal": Deal,
    "task": Task,
    "service": Service,
    "appliance": Appliance,
}

_PROTECTED_FIELDS = {"id", "created_at", "updated_at"}


def _as_uuid(value: Any) -> uuid.UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


async def execute_action(
    action_type: str, config: dict, ctx: TriggerContext, db: AsyncSession
) -> dict:
    """Run one action. Failures come back as `{"success": False, "error": ...}`."""
    handler = ACTION_HANDLERS.get(action_type)
    if not handler:
        return {"type": action_type, "success": False, "error": f"Unknown action type: {action_type}"}

    try:
        result = await handler(config or {}, ctx, db)
    except Exception as exc:
        await db.rollback()
        log.warning("Automation action %s failed: %s", action_type, exc, extra={"error": str(exc)})
        result = {"success": False, "error": str(exc)}
    return {"type": action_type, **result}


async def action_send_email(config: dict, ctx: TriggerContext, db: AsyncSession) -> dict:
    to = ctx.resolve_template(config.get("to") or "")
    subject = ctx.resolve_template(config.get("subject") or "")
    body = ctx.resolve_template(config.get("body") or "")
    if not to:
        return {"success": False, "error": "Email recipient not specified"}

    message_id = await messaging_svc.send_email(to, subject, body)
    return {"success": True, "to": to, "message_id": message_id}


async def action_send_sms(config: dict, ctx: TriggerContext, db: AsyncSession) -> dict:
    to = ctx.resolve_template(config.get("to") or "")
    body = ctx.resolve_template(config.get("body") or config.get("message") or "")
    if not to:
        return {"success": False, "error": "SMS recipient not specified"}

    sid = await messaging_svc.send_sms(to, body)
    return {"success": True, "to": to, "sid": sid}


async def action_create_task(config: dict, ctx: TriggerContext, db: AsyncSession) -> dict:
    title = ctx.resolve_template(config.get("title") or "")
    description = ctx.resolve_template(config.get("description") or "")
    contact_id = _as_uuid(config.get("contact_id") or ctx.get("contact_id"))
    deal_id = _as_uuid(config.get("deal_id") or ctx.get("deal_id"))
    due_date = ctx.resolve_template(config["due_date"]) if config.get("due_date") else None
    if not title:
        return {"success": False, "error": "Task title not specified"}

    task = await task_svc.create_task(
        db,
        title=title,
        description=description or None,
        contact_id=contact_id,
        deal_id=deal_id,
        due_date=due_date,
        completed=False,
    )
    return {"success": True, "task_id": str(task.id)}


async def action_update_field(config: dict, ctx: TriggerContext, db: AsyncSession) -> dict:
    entity_type = config.get("entity_type") or ctx.get("entity_type")
    entity_id = _as_uuid(config.get("entity_id") or ctx.get("entity_id") or ctx.get("id"))
    field = config.get("field")
    value = config.get("value", "")
    if isinstance(value, str):
        value = ctx.resolve_template(value)

    if not entity_type or not entity_id or not field:
        return {"success": False, "error": "Entity type, ID, and field are required"}

    model = ENTITY_MODELS.get(entity_type)
    if model is None:
        return {"success": False, "error": f"Unknown entity type: {entity_type}"}
    if field in _PROTECTED_FIELDS or field not in model.__table__.columns:
        return {"success": False, "error": f"Unknown field for {entity_type}: {field}"}

    row = (await db.execute(select(model).where(model.id == entity_id))).scalar_one_or_none()
    if row is None:
        return {"success": False, "error": f"{entity_type} {entity_id} not found"}

    setattr(row, field, value)
    await db.commit()
    return {"success": True, "entity_type": entity_type, "entity_id": str(entity_id), "field": field}


async def action_call_webhook(config: dict, ctx: TriggerContext, db: AsyncSession) -> dict:
    url = ctx.resolve_template(config.get("url") or "")
    payload = config.get("payload")
    payload = ctx.resolve_config(payload) if isinstance(payload, dict) else ctx.to_dict()
    if not url:
        return {"success": False, "error": "Webhook URL not specified"}

    async with httpx.AsyncClient(timeout=settings.webhook_timeout_seconds) as client:
        resp = await client.post(url, json=payload)

    result = {"success": resp.is_success, "status_code": resp.status_code}
    if not resp.is_success:
        result["error"] = f"HTTP {resp.status_code}"
    return result


ACTION_HANDLERS: dict[str, ActionHandler] = {
    "send_email": action_send_email,
    "send_sms": action_send_sms,
    "create_task": action_create_task,
    "update_field": action_update_field,
    "call_webhook": action_call_webhook,
}
