"""Outbound webhooks: subscriptions, delivery queue and the batch processor."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

import httpx
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.webhook import Webhook, WebhookDelivery, WebhookLog
from ..security.webhooks import generate_secret, sign_payload

log = logging.getLogger(__name__)

WEBHOOK_EVENTS = ("service.created", "contact.created")


def is_valid_url(url: str | None) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def backoff_seconds(retry_count: int) -> int:
    """Exponential backoff in seconds, capped at five minutes."""
    return min(300, (2 ** retry_count) * 60)


# ── Subscriptions ──────────────────────────────────────────────────────────

async def list_webhooks(
    db: AsyncSession, *, organization_id: uuid.UUID | None = None
) -> list[Webhook]:
    stmt = select(Webhook)
    if organization_id:
        stmt = stmt.where(Webhook.organization_id == organization_id)
    stmt = stmt.order_by(Webhook.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_webhook(db: AsyncSession, webhook_id: uuid.UUID) -> Webhook:
    stmt = select(Webhook).where(Webhook.id == webhook_id)
    return (await db.execute(stmt)).scalar_one()


async def create_webhook(
    db: AsyncSession,
    url: str,
    events: list[str],
    organization_id: uuid.UUID | None = None,
) -> Webhook:
    webhook = Webhook(
        url=url,
        events=events,
        organization_id=organization_id,
        secret=generate_secret(),
        active=True,
    )
    db.add(webhook)
    await db.commit()
    await db.refresh(webhook)
    return webhook


async def update_webhook(db: AsyncSession, webhook_id: uuid.UUID, **kwargs) -> Webhook:
    webhook = await get_webhook(db, webhook_id)
    for key, value in kwargs.items():
        setattr(webhook, key, value)
    webhook.updated_at = func.now()
    await db.commit()
    await db.refresh(webhook)
    return webhook


async def delete_webhook(db: AsyncSession, webhook_id: uuid.UUID) -> None:
    webhook = await get_webhook(db, webhook_id)
    await db.delete(webhook)
    await db.commit()


# ── Delivery queue ─────────────────────────────────────────────────────────

async def enqueue_event(
    db: AsyncSession,
    event_type: str,
    payload: dict,
    organization_id: uuid.UUID | None = None,
) -> list[WebhookDelivery]:
    """Queue a pending delivery for each active webhook subscribed to the event."""
    stmt = select(Webhook).where(Webhook.active.is_(True))
    if organization_id:
        stmt = stmt.where(Webhook.organization_id == organization_id)
    webhooks = [w for w in (await db.execute(stmt)).scalars().all() if w.subscribes_to(event_type)]
    if not webhooks:
        return []

    now = datetime.now(timezone.utc)
    deliveries = [
        WebhookDelivery(
            webhook_id=w.id,
            event_type=event_type,
            payload=payload,
            status="pending",
            retry_count=0,
            next_retry_at=now,
        )
        for w in webhooks
    ]
    db.add_all(deliveries)
    await db.commit()
    log.info("Queued %s for %d webhook(s)", event_type, len(deliveries))
    return deliveries


async def deliver(
    db: AsyncSession,
    client: httpx.AsyncClient,
    webhook: Webhook,
    event_type: str,
    payload: dict | None,
) -> tuple[bool, int | None, str | None]:
    """POST one signed payload and log the attempt. Returns (ok, status, error)."""
    body = json.dumps(payload, separators=(",", ":"))
    headers = {
        "Content-Type": "application/json",
        "X-Webhook-Signature": sign_payload(body, webhook.secret),
        "X-Webhook-Event": event_type,
        "X-Webhook-Id": str(webhook.id),
    }

    status: int | None = None
    response_body: str | None = None
    try:
        resp = await client.post(webhook.url, content=body, headers=headers)
        status = resp.status_code
        response_body = resp.text[:1000]
        error = None if resp.is_success else f"HTTP {status}: {resp.text[:200]}"
    except httpx.HTTPError as exc:
        error = str(exc) or exc.__class__.__name__

    db.add(
        WebhookLog(
            webhook_id=webhook.id,
            event_type=event_type,
            payload=payload,
            response_status=status,
            response_body=response_body,
            error_message=error,
        )
    )
    return error is None, status, error


async def process_deliveries(db: AsyncSession) -> dict[str, int]:
    """Attempt every due pending delivery (one batch).

    Success marks the delivery `delivered`. Failure bumps retry_count and
    reschedules with backoff; at the retry limit the delivery is `failed`.
    Deliveries for deactivated webhooks are left queued and do not count
    against the batch.
    """
    now = datetime.now(timezone.utc)
    stmt = (
        select(WebhookDelivery)
        .join(Webhook, WebhookDelivery.webhook_id == Webhook.id)
        .where(Webhook.active.is_(True))
        .where(WebhookDelivery.status == "pending")
        .where(WebhookDelivery.next_retry_at <= now)
        .order_by(WebhookDelivery.next_retry_at)
        .limit(settings.webhook_batch_size)
    )
    deliveries = list((await db.execute(stmt)).scalars().all())

    processed = 0
    failed = 0
    async with httpx.AsyncClient(timeout=settings.webhook_timeout_seconds) as client:
        for delivery in deliveries:
            webhook = delivery.webhook
            ok, status, error = await deliver(
                db, client, webhook, delivery.event_type, delivery.payload
            )
            delivery.response_status = status

            if ok:
                delivery.status = "delivered"
                delivery.delivered_at = datetime.now(timezone.utc)
                delivery.error_message = None
                processed += 1
            else:
                delivery.retry_count = (delivery.retry_count or 0) + 1
                delivery.error_message = error
                if delivery.retry_count >= settings.webhook_max_retries:
                    delivery.status = "failed"
                    failed += 1
                    log.warning(
                        "Webhook delivery %s failed permanently: %s",
                        delivery.id,
                        error,
                        extra={"delivery_id": str(delivery.id), "webhook_id": str(webhook.id)},
                    )
                else:
                    delivery.next_retry_at = datetime.now(timezone.utc) + timedelta(
                        seconds=backoff_seconds(delivery.retry_count)
                    )
            await db.commit()

    return {"processed": processed, "failed": failed}
