"""Outbound webhook queue, signing and processor tests."""

from __future__ import annotations

import json

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config import settings
from crm.models.webhook import WebhookDelivery, WebhookLog
from crm.security.webhooks import generate_secret, sign_payload, verify_signature
from crm.services import webhook_svc


@pytest.fixture
def receiver(monkeypatch: pytest.MonkeyPatch):
    """Route the processor's HTTP client to an in-memory receiver."""
    state = {"requests": [], "status": 200}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return httpx.Response(state["status"], text="ok" if state["status"] < 400 else "boom")

    real = httpx.AsyncClient
    monkeypatch.setattr(
        webhook_svc.httpx,
        "AsyncClient",
        lambda **kw: real(transport=httpx.MockTransport(handler), **kw),
    )
    return state


def test_signature_helpers():
    secret = generate_secret()
    assert len(secret) == 64
    body = '{"a":1}'
    sig = sign_payload(body, secret)
    assert sig == sign_payload(body.encode(), secret)
    assert verify_signature(body, secret, sig)
    assert not verify_signature(body, secret, "deadbeef")
    assert not verify_signature(body, secret, None)


def test_backoff_is_capped():
    assert webhook_svc.backoff_seconds(0) == 60
    assert webhook_svc.backoff_seconds(1) == 120
    assert webhook_svc.backoff_seconds(2) == 240
    assert webhook_svc.backoff_seconds(3) == 300
    assert webhook_svc.backoff_seconds(10) == 300


def test_url_validation():
    assert webhook_svc.is_valid_url("https://example.com/hook")
    assert not webhook_svc.is_valid_url("ftp://example.com")
    assert not webhook_svc.is_valid_url("not a url")
    assert not webhook_svc.is_valid_url(None)


@pytest.mark.asyncio
async def test_enqueue_only_for_subscribers(db: AsyncSession):
    await webhook_svc.create_webhook(db, "https://a.example.com", ["service.created"])
    await webhook_svc.create_webhook(db, "https://b.example.com", ["contact.created"])
    inactive = await webhook_svc.create_webhook(db, "https://c.example.com", ["service.created"])
    await webhook_svc.update_webhook(db, inactive.id, active=False)

    deliveries = await webhook_svc.enqueue_event(db, "service.created", {"id": "s1"})
    assert len(deliveries) == 1
    assert deliveries[0].status == "pending"
    assert await webhook_svc.enqueue_event(db, "appliance.created", {}) == []


@pytest.mark.asyncio
async def test_successful_delivery_is_signed(db: AsyncSession, receiver):
    webhook = await webhook_svc.create_webhook(db, "https://hooks.example.com/in", ["service.created"])
    await webhook_svc.enqueue_event(db, "service.created", {"id": "s1", "title": "Leaky faucet"})

    result = await webhook_svc.process_deliveries(db)
    assert result == {"processed": 1, "failed": 0}

    request = receiver["requests"][0]
    body = request.content.decode()
    assert json.loads(body) == {"id": "s1", "title": "Leaky faucet"}
    assert request.headers["X-Webhook-Event"] == "service.created"
    assert request.headers["X-Webhook-Id"] == str(webhook.id)
    assert verify_signature(body, webhook.secret, request.headers["X-Webhook-Signature"])

    delivery = (await db.execute(select(WebhookDelivery))).scalar_one()
    assert delivery.status == "delivered"
    assert delivery.response_status == 200
    assert delivery.delivered_at is not None

    log_row = (await db.execute(select(WebhookLog))).scalar_one()
    assert log_row.response_status == 200
    assert log_row.error_message is None


@pytest.mark.asyncio
async def test_failed_delivery_backs_off(db: AsyncSession, receiver):
    receiver["status"] = 500
    await webhook_svc.create_webhook(db, "https://hooks.example.com/in", ["contact.created"])
    await webhook_svc.enqueue_event(db, "contact.created", {"id": "c1"})

    result = await webhook_svc.process_deliveries(db)
    assert result == {"processed": 0, "failed": 0}

    delivery = (await db.execute(select(WebhookDelivery))).scalar_one()
    assert delivery.status == "pending"
    assert delivery.retry_count == 1
    assert delivery.error_message == "HTTP 500: boom"

    # Not due yet, so a second pass does nothing.
    await webhook_svc.process_deliveries(db)
    assert len(receiver["requests"]) == 1


@pytest.mark.asyncio
async def test_delivery_fails_at_retry_limit(db: AsyncSession, receiver):
    receiver["status"] = 503
    await webhook_svc.create_webhook(db, "https://hooks.example.com/in", ["contact.created"])
    [delivery] = await webhook_svc.enqueue_event(db, "contact.created", {"id": "c1"})
    delivery.retry_count = settings.webhook_max_retries - 1
    await db.commit()

    result = await webhook_svc.process_deliveries(db)
    assert result == {"processed": 0, "failed": 1}

    await db.refresh(delivery)
    assert delivery.status == "failed"
    assert delivery.retry_count == settings.webhook_max_retries


@pytest.mark.asyncio
async def test_deactivated_webhook_does_not_block_batch(
    db: AsyncSession, receiver, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(settings, "webhook_batch_size", 1)
    paused = await webhook_svc.create_webhook(db, "https://paused.example.com", ["contact.created"])
    await webhook_svc.enqueue_event(db, "contact.created", {"id": "c1"})
    await webhook_svc.update_webhook(db, paused.id, active=False)
    live = await webhook_svc.create_webhook(db, "https://live.example.com", ["contact.created"])
    await webhook_svc.enqueue_event(db, "contact.created", {"id": "c2"})

    result = await webhook_svc.process_deliveries(db)

    assert result == {"processed": 1, "failed": 0}
    assert [r.url.host for r in receiver["requests"]] == ["live.example.com"]
    rows = (await db.execute(select(WebhookDelivery))).scalars().all()
    status = {r.webhook_id: r.status for r in rows}
    assert status == {paused.id: "pending", live.id: "delivered"}


@pytest.mark.asyncio
async def test_processor_requires_secret(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    resp = await client.post("/api/webhooks/process")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Unauthorized"}

    resp = await client.get("/api/webhooks/process", headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401

    resp = await client.get("/api/webhooks/process", headers={"Authorization": "Bearer processor-secret"})
    assert resp.status_code == 200
    assert resp.json()["data"] == {"processed": 0, "failed": 0}

    monkeypatch.setattr(settings, "webhook_processor_secret", "")
    resp = await client.get("/api/webhooks/process", headers={"Authorization": "Bearer processor-secret"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_webhook_routes(client: AsyncClient, admin_headers):
    resp = await client.post("/api/webhooks", json={"url": "https://x.example.com"}, headers=admin_headers)
    assert resp.json()["error"] == "url and events array are required"

    resp = await client.post(
        "/api/webhooks", json={"url": "nope", "events": ["service.created"]}, headers=admin_headers
    )
    assert resp.json()["error"] == "Invalid URL format"

    resp = await client.post(
        "/api/webhooks",
        json={"url": "https://x.example.com/hook", "events": ["service.created"]},
        headers=admin_headers,
    )
    created = resp.json()["data"]
    assert len(created["secret"]) == 64

    resp = await client.get("/api/webhooks", headers=admin_headers)
    listed = resp.json()["data"]
    assert [w["id"] for w in listed] == [created["id"]]
    assert "secret" not in listed[0]

    resp = await client.put(
        "/api/webhooks", json={"id": created["id"], "events": []}, headers=admin_headers
    )
    assert resp.json()["error"] == "events must be a non-empty array"

    resp = await client.put(
        "/api/webhooks", json={"id": created["id"], "active": False}, headers=admin_headers
    )
    assert resp.json()["data"]["active"] is False

    resp = await client.delete("/api/webhooks", params={"id": created["id"]}, headers=admin_headers)
    assert resp.status_code == 200
