"""Test contact API routes."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crm.models.automation import AutomationRun
from crm.models.contact import Contact
from crm.models.webhook import WebhookDelivery
from crm.services import automation_svc, webhook_svc


@pytest.mark.asyncio
async def test_create_contact_requires_name(client: AsyncClient):
    resp = await client.post("/api/contacts", json={"email": "x@example.com"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Name is required"}


@pytest.mark.asyncio
async def test_create_and_fetch_contact(client: AsyncClient):
    resp = await client.post("/api/contacts", json={"name": "Sam Lee", "phone": "+15551234567"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    contact_id = body["data"]["id"]

    resp = await client.get("/api/contacts", params={"id": contact_id})
    assert resp.json()["data"]["name"] == "Sam Lee"
    assert resp.json()["data"]["profile_types"] == []

    resp = await client.get("/api/contacts", params={"search": "sam"})
    assert [c["id"] for c in resp.json()["data"]] == [contact_id]


@pytest.mark.asyncio
async def test_update_contact(client: AsyncClient, contact: Contact):
    resp = await client.put("/api/contacts", json={"id": str(contact.id), "company": "Acme"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["company"] == "Acme"
    assert data["name"] == "Jane Doe"


@pytest.mark.asyncio
async def test_update_contact_requires_id(client: AsyncClient):
    resp = await client.put("/api/contacts", json={"name": "Nobody"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "ID is required"


@pytest.mark.asyncio
async def test_delete_missing_contact_is_server_error(client: AsyncClient):
    resp = await client.delete("/api/contacts", params={"id": str(uuid.uuid4())})
    assert resp.status_code == 500
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_create_contact_fires_trigger_and_queues_webhook(client: AsyncClient, db: AsyncSession):
    automation = await automation_svc.create_automation(
        db,
        name="Welcome",
        trigger_type="contact_created",
        actions=[{"type": "create_task", "config": {"title": "Call {{name}}"}}],
    )
    await webhook_svc.create_webhook(db, "https://hooks.example.com/crm", ["contact.created"])

    resp = await client.post("/api/contacts", json={"name": "Pat Kim"})
    assert resp.status_code == 200

    runs = (
        await db.execute(select(AutomationRun).where(AutomationRun.automation_id == automation.id))
    ).scalars().all()
    assert len(runs) == 1
    assert runs[0].status == "completed"

    deliveries = (await db.execute(select(WebhookDelivery))).scalars().all()
    assert len(deliveries) == 1
    assert deliveries[0].event_type == "contact.created"
    assert deliveries[0].payload["name"] == "Pat Kim"


@pytest.mark.asyncio
async def test_profile_type_assignment_routes(client: AsyncClient, contact: Contact):
    resp = await client.post("/api/profile-types", json={"name": "Homeowner"})
    ptype_id = resp.json()["data"]["id"]

    resp = await client.post(
        "/api/contact-profile-types",
        json={"contact_id": str(contact.id), "profile_type_id": ptype_id, "is_primary": True},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["profile_type"]["name"] == "Homeowner"

    resp = await client.get("/api/contact-profile-types", params={"contact_id": str(contact.id)})
    rows = resp.json()["data"]
    assert len(rows) == 1
    assert rows[0]["is_primary"] is True


@pytest.mark.asyncio
async def test_profile_assignment_requires_ids(client: AsyncClient):
    resp = await client.post("/api/contact-profile-types", json={"is_primary": True})
    assert resp.status_code == 400
    assert resp.json()["error"] == "contact_id and profile_type_id are required"


@pytest.mark.asyncio
async def test_category_assignment_delete_by_pair(client: AsyncClient, contact: Contact):
    resp = await client.post("/api/categories", json={"name": "Commercial"})
    category_id = resp.json()["data"]["id"]
    await client.post(
        "/api/contact-categories",
        json={"contact_id": str(contact.id), "category_id": category_id},
    )

    resp = await client.delete(
        "/api/contact-categories",
        params={"contact_id": str(contact.id), "category_id": category_id},
    )
    assert resp.status_code == 200

    resp = await client.get("/api/contact-categories", params={"contact_id": str(contact.id)})
    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_custom_field_value_upsert_via_api(client: AsyncClient, contact: Contact):
    resp = await client.post("/api/custom-fields", json={"name": "Gate code", "type": "text"})
    assert resp.json()["data"]["category"] == "General"
    field_id = resp.json()["data"]["id"]

    payload = {"contact_id": str(contact.id), "field_definition_id": field_id, "value": 1234}
    first = await client.post("/api/custom-field-values", json=payload)
    second = await client.post("/api/custom-field-values", json={**payload, "value": True})

    assert first.json()["data"]["id"] == second.json()["data"]["id"]
    assert second.json()["data"]["value"] == "true"

    resp = await client.get("/api/custom-field-values", params={"contact_id": str(contact.id)})
    assert len(resp.json()["data"]) == 1
