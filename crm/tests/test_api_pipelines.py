"""Test pipeline, deal and task API routes."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crm.models.automation import AutomationRun
from crm.models.contact import Contact
from crm.services import automation_svc, pipeline_svc


async def _stage(client: AsyncClient, name: str, order: int) -> str:
    resp = await client.post("/api/pipeline-stages", json={"name": name, "order": order})
    assert resp.status_code == 200
    return resp.json()["data"]["id"]


@pytest.mark.asyncio
async def test_stage_requires_name(client: AsyncClient):
    resp = await client.post("/api/pipeline-stages", json={"order": 1})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Name is required"


@pytest.mark.asyncio
async def test_deal_crud(client: AsyncClient, contact: Contact):
    stage_id = await _stage(client, "Lead", 0)

    resp = await client.post(
        "/api/deals",
        json={"title": "AC tune-up", "contact_id": str(contact.id), "stage_id": stage_id, "value": 149},
    )
    assert resp.status_code == 200
    deal = resp.json()["data"]
    assert deal["stage"]["name"] == "Lead"
    assert deal["contact"]["name"] == "Jane Doe"

    resp = await client.get("/api/deals", params={"stage_id": stage_id})
    assert [d["id"] for d in resp.json()["data"]] == [deal["id"]]

    resp = await client.delete("/api/deals", params={"id": deal["id"]})
    assert resp.json() == {"success": True}


@pytest.mark.asyncio
async def test_deal_probability_validated(client: AsyncClient):
    resp = await client.post("/api/deals", json={"title": "Bad", "probability": 150})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_stage_change_fires_automation(client: AsyncClient, db: AsyncSession):
    lead = await _stage(client, "Lead", 0)
    won = await _stage(client, "Won", 1)
    automation = await automation_svc.create_automation(
        db,
        name="Won follow-up",
        trigger_type="deal_stage_changed",
        trigger_config={"stage_id": won},
        actions=[{"type": "create_task", "config": {"title": "Schedule install for {{title}}"}}],
    )
    deal = await pipeline_svc.create_deal(db, title="Heat pump", stage_id=uuid.UUID(lead))

    # Same stage: no trigger.
    await client.put("/api/deals", json={"id": str(deal.id), "stage_id": lead, "value": 9000})
    # Moving straight to the last stage is allowed and fires the trigger.
    resp = await client.put("/api/deals", json={"id": str(deal.id), "stage_id": won})
    assert resp.status_code == 200
    assert resp.json()["data"]["stage"]["name"] == "Won"

    runs = (
        await db.execute(select(AutomationRun).where(AutomationRun.automation_id == automation.id))
    ).scalars().all()
    assert len(runs) == 1
    assert runs[0].input_data["previous_stage_id"] == lead

    resp = await client.get("/api/tasks", params={"deal_id": str(deal.id)})
    assert [t["title"] for t in resp.json()["data"]] == ["Schedule install for Heat pump"]


@pytest.mark.asyncio
async def test_stage_change_ignores_non_matching_config(client: AsyncClient, db: AsyncSession):
    lead = await _stage(client, "Lead", 0)
    quoted = await _stage(client, "Quoted", 1)
    won = await _stage(client, "Won", 2)
    await automation_svc.create_automation(
        db,
        name="Won only",
        trigger_type="deal_stage_changed",
        trigger_config={"stage_id": won},
        actions=[{"type": "create_task", "config": {"title": "Never"}}],
    )
    deal = await pipeline_svc.create_deal(db, title="Boiler", stage_id=uuid.UUID(lead))

    await client.put("/api/deals", json={"id": str(deal.id), "stage_id": quoted})

    assert (await db.execute(select(AutomationRun))).scalars().all() == []


@pytest.mark.asyncio
async def test_task_completion_fires_once(client: AsyncClient, db: AsyncSession, contact: Contact):
    automation = await automation_svc.create_automation(
        db,
        name="Thank you",
        trigger_type="task_completed",
        actions=[{"type": "create_task", "config": {"title": "Send thank-you for {{title}}"}}],
    )
    resp = await client.post(
        "/api/tasks", json={"title": "Site visit", "contact_id": str(contact.id)}
    )
    task_id = resp.json()["data"]["id"]

    await client.put("/api/tasks", json={"id": task_id, "completed": True})
    await client.put("/api/tasks", json={"id": task_id, "completed": True, "title": "Site visit"})

    runs = (
        await db.execute(select(AutomationRun).where(AutomationRun.automation_id == automation.id))
    ).scalars().all()
    assert len(runs) == 1

    resp = await client.get("/api/tasks", params={"contact_id": str(contact.id), "completed": "false"})
    assert [t["title"] for t in resp.json()["data"]] == ["Send thank-you for Site visit"]


@pytest.mark.asyncio
async def test_activity_records_author(client: AsyncClient, contact: Contact, make_headers):
    headers = await make_headers("csr", email="csr@example.com")
    resp = await client.post(
        "/api/activities",
        json={"type": "note", "title": "Left voicemail", "contact_id": str(contact.id)},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["created_by"] == "csr@example.com"

    resp = await client.post("/api/activities", json={"title": "Missing type"})
    assert resp.status_code == 400
