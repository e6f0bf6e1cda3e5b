"""Service (job) and service history routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..automation.dispatcher import fire_trigger
from ..database import get_db
from ..schemas.common import dump, dump_many, ok
from ..schemas.service import (
    HistoryCreate,
    HistoryRead,
    HistoryUpdate,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)
from ..services import service_svc, webhook_svc

router = APIRouter(tags=["services"])


def _trigger_payload(data: dict) -> dict:
    payload = {**data, "service_id": data["id"]}
    if data.get("contact"):
        payload["contact_email"] = data["contact"].get("email")
        payload["contact_phone"] = data["contact"].get("phone")
        payload["contact_name"] = data["contact"].get("name")
    return payload


@router.get("/api/services")
async def service_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    appliance_id: uuid.UUID | None = None,
    status: str | None = None,
):
    if id:
        return ok(dump(ServiceRead, await service_svc.get_service(db, id)))
    rows = await service_svc.list_services(
        db, contact_id=contact_id, appliance_id=appliance_id, status=status
    )
    return ok(dump_many(ServiceRead, rows))


@router.post("/api/services")
async def service_create(body: ServiceCreate, db: AsyncSession = Depends(get_db)):
    if not body.contact_id or not body.title:
        raise HTTPException(status_code=400, detail="contact_id and title are required")
    fields = body.model_dump()
    organization_id = fields.pop("organization_id")

    service = await service_svc.create_service(db, **fields)
    # Serialize before automations run; a failed action rolls the session back.
    data = dump(ServiceRead, service)

    await fire_trigger(db, "service_created", _trigger_payload(data), organization_id)
    await webhook_svc.enqueue_event(db, "service.created", data, organization_id)
    return ok(data)


@router.put("/api/services")
async def service_update(body: ServiceUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    service = await service_svc.update_service(db, body.id, **body.provided("id"))
    data = dump(ServiceRead, service)

    await fire_trigger(db, "service_updated", _trigger_payload(data))
    return ok(data)


@router.delete("/api/services")
async def service_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await service_svc.delete_service(db, id)
    return ok()


# ── History ────────────────────────────────────────────────────────────────

@router.get("/api/service-history")
async def history_list(
    db: AsyncSession = Depends(get_db),
    contact_id: uuid.UUID | None = None,
    appliance_id: uuid.UUID | None = None,
    service_id: uuid.UUID | None = None,
):
    rows = await service_svc.list_history(
        db, contact_id=contact_id, appliance_id=appliance_id, service_id=service_id
    )
    return ok(dump_many(HistoryRead, rows))


@router.post("/api/service-history")
async def history_create(body: HistoryCreate, db: AsyncSession = Depends(get_db)):
    if not body.contact_id or not body.type or not body.description:
        raise HTTPException(
            status_code=400, detail="contact_id, type, and description are required"
        )
    entry = await service_svc.create_history(db, **body.model_dump())
    return ok(dump(HistoryRead, entry))


@router.put("/api/service-history")
async def history_update(body: HistoryUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    entry = await service_svc.update_history(db, body.id, **body.provided("id"))
    return ok(dump(HistoryRead, entry))


@router.delete("/api/service-history")
async def history_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await service_svc.delete_history(db, id)
    return ok()
