"""Appliance and appliance type routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.appliance import (
    ApplianceCreate,
    ApplianceRead,
    ApplianceTypeCreate,
    ApplianceTypeRead,
    ApplianceTypeUpdate,
    ApplianceUpdate,
)
from ..schemas.common import dump, dump_many, ok
from ..services import appliance_svc

router = APIRouter(tags=["appliances"])


@router.get("/api/appliance-types")
async def type_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    category: str | None = None,
):
    if id:
        return ok(dump(ApplianceTypeRead, await appliance_svc.get_type(db, id)))
    return ok(dump_many(ApplianceTypeRead, await appliance_svc.list_types(db, category=category)))


@router.post("/api/appliance-types")
async def type_create(body: ApplianceTypeCreate, db: AsyncSession = Depends(get_db)):
    if not body.name or not body.category:
        raise HTTPException(status_code=400, detail="Name and category are required")
    atype = await appliance_svc.create_type(db, name=body.name, category=body.category, icon=body.icon)
    return ok(dump(ApplianceTypeRead, atype))


@router.put("/api/appliance-types")
async def type_update(body: ApplianceTypeUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    atype = await appliance_svc.update_type(db, body.id, **body.provided("id"))
    return ok(dump(ApplianceTypeRead, atype))


@router.delete("/api/appliance-types")
async def type_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await appliance_svc.delete_type(db, id)
    return ok()


# ── Appliances ─────────────────────────────────────────────────────────────

@router.get("/api/appliances")
async def appliance_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
):
    if id:
        return ok(dump(ApplianceRead, await appliance_svc.get_appliance(db, id)))
    rows = await appliance_svc.list_appliances(db, contact_id=contact_id)
    return ok(dump_many(ApplianceRead, rows))


@router.post("/api/appliances")
async def appliance_create(body: ApplianceCreate, db: AsyncSession = Depends(get_db)):
    if not body.contact_id or not body.name or not body.category:
        raise HTTPException(status_code=400, detail="contact_id, name, and category are required")
    appliance = await appliance_svc.create_appliance(db, **body.model_dump())
    return ok(dump(ApplianceRead, appliance))


@router.put("/api/appliances")
async def appliance_update(body: ApplianceUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    appliance = await appliance_svc.update_appliance(db, body.id, **body.provided("id"))
    return ok(dump(ApplianceRead, appliance))


@router.delete("/api/appliances")
async def appliance_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await appliance_svc.delete_appliance(db, id)
    return ok()
