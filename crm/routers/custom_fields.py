"""Custom field definition and value routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import dump, dump_many, ok
from ..schemas.custom_field import (
    FieldDefinitionCreate,
    FieldDefinitionRead,
    FieldDefinitionUpdate,
    FieldValueRead,
    FieldValueUpsert,
)
from ..services import custom_field_svc

router = APIRouter(tags=["custom-fields"])


@router.get("/api/custom-fields")
async def definition_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    category: str | None = None,
):
    if id:
        return ok(dump(FieldDefinitionRead, await custom_field_svc.get_definition(db, id)))
    rows = await custom_field_svc.list_definitions(db, category=category)
    return ok(dump_many(FieldDefinitionRead, rows))


@router.post("/api/custom-fields")
async def definition_create(body: FieldDefinitionCreate, db: AsyncSession = Depends(get_db)):
    if not body.name or not body.type:
        raise HTTPException(status_code=400, detail="Name and type are required")
    data = body.model_dump()
    data["category"] = data.get("category") or "General"
    defn = await custom_field_svc.create_definition(db, **data)
    return ok(dump(FieldDefinitionRead, defn))


@router.put("/api/custom-fields")
async def definition_update(body: FieldDefinitionUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    defn = await custom_field_svc.update_definition(db, body.id, **body.provided("id"))
    return ok(dump(FieldDefinitionRead, defn))


@router.delete("/api/custom-fields")
async def definition_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await custom_field_svc.delete_definition(db, id)
    return ok()


# ── Values ─────────────────────────────────────────────────────────────────

@router.get("/api/custom-field-values")
async def value_list(contact_id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not contact_id:
        raise HTTPException(status_code=400, detail="contact_id is required")
    rows = await custom_field_svc.get_values_for_contact(db, contact_id)
    return ok(dump_many(FieldValueRead, rows))


@router.post("/api/custom-field-values")
async def value_upsert(body: FieldValueUpsert, db: AsyncSession = Depends(get_db)):
    if not body.contact_id or not body.field_definition_id:
        raise HTTPException(
            status_code=400, detail="contact_id and field_definition_id are required"
        )
    cfv = await custom_field_svc.set_value(
        db, body.contact_id, body.field_definition_id, body.value
    )
    return ok(dump(FieldValueRead, cfv))


@router.delete("/api/custom-field-values")
async def value_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await custom_field_svc.delete_value(db, id)
    return ok()
