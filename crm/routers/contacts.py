"""Contact routes - CRUD, profile types and categories."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..automation.dispatcher import fire_trigger
from ..database import get_db
from ..schemas.common import dump, dump_many, ok
from ..schemas.contact import (
    CategoryAssignmentCreate,
    CategoryAssignmentRead,
    CategoryCreate,
    CategoryRead,
    ContactCreate,
    ContactRead,
    ContactUpdate,
    ProfileAssignmentCreate,
    ProfileAssignmentRead,
    ProfileAssignmentUpdate,
    ProfileTypeCreate,
    ProfileTypeRead,
)
from ..services import category_svc, contact_svc, profile_type_svc, webhook_svc

router = APIRouter(tags=["contacts"])


# ── Contacts ───────────────────────────────────────────────────────────────

@router.get("/api/contacts")
async def contact_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    search: str | None = None,
    limit: int | None = None,
    offset: int = 0,
):
    if id:
        return ok(dump(ContactRead, await contact_svc.get_contact(db, id)))
    contacts = await contact_svc.list_contacts(db, search=search, offset=offset, limit=limit)
    return ok(dump_many(ContactRead, contacts))


@router.post("/api/contacts")
async def contact_create(body: ContactCreate, db: AsyncSession = Depends(get_db)):
    if not body.name:
        raise HTTPException(status_code=400, detail="Name is required")
    contact = await contact_svc.create_contact(db, **body.provided())
    data = dump(ContactRead, contact)

    await fire_trigger(db, "contact_created", {**data, "contact_id": data["id"]})
    await webhook_svc.enqueue_event(db, "contact.created", data)
    return ok(data)


@router.put("/api/contacts")
async def contact_update(body: ContactUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    contact = await contact_svc.update_contact(db, body.id, **body.provided("id"))
    return ok(dump(ContactRead, contact))


@router.delete("/api/contacts")
async def contact_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await contact_svc.delete_contact(db, id)
    return ok()


# ── Profile types ──────────────────────────────────────────────────────────

@router.get("/api/profile-types")
async def profile_type_list(db: AsyncSession = Depends(get_db)):
    return ok(dump_many(ProfileTypeRead, await profile_type_svc.list_profile_types(db)))


@router.post("/api/profile-types")
async def profile_type_create(body: ProfileTypeCreate, db: AsyncSession = Depends(get_db)):
    if not body.name:
        raise HTTPException(status_code=400, detail="Name is required")
    ptype = await profile_type_svc.create_profile_type(db, **body.model_dump())
    return ok(dump(ProfileTypeRead, ptype))


@router.get("/api/contact-profile-types")
async def profile_assignment_list(
    contact_id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)
):
    if not contact_id:
        raise HTTPException(status_code=400, detail="contact_id is required")
    rows = await profile_type_svc.list_assignments(db, contact_id)
    return ok(dump_many(ProfileAssignmentRead, rows))


@router.post("/api/contact-profile-types")
async def profile_assignment_create(
    body: ProfileAssignmentCreate, db: AsyncSession = Depends(get_db)
):
    if not body.contact_id or not body.profile_type_id:
        raise HTTPException(status_code=400, detail="contact_id and profile_type_id are required")
    assignment = await profile_type_svc.assign_profile_type(
        db, body.contact_id, body.profile_type_id, is_primary=body.is_primary
    )
    return ok(dump(ProfileAssignmentRead, assignment))


@router.put("/api/contact-profile-types")
async def profile_assignment_update(
    body: ProfileAssignmentUpdate, db: AsyncSession = Depends(get_db)
):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    assignment = await profile_type_svc.update_assignment(db, body.id, is_primary=body.is_primary)
    return ok(dump(ProfileAssignmentRead, assignment))


@router.delete("/api/contact-profile-types")
async def profile_assignment_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await profile_type_svc.delete_assignment(db, id)
    return ok()


# ── Categories ─────────────────────────────────────────────────────────────

@router.get("/api/categories")
async def category_list(db: AsyncSession = Depends(get_db)):
    return ok(dump_many(CategoryRead, await category_svc.list_categories(db)))


@router.post("/api/categories")
async def category_create(body: CategoryCreate, db: AsyncSession = Depends(get_db)):
    if not body.name:
        raise HTTPException(status_code=400, detail="Name is required")
    category = await category_svc.create_category(db, **body.model_dump())
    return ok(dump(CategoryRead, category))


@router.get("/api/contact-categories")
async def category_assignment_list(
    contact_id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)
):
    if not contact_id:
        raise HTTPException(status_code=400, detail="contact_id is required")
    rows = await category_svc.list_assignments(db, contact_id)
    return ok(dump_many(CategoryAssignmentRead, rows))


@router.post("/api/contact-categories")
async def category_assignment_create(
    body: CategoryAssignmentCreate, db: AsyncSession = Depends(get_db)
):
    if not body.contact_id or not body.category_id:
        raise HTTPException(status_code=400, detail="contact_id and category_id are required")
    assignment = await category_svc.assign_category(db, body.contact_id, body.category_id)
    return ok(dump(CategoryAssignmentRead, assignment))


@router.delete("/api/contact-categories")
async def category_assignment_delete(
    id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
):
    if not id and not (contact_id and category_id):
        raise HTTPException(status_code=400, detail="ID or contact_id+category_id required")
    await category_svc.remove_assignment(
        db, assignment_id=id, contact_id=contact_id, category_id=category_id
    )
    return ok()
