"""Task and activity routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..automation.dispatcher import fire_trigger
from ..database import get_db
from ..schemas.common import dump, dump_many, ok
from ..schemas.pipeline import ActivityCreate, ActivityRead, TaskCreate, TaskRead, TaskUpdate
from ..security.auth import AuthUser
from ..security.deps import get_current_user
from ..services import activity_svc, task_svc

router = APIRouter(tags=["tasks"])


@router.get("/api/tasks")
async def task_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    deal_id: uuid.UUID | None = None,
    completed: bool | None = None,
    limit: int | None = None,
):
    if id:
        return ok(dump(TaskRead, await task_svc.get_task(db, id)))
    tasks = await task_svc.list_tasks(
        db, contact_id=contact_id, deal_id=deal_id, completed=completed, limit=limit
    )
    return ok(dump_many(TaskRead, tasks))


@router.post("/api/tasks")
async def task_create(body: TaskCreate, db: AsyncSession = Depends(get_db)):
    if not body.title:
        raise HTTPException(status_code=400, detail="Title is required")
    task = await task_svc.create_task(db, **body.model_dump())
    return ok(dump(TaskRead, task))


@router.put("/api/tasks")
async def task_update(body: TaskUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    was_completed = (await task_svc.get_task(db, body.id)).completed

    task = await task_svc.update_task(db, body.id, **body.provided("id"))
    data = dump(TaskRead, task)

    if task.completed and not was_completed:
        await fire_trigger(db, "task_completed", {**data, "task_id": data["id"]})
    return ok(data)


@router.delete("/api/tasks")
async def task_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await task_svc.delete_task(db, id)
    return ok()


# ── Activities ─────────────────────────────────────────────────────────────

@router.get("/api/activities")
async def activity_list(
    db: AsyncSession = Depends(get_db),
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    limit: int = 50,
):
    rows = await activity_svc.list_activities(db, deal_id=deal_id, contact_id=contact_id, limit=limit)
    return ok(dump_many(ActivityRead, rows))


@router.post("/api/activities")
async def activity_create(
    body: ActivityCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthUser | None = Depends(get_current_user),
):
    if not body.type or not body.title:
        raise HTTPException(status_code=400, detail="Type and title are required")
    activity = await activity_svc.log_activity(
        db,
        type=body.type,
        title=body.title,
        description=body.description,
        deal_id=body.deal_id,
        contact_id=body.contact_id,
        created_by=user.display if user else None,
    )
    return ok(dump(ActivityRead, activity))
