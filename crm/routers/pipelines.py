"""Pipeline routes - stages and deals."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..automation.dispatcher import fire_trigger
from ..database import get_db
from ..schemas.common import dump, dump_many, ok
from ..schemas.pipeline import DealCreate, DealRead, DealUpdate, StageCreate, StageRead, StageUpdate
from ..services import pipeline_svc

router = APIRouter(tags=["pipeline"])


@router.get("/api/pipeline-stages")
async def stage_list(db: AsyncSession = Depends(get_db)):
    return ok(dump_many(StageRead, await pipeline_svc.list_stages(db)))


@router.post("/api/pipeline-stages")
async def stage_create(body: StageCreate, db: AsyncSession = Depends(get_db)):
    if not body.name:
        raise HTTPException(status_code=400, detail="Name is required")
    stage = await pipeline_svc.create_stage(db, **body.model_dump())
    return ok(dump(StageRead, stage))


@router.put("/api/pipeline-stages")
async def stage_update(body: StageUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    stage = await pipeline_svc.update_stage(db, body.id, **body.provided("id"))
    return ok(dump(StageRead, stage))


@router.delete("/api/pipeline-stages")
async def stage_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await pipeline_svc.delete_stage(db, id)
    return ok()


# ── Deals ──────────────────────────────────────────────────────────────────

@router.get("/api/deals")
async def deal_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    stage_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    limit: int | None = None,
):
    if id:
        return ok(dump(DealRead, await pipeline_svc.get_deal(db, id)))
    deals = await pipeline_svc.list_deals(db, stage_id=stage_id, contact_id=contact_id, limit=limit)
    return ok(dump_many(DealRead, deals))


@router.post("/api/deals")
async def deal_create(body: DealCreate, db: AsyncSession = Depends(get_db)):
    if not body.title:
        raise HTTPException(status_code=400, detail="Title is required")
    deal = await pipeline_svc.create_deal(db, **body.model_dump())
    return ok(dump(DealRead, deal))


@router.put("/api/deals")
async def deal_update(body: DealUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    previous_stage = (await pipeline_svc.get_deal(db, body.id)).stage_id

    deal = await pipeline_svc.update_deal(db, body.id, **body.provided("id"))
    data = dump(DealRead, deal)

    if "stage_id" in body.model_fields_set and deal.stage_id != previous_stage:
        await fire_trigger(
            db,
            "deal_stage_changed",
            {
                **data,
                "deal_id": data["id"],
                "previous_stage_id": str(previous_stage) if previous_stage else None,
            },
        )
    return ok(data)


@router.delete("/api/deals")
async def deal_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await pipeline_svc.delete_deal(db, id)
    return ok()
