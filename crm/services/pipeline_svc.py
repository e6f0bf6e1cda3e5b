"""Pipeline stage and deal service."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.pipeline import Deal, PipelineStage
from . import attachment_svc


# ── Stage CRUD ─────────────────────────────────────────────────────────────

async def list_stages(db: AsyncSession) -> list[PipelineStage]:
    stmt = select(PipelineStage).order_by(PipelineStage.order, PipelineStage.name)
    return list((await db.execute(stmt)).scalars().all())


async def get_stage(db: AsyncSession, stage_id: uuid.UUID) -> PipelineStage:
    stmt = select(PipelineStage).where(PipelineStage.id == stage_id)
    return (await db.execute(stmt)).scalar_one()


async def first_stage(db: AsyncSession) -> PipelineStage | None:
    stmt = select(PipelineStage).order_by(PipelineStage.order).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_stage(db: AsyncSession, **kwargs) -> PipelineStage:
    stage = PipelineStage(**kwargs)
    db.add(stage)
    await db.commit()
    await db.refresh(stage)
    return stage


async def update_stage(db: AsyncSession, stage_id: uuid.UUID, **kwargs) -> PipelineStage:
    stage = await get_stage(db, stage_id)
    for key, value in kwargs.items():
        setattr(stage, key, value)
    stage.updated_at = func.now()
    await db.commit()
    await db.refresh(stage)
    return stage


async def delete_stage(db: AsyncSession, stage_id: uuid.UUID) -> None:
    stage = await get_stage(db, stage_id)
    await db.delete(stage)
    await db.commit()


# ── Deal CRUD ──────────────────────────────────────────────────────────────

async def list_deals(
    db: AsyncSession,
    *,
    stage_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    limit: int | None = None,
) -> list[Deal]:
    stmt = select(Deal)
    if stage_id:
        stmt = stmt.where(Deal.stage_id == stage_id)
    if contact_id:
        stmt = stmt.where(Deal.contact_id == contact_id)
    stmt = stmt.order_by(Deal.created_at.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def get_deal(db: AsyncSession, deal_id: uuid.UUID) -> Deal:
    stmt = select(Deal).where(Deal.id == deal_id)
    return (await db.execute(stmt)).scalar_one()


async def find_deal(db: AsyncSession, deal_id: uuid.UUID | None) -> Deal | None:
    if deal_id is None:
        return None
    stmt = select(Deal).where(Deal.id == deal_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_deal(db: AsyncSession, **kwargs) -> Deal:
    deal = Deal(**kwargs)
    db.add(deal)
    await db.commit()
    await db.refresh(deal)
    return deal


async def update_deal(db: AsyncSession, deal_id: uuid.UUID, **kwargs) -> Deal:
    """Partial update. Any stage may follow any stage."""
    deal = await get_deal(db, deal_id)
    for key, value in kwargs.items():
        setattr(deal, key, value)
    deal.updated_at = func.now()
    await db.commit()
    await db.refresh(deal)
    return deal


async def delete_deal(db: AsyncSession, deal_id: uuid.UUID) -> None:
    deal = await get_deal(db, deal_id)
    await attachment_svc.purge_for_entity(db, "deal", deal_id)
    await db.delete(deal)
    await db.commit()
