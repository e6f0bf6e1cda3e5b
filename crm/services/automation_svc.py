"""Automation CRUD."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.automation import Automation, AutomationRun


async def list_automations(
    db: AsyncSession,
    *,
    organization_id: uuid.UUID | None = None,
    include_runs: bool = False,
) -> list[Automation]:
    stmt = select(Automation)
    if organization_id:
        stmt = stmt.where(Automation.organization_id == organization_id)
    if include_runs:
        stmt = stmt.options(selectinload(Automation.runs))
    stmt = stmt.order_by(Automation.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_automation(db: AsyncSession, automation_id: uuid.UUID) -> Automation:
    stmt = select(Automation).where(Automation.id == automation_id)
    return (await db.execute(stmt)).scalar_one()


async def create_automation(db: AsyncSession, **kwargs) -> Automation:
    kwargs["trigger_config"] = kwargs.get("trigger_config") or {}
    automation = Automation(**kwargs)
    db.add(automation)
    await db.commit()
    await db.refresh(automation)
    return automation


async def update_automation(db: AsyncSession, automation_id: uuid.UUID, **kwargs) -> Automation:
    automation = await get_automation(db, automation_id)
    for key, value in kwargs.items():
        setattr(automation, key, value)
    automation.updated_at = func.now()
    await db.commit()
    await db.refresh(automation)
    return automation


async def delete_automation(db: AsyncSession, automation_id: uuid.UUID) -> None:
    stmt = (
        select(Automation)
        .where(Automation.id == automation_id)
        .options(selectinload(Automation.runs))
    )
    automation = (await db.execute(stmt)).scalar_one()
    await db.delete(automation)
    await db.commit()


async def list_runs(
    db: AsyncSession, automation_id: uuid.UUID, *, limit: int = 50
) -> list[AutomationRun]:
    stmt = (
        select(AutomationRun)
        .where(AutomationRun.automation_id == automation_id)
        .order_by(AutomationRun.created_at.desc())
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())
