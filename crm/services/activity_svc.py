"""Activity service - deal/contact timeline entries."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.activity import Activity


async def log_activity(
    db: AsyncSession,
    *,
    type: str,
    title: str,
    description: str | None = None,
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    created_by: str | None = None,
) -> Activity:
    activity = Activity(
        type=type,
        title=title,
        description=description,
        deal_id=deal_id,
        contact_id=contact_id,
        created_by=created_by,
    )
    db.add(activity)
    await db.commit()
    await db.refresh(activity)
    return activity


async def list_activities(
    db: AsyncSession,
    *,
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    limit: int = 50,
) -> list[Activity]:
    stmt = select(Activity)
    if deal_id:
        stmt = stmt.where(Activity.deal_id == deal_id)
    if contact_id:
        stmt = stmt.where(Activity.contact_id == contact_id)
    stmt = stmt.order_by(Activity.created_at.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
