"""Dashboard summary - counts and recent rows, read in parallel."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.activity import Activity
from ..models.contact import Contact
from ..models.pipeline import Deal
from ..models.service import Service
from ..models.task import Task

RECENT_LIMIT = 10
UPCOMING_LIMIT = 5


async def _scalar(factory: async_sessionmaker[AsyncSession], stmt):
    async with factory() as db:
        return (await db.execute(stmt)).scalar() or 0


async def _rows(factory: async_sessionmaker[AsyncSession], stmt) -> list:
    async with factory() as db:
        return list((await db.execute(stmt)).scalars().all())


async def _status_counts(factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    async with factory() as db:
        stmt = select(Service.status, func.count()).group_by(Service.status)
        return {status: count for status, count in (await db.execute(stmt)).all()}


async def summary(factory: async_sessionmaker[AsyncSession]) -> dict:
    """Each read runs on its own session so they can be awaited together."""
    now = datetime.now(timezone.utc)
    (
        contact_count,
        deal_count,
        pipeline_value,
        open_tasks,
        services_by_status,
        recent_activities,
        upcoming_services,
    ) = await asyncio.gather(
        _scalar(factory, select(func.count()).select_from(Contact)),
        _scalar(factory, select(func.count()).select_from(Deal)),
        _scalar(factory, select(func.coalesce(func.sum(Deal.value), 0))),
        _scalar(factory, select(func.count()).select_from(Task).where(Task.completed.is_(False))),
        _status_counts(factory),
        _rows(
            factory,
            select(Activity).order_by(Activity.created_at.desc()).limit(RECENT_LIMIT),
        ),
        _rows(
            factory,
            select(Service)
            .where(Service.status == "scheduled")
            .where(Service.service_date >= now)
            .order_by(Service.service_date)
            .limit(UPCOMING_LIMIT),
        ),
    )

    return {
        "contact_count": contact_count,
        "deal_count": deal_count,
        "pipeline_value": float(pipeline_value),
        "open_task_count": open_tasks,
        "services_by_status": services_by_status,
        "recent_activities": recent_activities,
        "upcoming_services": upcoming_services,
    }
