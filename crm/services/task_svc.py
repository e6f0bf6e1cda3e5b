"""Task service."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.task import Task


def coerce_datetime(value: object) -> datetime | None:
    """Coerce common date/datetime representations into an aware `datetime`.

    Postgres expects a real datetime for timestamp columns; strings that may
    "work" in SQLite will fail when bound by asyncpg.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


async def list_tasks(
    db: AsyncSession,
    *,
    contact_id: uuid.UUID | None = None,
    deal_id: uuid.UUID | None = None,
    completed: bool | None = None,
    limit: int | None = None,
) -> list[Task]:
    stmt = select(Task)
    if contact_id:
        stmt = stmt.where(Task.contact_id == contact_id)
    if deal_id:
        stmt = stmt.where(Task.deal_id == deal_id)
    if completed is not None:
        stmt = stmt.where(Task.completed.is_(completed))
    stmt = stmt.order_by(Task.completed, Task.due_date.is_(None), Task.due_date, Task.created_at.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def get_task(db: AsyncSession, task_id: uuid.UUID) -> Task:
    stmt = select(Task).where(Task.id == task_id)
    return (await db.execute(stmt)).scalar_one()


async def create_task(db: AsyncSession, **kwargs) -> Task:
    if "due_date" in kwargs:
        kwargs["due_date"] = coerce_datetime(kwargs["due_date"])
    task = Task(**kwargs)
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


async def update_task(db: AsyncSession, task_id: uuid.UUID, **kwargs) -> Task:
    task = await get_task(db, task_id)
    if "due_date" in kwargs:
        kwargs["due_date"] = coerce_datetime(kwargs["due_date"])
    for key, value in kwargs.items():
        setattr(task, key, value)
    task.updated_at = func.now()
    await db.commit()
    await db.refresh(task)
    return task


async def delete_task(db: AsyncSession, task_id: uuid.UUID) -> None:
    task = await get_task(db, task_id)
    await db.delete(task)
    await db.commit()
