"""Service (job) and service history records."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.service import Service, ServiceHistory
from . import attachment_svc


# ── Services ───────────────────────────────────────────────────────────────

async def list_services(
    db: AsyncSession,
    *,
    contact_id: uuid.UUID | None = None,
    appliance_id: uuid.UUID | None = None,
    status: str | None = None,
    limit: int | None = None,
) -> list[Service]:
    stmt = select(Service)
    if contact_id:
        stmt = stmt.where(Service.contact_id == contact_id)
    if appliance_id:
        stmt = stmt.where(Service.appliance_id == appliance_id)
    if status:
        stmt = stmt.where(Service.status == status)
    stmt = stmt.order_by(Service.service_date.desc().nulls_last(), Service.created_at.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def get_service(db: AsyncSession, service_id: uuid.UUID) -> Service:
    stmt = select(Service).where(Service.id == service_id)
    return (await db.execute(stmt)).scalar_one()


async def create_service(db: AsyncSession, **kwargs) -> Service:
    kwargs["status"] = kwargs.get("status") or "scheduled"
    service = Service(**kwargs)
    db.add(service)
    await db.commit()
    await db.refresh(service)
    return service


async def update_service(db: AsyncSession, service_id: uuid.UUID, **kwargs) -> Service:
    """Partial update; status moves freely between the known values."""
    service = await get_service(db, service_id)
    for key, value in kwargs.items():
        setattr(service, key, value)
    service.updated_at = func.now()
    await db.commit()
    await db.refresh(service)
    return service


async def delete_service(db: AsyncSession, service_id: uuid.UUID) -> None:
    service = await get_service(db, service_id)
    await attachment_svc.purge_for_entity(
        db, ("service", attachment_svc.SERVICE_SHEET), service_id
    )
    await db.delete(service)
    await db.commit()


async def store_triage_result(db: AsyncSession, service_id: uuid.UUID, result: dict) -> Service:
    service = await get_service(db, service_id)
    service.triage_result = result
    service.updated_at = func.now()
    await db.commit()
    await db.refresh(service)
    return service


async def get_triage_result(db: AsyncSession, service_id: uuid.UUID) -> dict | None:
    stmt = select(Service.triage_result).where(Service.id == service_id)
    return (await db.execute(stmt)).scalar_one()


# ── Service history ────────────────────────────────────────────────────────

async def list_history(
    db: AsyncSession,
    *,
    contact_id: uuid.UUID | None = None,
    appliance_id: uuid.UUID | None = None,
    service_id: uuid.UUID | None = None,
) -> list[ServiceHistory]:
    stmt = select(ServiceHistory)
    if contact_id:
        stmt = stmt.where(ServiceHistory.contact_id == contact_id)
    if appliance_id:
        stmt = stmt.where(ServiceHistory.appliance_id == appliance_id)
    if service_id:
        stmt = stmt.where(ServiceHistory.service_id == service_id)
    stmt = stmt.order_by(ServiceHistory.date.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_history(db: AsyncSession, history_id: uuid.UUID) -> ServiceHistory:
    stmt = select(ServiceHistory).where(ServiceHistory.id == history_id)
    return (await db.execute(stmt)).scalar_one()


async def create_history(db: AsyncSession, **kwargs) -> ServiceHistory:
    if kwargs.get("date") is None:
        kwargs.pop("date", None)
    entry = ServiceHistory(**kwargs)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def update_history(db: AsyncSession, history_id: uuid.UUID, **kwargs) -> ServiceHistory:
    entry = await get_history(db, history_id)
    for key, value in kwargs.items():
        setattr(entry, key, value)
    await db.commit()
    await db.refresh(entry)
    return entry


async def delete_history(db: AsyncSession, history_id: uuid.UUID) -> None:
    entry = await get_history(db, history_id)
    await db.delete(entry)
    await db.commit()
