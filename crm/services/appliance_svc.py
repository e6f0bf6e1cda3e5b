"""Appliance and appliance type service."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.appliance import Appliance, ApplianceType
from . import attachment_svc


def age_in_years(install_date: date | None, *, today: date | None = None) -> int | None:
    """Whole years since install (365-day years)."""
    if install_date is None:
        return None
    today = today or date.today()
    return max(0, (today - install_date).days // 365)


# ── Appliance types ────────────────────────────────────────────────────────

async def list_types(db: AsyncSession, *, category: str | None = None) -> list[ApplianceType]:
    stmt = select(ApplianceType)
    if category:
        stmt = stmt.where(ApplianceType.category == category)
    stmt = stmt.order_by(ApplianceType.category, ApplianceType.name)
    return list((await db.execute(stmt)).scalars().all())


async def get_type(db: AsyncSession, type_id: uuid.UUID) -> ApplianceType:
    stmt = select(ApplianceType).where(ApplianceType.id == type_id)
    return (await db.execute(stmt)).scalar_one()


async def create_type(db: AsyncSession, **kwargs) -> ApplianceType:
    atype = ApplianceType(**kwargs)
    db.add(atype)
    await db.commit()
    await db.refresh(atype)
    return atype


async def update_type(db: AsyncSession, type_id: uuid.UUID, **kwargs) -> ApplianceType:
    atype = await get_type(db, type_id)
    for key, value in kwargs.items():
        setattr(atype, key, value)
    atype.updated_at = func.now()
    await db.commit()
    await db.refresh(atype)
    return atype


async def delete_type(db: AsyncSession, type_id: uuid.UUID) -> None:
    atype = await get_type(db, type_id)
    await attachment_svc.purge_for_entity(db, attachment_svc.PARTS_DIAGRAM, type_id)
    await db.delete(atype)
    await db.commit()


# ── Appliances ─────────────────────────────────────────────────────────────

async def list_appliances(
    db: AsyncSession, *, contact_id: uuid.UUID | None = None
) -> list[Appliance]:
    stmt = select(Appliance)
    if contact_id:
        stmt = stmt.where(Appliance.contact_id == contact_id)
    stmt = stmt.order_by(Appliance.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_appliance(db: AsyncSession, appliance_id: uuid.UUID) -> Appliance:
    stmt = select(Appliance).where(Appliance.id == appliance_id)
    return (await db.execute(stmt)).scalar_one()


async def find_appliance(db: AsyncSession, appliance_id: uuid.UUID | None) -> Appliance | None:
    if appliance_id is None:
        return None
    stmt = select(Appliance).where(Appliance.id == appliance_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_appliance(db: AsyncSession, **kwargs) -> Appliance:
    if kwargs.get("age_years") is None and kwargs.get("install_date"):
        kwargs["age_years"] = age_in_years(kwargs["install_date"])
    appliance = Appliance(**kwargs)
    db.add(appliance)
    await db.commit()
    await db.refresh(appliance)
    return appliance


async def update_appliance(db: AsyncSession, appliance_id: uuid.UUID, **kwargs) -> Appliance:
    appliance = await get_appliance(db, appliance_id)
    if "install_date" in kwargs and "age_years" not in kwargs:
        kwargs["age_years"] = age_in_years(kwargs["install_date"])
    for key, value in kwargs.items():
        setattr(appliance, key, value)
    appliance.updated_at = func.now()
    await db.commit()
    await db.refresh(appliance)
    return appliance


async def delete_appliance(db: AsyncSession, appliance_id: uuid.UUID) -> None:
    appliance = await get_appliance(db, appliance_id)
    await attachment_svc.purge_for_entity(db, "appliance", appliance_id)
    await db.delete(appliance)
    await db.commit()
