"""Custom field definition + value service (EAV)."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.custom_field import CustomFieldDefinition, CustomFieldValue


async def list_definitions(
    db: AsyncSession, *, category: str | None = None
) -> list[CustomFieldDefinition]:
    stmt = select(CustomFieldDefinition)
    if category:
        stmt = stmt.where(CustomFieldDefinition.category == category)
    stmt = stmt.order_by(CustomFieldDefinition.category, CustomFieldDefinition.order)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_definition(db: AsyncSession, defn_id: uuid.UUID) -> CustomFieldDefinition:
    stmt = select(CustomFieldDefinition).where(CustomFieldDefinition.id == defn_id)
    return (await db.execute(stmt)).scalar_one()


async def create_definition(db: AsyncSession, **kwargs) -> CustomFieldDefinition:
    defn = CustomFieldDefinition(**kwargs)
    db.add(defn)
    await db.commit()
    await db.refresh(defn)
    return defn


async def update_definition(
    db: AsyncSession, defn_id: uuid.UUID, **kwargs
) -> CustomFieldDefinition:
    defn = await get_definition(db, defn_id)
    for key, value in kwargs.items():
        setattr(defn, key, value)
    defn.updated_at = func.now()
    await db.commit()
    await db.refresh(defn)
    return defn


async def delete_definition(db: AsyncSession, defn_id: uuid.UUID) -> None:
    defn = await get_definition(db, defn_id)
    await db.delete(defn)
    await db.commit()


async def get_values_for_contact(
    db: AsyncSession, contact_id: uuid.UUID
) -> list[CustomFieldValue]:
    stmt = (
        select(CustomFieldValue)
        .join(CustomFieldDefinition)
        .where(CustomFieldValue.contact_id == contact_id)
        .order_by(CustomFieldDefinition.order)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


def _stringify(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def set_value(
    db: AsyncSession,
    contact_id: uuid.UUID,
    field_definition_id: uuid.UUID,
    value: object,
) -> CustomFieldValue:
    """Set (upsert) a custom field value for a contact."""
    stmt = select(CustomFieldValue).where(
        CustomFieldValue.contact_id == contact_id,
        CustomFieldValue.field_definition_id == field_definition_id,
    )
    result = await db.execute(stmt)
    cfv = result.scalar_one_or_none()

    if cfv:
        cfv.value = _stringify(value)
        cfv.updated_at = func.now()
    else:
        cfv = CustomFieldValue(
            contact_id=contact_id,
            field_definition_id=field_definition_id,
            value=_stringify(value),
        )
        db.add(cfv)

    await db.commit()
    await db.refresh(cfv)
    return cfv


async def delete_value(db: AsyncSession, value_id: uuid.UUID) -> None:
    stmt = select(CustomFieldValue).where(CustomFieldValue.id == value_id)
    cfv = (await db.execute(stmt)).scalar_one()
    await db.delete(cfv)
    await db.commit()
