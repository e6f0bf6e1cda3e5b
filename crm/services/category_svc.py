"""Contact categories and category assignments."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.contact import ContactCategory, ContactCategoryAssignment


async def list_categories(db: AsyncSession) -> list[ContactCategory]:
    stmt = select(ContactCategory).order_by(ContactCategory.name)
    return list((await db.execute(stmt)).scalars().all())


async def create_category(db: AsyncSession, **kwargs) -> ContactCategory:
    category = ContactCategory(**kwargs)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


async def list_assignments(
    db: AsyncSession, contact_id: uuid.UUID
) -> list[ContactCategoryAssignment]:
    stmt = (
        select(ContactCategoryAssignment)
        .where(ContactCategoryAssignment.contact_id == contact_id)
        .order_by(ContactCategoryAssignment.created_at)
    )
    return list((await db.execute(stmt)).scalars().all())


async def assign_category(
    db: AsyncSession, contact_id: uuid.UUID, category_id: uuid.UUID
) -> ContactCategoryAssignment:
    assignment = ContactCategoryAssignment(contact_id=contact_id, category_id=category_id)
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    return assignment


async def remove_assignment(
    db: AsyncSession,
    *,
    assignment_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
) -> None:
    """Remove by assignment id, or by the (contact, category) pair."""
    stmt = select(ContactCategoryAssignment)
    if assignment_id is not None:
        stmt = stmt.where(ContactCategoryAssignment.id == assignment_id)
    else:
        stmt = stmt.where(
            ContactCategoryAssignment.contact_id == contact_id,
            ContactCategoryAssignment.category_id == category_id,
        )
    assignment = (await db.execute(stmt)).scalar_one()
    await db.delete(assignment)
    await db.commit()
