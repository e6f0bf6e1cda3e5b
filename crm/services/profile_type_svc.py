"""Contact profile types and per-contact assignments (one primary per contact)."""

from __future__ import annotations

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.contact import ContactProfileType, ContactProfileTypeAssignment


async def list_profile_types(db: AsyncSession) -> list[ContactProfileType]:
    stmt = select(ContactProfileType).order_by(ContactProfileType.name)
    return list((await db.execute(stmt)).scalars().all())


async def create_profile_type(db: AsyncSession, **kwargs) -> ContactProfileType:
    ptype = ContactProfileType(**kwargs)
    db.add(ptype)
    await db.commit()
    await db.refresh(ptype)
    return ptype


async def list_assignments(
    db: AsyncSession, contact_id: uuid.UUID
) -> list[ContactProfileTypeAssignment]:
    stmt = (
        select(ContactProfileTypeAssignment)
        .where(ContactProfileTypeAssignment.contact_id == contact_id)
        .order_by(
            ContactProfileTypeAssignment.is_primary.desc(),
            ContactProfileTypeAssignment.created_at.asc(),
        )
    )
    return list((await db.execute(stmt)).scalars().all())


async def _unset_primary(
    db: AsyncSession, contact_id: uuid.UUID, *, keep_id: uuid.UUID | None = None
) -> None:
    stmt = (
        update(ContactProfileTypeAssignment)
        .where(
            ContactProfileTypeAssignment.contact_id == contact_id,
            ContactProfileTypeAssignment.is_primary.is_(True),
        )
        .values(is_primary=False)
    )
    if keep_id is not None:
        stmt = stmt.where(ContactProfileTypeAssignment.id != keep_id)
    await db.execute(stmt)


async def assign_profile_type(
    db: AsyncSession,
    contact_id: uuid.UUID,
    profile_type_id: uuid.UUID,
    *,
    is_primary: bool = False,
) -> ContactProfileTypeAssignment:
    """Upsert on (contact, profile type); a primary assignment demotes the others."""
    if is_primary:
        await _unset_primary(db, contact_id)

    stmt = select(ContactProfileTypeAssignment).where(
        ContactProfileTypeAssignment.contact_id == contact_id,
        ContactProfileTypeAssignment.profile_type_id == profile_type_id,
    )
    assignment = (await db.execute(stmt)).scalar_one_or_none()

    if assignment:
        assignment.is_primary = is_primary
    else:
        assignment = ContactProfileTypeAssignment(
            contact_id=contact_id,
            profile_type_id=profile_type_id,
            is_primary=is_primary,
        )
        db.add(assignment)

    await db.commit()
    await db.refresh(assignment)
    return assignment


async def update_assignment(
    db: AsyncSession, assignment_id: uuid.UUID, *, is_primary: bool | None = None
) -> ContactProfileTypeAssignment:
    stmt = select(ContactProfileTypeAssignment).where(
        ContactProfileTypeAssignment.id == assignment_id
    )
    assignment = (await db.execute(stmt)).scalar_one()

    if is_primary is not None:
        if is_primary:
            await _unset_primary(db, assignment.contact_id, keep_id=assignment.id)
        assignment.is_primary = is_primary

    await db.commit()
    await db.refresh(assignment)
    return assignment


async def delete_assignment(db: AsyncSession, assignment_id: uuid.UUID) -> None:
    stmt = select(ContactProfileTypeAssignment).where(
        ContactProfileTypeAssignment.id == assignment_id
    )
    assignment = (await db.execute(stmt)).scalar_one()
    await db.delete(assignment)
    await db.commit()
