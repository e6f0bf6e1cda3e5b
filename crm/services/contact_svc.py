"""Contact service - CRUD and search."""

from __future__ import annotations

import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.contact import Contact
from . import attachment_svc


async def list_contacts(
    db: AsyncSession,
    *,
    search: str | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> list[Contact]:
    """List contacts newest first, optionally filtered by a search term."""
    stmt = select(Contact)

    if search:
        q = f"%{search}%"
        stmt = stmt.where(
            or_(
                Contact.name.ilike(q),
                Contact.email.ilike(q),
                Contact.phone.ilike(q),
                Contact.company.ilike(q),
            )
        )

    stmt = stmt.order_by(Contact.created_at.desc()).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_contact(db: AsyncSession, contact_id: uuid.UUID) -> Contact:
    """Get a single contact; raises NoResultFound when missing."""
    stmt = select(Contact).where(Contact.id == contact_id)
    return (await db.execute(stmt)).scalar_one()


async def find_contact(db: AsyncSession, contact_id: uuid.UUID | None) -> Contact | None:
    if contact_id is None:
        return None
    stmt = select(Contact).where(Contact.id == contact_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_contact(db: AsyncSession, **kwargs) -> Contact:
    contact = Contact(**kwargs)
    db.add(contact)
    await db.commit()
    await db.refresh(contact)
    return contact


async def update_contact(db: AsyncSession, contact_id: uuid.UUID, **kwargs) -> Contact:
    contact = await get_contact(db, contact_id)
    for key, value in kwargs.items():
        setattr(contact, key, value)
    contact.updated_at = func.now()
    await db.commit()
    await db.refresh(contact)
    return contact


async def delete_contact(db: AsyncSession, contact_id: uuid.UUID) -> None:
    stmt = (
        select(Contact)
        .where(Contact.id == contact_id)
        .options(selectinload(Contact.custom_field_values))
    )
    contact = (await db.execute(stmt)).scalar_one()
    await attachment_svc.purge_for_entity(db, "contact", contact_id)
    await db.delete(contact)
    await db.commit()


# ── Bulk import ────────────────────────────────────────────────────────────

IMPORT_FIELDS = ("name", "email", "phone", "company")


async def find_by_email_or_phone(
    db: AsyncSession, email: str | None, phone: str | None
) -> Contact | None:
    """Match on email (case-insensitive) first, then on phone."""
    if email:
        stmt = select(Contact).where(func.lower(Contact.email) == email.strip().lower()).limit(1)
        contact = (await db.execute(stmt)).scalar_one_or_none()
        if contact is not None:
            return contact
    if phone:
        stmt = select(Contact).where(Contact.phone == phone.strip()).limit(1)
        return (await db.execute(stmt)).scalar_one_or_none()
    return None


async def import_contacts(db: AsyncSession, records: list[dict]) -> dict[str, int]:
    """Create or update contacts from plain dicts, deduplicating by email then phone.

    Records without a name and without an existing match are skipped.
    """
    result = {"created": 0, "updated": 0, "skipped": 0}
    for record in records:
        fields = {
            k: str(record[k]).strip() for k in IMPORT_FIELDS if record.get(k) not in (None, "")
        }
        contact = await find_by_email_or_phone(db, fields.get("email"), fields.get("phone"))
        if contact is not None:
            for key, value in fields.items():
                setattr(contact, key, value)
            contact.updated_at = func.now()
            result["updated"] += 1
        elif fields.get("name"):
            db.add(Contact(**fields))
            await db.flush()
            result["created"] += 1
        else:
            result["skipped"] += 1
    await db.commit()
    return result
