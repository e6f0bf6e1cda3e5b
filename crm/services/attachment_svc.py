"""Attachments: uploads to bucket storage bound to an entity row."""

from __future__ import annotations

import logging
import secrets
import time
import uuid
from pathlib import PurePosixPath

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.attachment import Attachment
from . import storage_svc

log = logging.getLogger(__name__)

DEFAULT_BUCKET = "attachments"

SERVICE_SHEET = "service_sheet"
SERVICE_SHEET_BUCKET = "service-sheets"
PARTS_DIAGRAM = "parts_diagram"
PARTS_DIAGRAM_BUCKET = "parts-diagrams"


class UploadRejected(ValueError):
    """Upload violates the bucket's type or size policy."""


def parse_tags(tags: list[str] | str | None) -> list[str] | None:
    if tags is None:
        return None
    if isinstance(tags, str):
        tags = tags.split(",")
    return [t.strip() for t in tags if t and t.strip()]


def build_key(prefix: str, file_name: str) -> str:
    """`<prefix>/<ms>-<rand>.<ext>`; keeps uploads of the same name apart."""
    ext = PurePosixPath(file_name or "").suffix.lstrip(".").lower() or "bin"
    return f"{prefix}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"


def attachment_url(attachment: Attachment) -> str:
    return storage_svc.public_url(attachment.bucket, attachment.file_path)


async def upload_attachment(
    db: AsyncSession,
    *,
    data: bytes,
    file_name: str,
    mime_type: str | None,
    entity_type: str,
    entity_id: uuid.UUID,
    bucket: str = DEFAULT_BUCKET,
    key_prefix: str | None = None,
    title: str | None = None,
    uploaded_by: str | None = None,
    appliance_id: uuid.UUID | None = None,
    description: str | None = None,
    tags: list[str] | str | None = None,
    upload_source: str | None = None,
) -> Attachment:
    error = await storage_svc.check_upload(db, bucket, mime_type, len(data))
    if error:
        raise UploadRejected(error)

    key = build_key(key_prefix or f"{entity_type}/{entity_id}", file_name)
    storage_svc.get_blobstore().put_bytes(bucket, key, data)

    attachment = Attachment(
        entity_type=entity_type,
        entity_id=entity_id,
        bucket=bucket,
        file_name=title or file_name,
        file_path=key,
        file_size=len(data),
        mime_type=mime_type,
        uploaded_by=uploaded_by,
        appliance_id=appliance_id,
        description=description,
        tags=parse_tags(tags),
        upload_source=upload_source,
    )
    db.add(attachment)
    await db.commit()
    await db.refresh(attachment)
    log.info("Stored %s/%s (%d bytes)", bucket, key, len(data))
    return attachment


async def upload_service_sheet(
    db: AsyncSession, *, service_id: uuid.UUID, **kwargs
) -> Attachment:
    return await upload_attachment(
        db,
        entity_type=SERVICE_SHEET,
        entity_id=service_id,
        bucket=SERVICE_SHEET_BUCKET,
        key_prefix=f"service-sheets/{service_id}",
        upload_source="web",
        **kwargs,
    )


async def upload_parts_diagram(
    db: AsyncSession, *, appliance_type_id: uuid.UUID, **kwargs
) -> Attachment:
    return await upload_attachment(
        db,
        entity_type=PARTS_DIAGRAM,
        entity_id=appliance_type_id,
        bucket=PARTS_DIAGRAM_BUCKET,
        key_prefix=f"parts-diagrams/{appliance_type_id}",
        upload_source="web",
        **kwargs,
    )


async def list_attachments(
    db: AsyncSession,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    appliance_id: uuid.UUID | None = None,
    tags: list[str] | None = None,
    limit: int | None = None,
) -> list[Attachment]:
    stmt = select(Attachment)
    if entity_type:
        stmt = stmt.where(Attachment.entity_type == entity_type)
    if entity_id:
        stmt = stmt.where(Attachment.entity_id == entity_id)
    if appliance_id:
        stmt = stmt.where(Attachment.appliance_id == appliance_id)
    stmt = stmt.order_by(Attachment.created_at.desc())
    if limit and not tags:
        stmt = stmt.limit(limit)
    rows = list((await db.execute(stmt)).scalars().all())

    if tags:
        wanted = set(tags)
        rows = [a for a in rows if wanted.issubset(a.tags or [])]
        if limit:
            rows = rows[:limit]
    return rows


async def get_attachment(db: AsyncSession, attachment_id: uuid.UUID) -> Attachment:
    stmt = select(Attachment).where(Attachment.id == attachment_id)
    return (await db.execute(stmt)).scalar_one()


async def update_attachment(
    db: AsyncSession,
    attachment_id: uuid.UUID,
    *,
    title: str | None = None,
    description: str | None = None,
    tags: list[str] | str | None = None,
) -> Attachment:
    attachment = await get_attachment(db, attachment_id)
    if title is not None:
        attachment.file_name = title
    if description is not None:
        attachment.description = description
    if tags is not None:
        attachment.tags = parse_tags(tags)
    await db.commit()
    await db.refresh(attachment)
    return attachment


async def delete_attachment(db: AsyncSession, attachment_id: uuid.UUID) -> None:
    """Remove the stored blob, then the row."""
    attachment = await get_attachment(db, attachment_id)
    storage_svc.get_blobstore().remove(attachment.bucket, [attachment.file_path])
    await db.delete(attachment)
    await db.commit()


async def purge_for_entity(
    db: AsyncSession, entity_types: str | tuple[str, ...], entity_id: uuid.UUID
) -> int:
    """Delete every attachment (blob and row) bound to an entity. No commit."""
    if isinstance(entity_types, str):
        entity_types = (entity_types,)
    stmt = (
        select(Attachment)
        .where(Attachment.entity_type.in_(entity_types))
        .where(Attachment.entity_id == entity_id)
    )
    rows = list((await db.execute(stmt)).scalars().all())

    store = storage_svc.get_blobstore()
    for attachment in rows:
        store.remove(attachment.bucket, [attachment.file_path])
        await db.delete(attachment)
    return len(rows)
