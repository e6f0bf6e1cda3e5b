"""Audit trail and per-field change log."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.auth import AuditLog, ChangeLog
from ..security.auth import client_ip

log = logging.getLogger(__name__)


async def log_action(
    db: AsyncSession,
    *,
    user_id: str | None,
    action: str,
    resource_type: str,
    resource_id: str | None = None,
    changes: dict | None = None,
    request: Request | None = None,
) -> AuditLog:
    metadata = None
    if changes and changes.get("organization_id"):
        metadata = {"organization_id": str(changes["organization_id"])}

    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        changes=changes,
        ip_address=client_ip(request) if request is not None else None,
        user_agent=request.headers.get("user-agent") if request is not None else None,
        metadata_json=metadata,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def log_field_change(
    db: AsyncSession,
    *,
    entity_type: str,
    entity_id: str,
    field_name: str,
    old_value,
    new_value,
    changed_by: str | None = None,
    change_reason: str | None = None,
) -> ChangeLog:
    entry = ChangeLog(
        entity_type=entity_type,
        entity_id=str(entity_id),
        field_name=field_name,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
        changed_by=changed_by,
        change_reason=change_reason,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def list_audit_logs(
    db: AsyncSession,
    *,
    user_id: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    action: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[AuditLog]:
    stmt = select(AuditLog)
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    if resource_type:
        stmt = stmt.where(AuditLog.resource_type == resource_type)
    if resource_id:
        stmt = stmt.where(AuditLog.resource_id == resource_id)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if start_date:
        stmt = stmt.where(AuditLog.created_at >= start_date)
    if end_date:
        stmt = stmt.where(AuditLog.created_at <= end_date)
    stmt = stmt.order_by(AuditLog.created_at.desc()).offset(offset).limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def list_change_logs(
    db: AsyncSession,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    limit: int = 100,
) -> list[ChangeLog]:
    stmt = select(ChangeLog)
    if entity_type:
        stmt = stmt.where(ChangeLog.entity_type == entity_type)
    if entity_id:
        stmt = stmt.where(ChangeLog.entity_id == str(entity_id))
    stmt = stmt.order_by(ChangeLog.created_at.desc()).limit(limit)
    return list((await db.execute(stmt)).scalars().all())
