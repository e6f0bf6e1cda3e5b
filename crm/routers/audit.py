"""Audit log and change log routes."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.attachment import AuditLogRead, ChangeLogRead
from ..schemas.common import dump_many, ok
from ..security.auth import AuthUser
from ..security.deps import require_role, require_user
from ..services import audit_svc

router = APIRouter(tags=["audit"])


@router.get("/api/audit-logs")
async def audit_log_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_role("admin", "super_admin")),
    user_id: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    action: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 100,
    offset: int = 0,
):
    rows = await audit_svc.list_audit_logs(
        db,
        user_id=user_id,
        resource_type=resource_type,
        resource_id=resource_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return ok(dump_many(AuditLogRead, rows), limit=limit, offset=offset)


@router.get("/api/change-logs")
async def change_log_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
    entity_type: str | None = None,
    entity_id: str | None = None,
    limit: int = 100,
):
    if not entity_type or not entity_id:
        raise HTTPException(status_code=400, detail="entity_type and entity_id are required")
    rows = await audit_svc.list_change_logs(
        db, entity_type=entity_type, entity_id=entity_id, limit=limit
    )
    return ok(dump_many(ChangeLogRead, rows))
