"""Inventory routes - external stock connections, synced items and sync runs."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import dump, dump_many, ok
from ..schemas.inventory import (
    InventoryConnectionRead,
    InventoryConnectionUpdate,
    InventoryItemRead,
    InventoryRequest,
    InventorySyncLogRead,
)
from ..security.auth import AuthUser
from ..security.deps import require_permission
from ..services import audit_svc, inventory_svc

router = APIRouter(tags=["inventory"])


@router.get("/api/inventory")
async def inventory_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:read")),
    type: str | None = None,
    connection_id: uuid.UUID | None = None,
    search: str | None = None,
):
    """Items by default; `?type=connections` or `?type=sync_logs&connection_id=`."""
    if type == "connections":
        return ok(dump_many(InventoryConnectionRead, await inventory_svc.list_connections(db)))
    if type == "sync_logs":
        if not connection_id:
            raise HTTPException(status_code=400, detail="connection_id is required")
        rows = await inventory_svc.list_sync_logs(db, connection_id)
        return ok(dump_many(InventorySyncLogRead, rows))

    rows = await inventory_svc.list_items(db, connection_id=connection_id, search=search)
    return ok(dump_many(InventoryItemRead, rows))


@router.post("/api/inventory")
async def inventory_action(
    body: InventoryRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if body.action == "sync":
        if not body.connection_id:
            raise HTTPException(status_code=400, detail="connection_id is required")
        if body.sync_type not in inventory_svc.SYNC_TYPES:
            raise HTTPException(status_code=400, detail="sync_type must be full or incremental")
        result = await inventory_svc.sync_inventory(db, body.connection_id, body.sync_type)
        await audit_svc.log_action(
            db,
            user_id=user.id,
            action="sync",
            resource_type="inventory_connection",
            resource_id=str(body.connection_id),
            changes=result,
            request=request,
        )
        return {"success": result["success"], "data": result}

    if not body.provider or not body.api_endpoint or not body.api_key:
        raise HTTPException(status_code=400, detail="provider, api_endpoint, and api_key are required")
    if body.provider not in inventory_svc.PROVIDERS:
        raise HTTPException(status_code=400, detail="Unsupported inventory provider")

    connection = await inventory_svc.create_connection(
        db,
        provider=body.provider,
        api_endpoint=body.api_endpoint,
        api_key=body.api_key,
        organization_id=body.organization_id,
        config=body.config,
    )
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="inventory_connection",
        resource_id=str(connection.id),
        changes={"provider": body.provider, "api_endpoint": connection.api_endpoint},
        request=request,
    )
    return ok(dump(InventoryConnectionRead, connection))


@router.put("/api/inventory")
async def inventory_update(
    body: InventoryConnectionUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not body.id:
        raise HTTPException(status_code=400, detail="id is required")
    if body.provider is not None and body.provider not in inventory_svc.PROVIDERS:
        raise HTTPException(status_code=400, detail="Unsupported inventory provider")

    connection = await inventory_svc.update_connection(db, body.id, **body.provided("id"))
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="update",
        resource_type="inventory_connection",
        resource_id=str(body.id),
        # The key itself never reaches the audit trail.
        changes=body.model_dump(mode="json", exclude_unset=True, exclude={"id", "api_key"}),
        request=request,
    )
    return ok(dump(InventoryConnectionRead, connection))


@router.delete("/api/inventory")
async def inventory_delete(
    request: Request,
    id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not id:
        raise HTTPException(status_code=400, detail="id is required")
    await inventory_svc.delete_connection(db, id)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="delete",
        resource_type="inventory_connection",
        resource_id=str(id),
        changes={},
        request=request,
    )
    return ok()
