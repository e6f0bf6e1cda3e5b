"""Automation routes - CRUD and the test trigger."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..automation.dispatcher import TRIGGER_TYPES, fire_trigger, validate_actions
from ..database import get_db
from ..schemas.automation import (
    AutomationCreate,
    AutomationRead,
    AutomationRunRead,
    AutomationTest,
    AutomationUpdate,
)
from ..schemas.common import dump, dump_many, ok
from ..security.auth import AuthUser
from ..security.deps import require_permission
from ..services import audit_svc, automation_svc

router = APIRouter(tags=["automations"])


@router.get("/api/automations")
async def automation_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:read")),
    id: uuid.UUID | None = None,
    organization_id: uuid.UUID | None = None,
):
    if id:
        automation = await automation_svc.get_automation(db, id)
        runs = await automation_svc.list_runs(db, id)
        return ok(dump(AutomationRead, automation), runs=dump_many(AutomationRunRead, runs))
    rows = await automation_svc.list_automations(db, organization_id=organization_id)
    return ok(dump_many(AutomationRead, rows))


@router.post("/api/automations")
async def automation_create(
    body: AutomationCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not body.name or not body.trigger_type or not isinstance(body.actions, list):
        raise HTTPException(
            status_code=400, detail="name, trigger_type, and actions array are required"
        )
    if body.trigger_type not in TRIGGER_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown trigger type: {body.trigger_type}")
    error = validate_actions(body.actions)
    if error:
        raise HTTPException(status_code=400, detail=error)

    automation = await automation_svc.create_automation(db, **body.model_dump())
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="automation",
        resource_id=str(automation.id),
        changes={
            "name": body.name,
            "trigger_type": body.trigger_type,
            "actions_count": len(body.actions),
        },
        request=request,
    )
    return ok(dump(AutomationRead, automation))


@router.put("/api/automations")
async def automation_update(
    body: AutomationUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not body.id:
        raise HTTPException(status_code=400, detail="id is required")
    if "actions" in body.model_fields_set:
        error = validate_actions(body.actions)
        if error:
            raise HTTPException(status_code=400, detail=error)
    if body.trigger_type is not None and body.trigger_type not in TRIGGER_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown trigger type: {body.trigger_type}")

    automation = await automation_svc.update_automation(db, body.id, **body.provided("id"))
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="update",
        resource_type="automation",
        resource_id=str(body.id),
        changes=body.model_dump(mode="json", exclude_unset=True, exclude={"id"}),
        request=request,
    )
    return ok(dump(AutomationRead, automation))


@router.delete("/api/automations")
async def automation_delete(
    request: Request,
    id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not id:
        raise HTTPException(status_code=400, detail="id is required")
    await automation_svc.delete_automation(db, id)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="delete",
        resource_type="automation",
        resource_id=str(id),
        changes={},
        request=request,
    )
    return ok()


@router.post("/api/automations/test")
async def automation_test(
    body: AutomationTest,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    if not body.automation_id or not body.trigger_type or body.trigger_data is None:
        raise HTTPException(
            status_code=400,
            detail="automation_id, trigger_type, and trigger_data are required",
        )
    runs = await fire_trigger(db, body.trigger_type, body.trigger_data, body.organization_id)
    return ok(
        dump_many(AutomationRunRead, runs),
        message="Automation triggered successfully",
    )
