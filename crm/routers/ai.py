"""AI routes - service request triage and the CRM chat assistant."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import ok
from ..schemas.messaging import AssistantRequest
from ..schemas.service import TriageRequest
from ..security.auth import AuthUser
from ..security.deps import require_permission, require_user
from ..services import assistant_svc, audit_svc, service_svc, triage_svc
from ..services.triage_svc import AINotConfigured, TriageError

router = APIRouter(tags=["ai"])


@router.post("/api/ai-triage")
async def triage_run(
    body: TriageRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:write")),
):
    if not body.service_id or body.service_data is None:
        raise HTTPException(status_code=400, detail="service_id and service_data are required")
    try:
        result = await triage_svc.analyze_service_request(
            db, body.service_data.model_dump(by_alias=True)
        )
    except (AINotConfigured, TriageError) as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    await service_svc.store_triage_result(db, body.service_id, result)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="ai_triage",
        resource_id=str(body.service_id),
        changes={
            "urgency": (result.get("extractedInfo") or {}).get("urgency"),
            "missingFieldsCount": len(result["missingFields"]),
            "matchedSheetsCount": len(result["matchedServiceSheets"]),
        },
        request=request,
    )
    return ok(result)


@router.get("/api/ai-triage")
async def triage_get(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:read")),
    service_id: uuid.UUID | None = None,
):
    if not service_id:
        raise HTTPException(status_code=400, detail="service_id is required")
    return ok(await service_svc.get_triage_result(db, service_id))


@router.post("/api/ai-assistant")
async def assistant_chat(
    body: AssistantRequest,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    if not body.message:
        raise HTTPException(status_code=400, detail="Message is required")
    history = [turn.model_dump() for turn in body.messages or []]
    try:
        response = await assistant_svc.reply(db, body.message, history)
    except AINotConfigured as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return ok({"response": response}, response=response)
