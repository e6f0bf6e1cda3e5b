"""Messaging routes - SMS/email send, SMS info requests and email templates."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import dump, dump_many, ok
from ..schemas.messaging import (
    EmailSend,
    EmailTemplateCreate,
    EmailTemplateRead,
    EmailTemplateUpdate,
    SMSSend,
)
from ..schemas.service import SMSInfoRequest, SMSThreadRead
from ..security.auth import AuthUser
from ..security.deps import require_permission, require_user
from ..services import activity_svc, audit_svc, email_template_svc, messaging_svc, sms_request_svc
from ..services.messaging_svc import MessagingNotConfigured

router = APIRouter(tags=["messaging"])


@router.post("/api/sms/send")
async def sms_send(
    body: SMSSend,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    if not body.to or not body.message:
        raise HTTPException(status_code=400, detail="To and message are required")
    try:
        sid = await messaging_svc.send_sms(body.to, body.message)
    except MessagingNotConfigured as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    if body.deal_id or body.contact_id:
        await activity_svc.log_activity(
            db,
            type="call",
            title=f"SMS sent to {body.to}",
            description=body.message,
            deal_id=body.deal_id,
            contact_id=body.contact_id,
            created_by=user.display,
        )
    return ok(messageId=sid)


@router.post("/api/email/send")
async def email_send(
    body: EmailSend,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    if not body.to or not body.subject or not body.html:
        raise HTTPException(status_code=400, detail="To, subject, and HTML content are required")
    try:
        message_id = await messaging_svc.send_email(body.to, body.subject, body.html, body.text)
    except MessagingNotConfigured as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    if body.deal_id or body.contact_id:
        await activity_svc.log_activity(
            db,
            type="email",
            title=f"Email sent to {body.to}",
            description=f"Subject: {body.subject}\n\n{body.text or messaging_svc.strip_html(body.html)}",
            deal_id=body.deal_id,
            contact_id=body.contact_id,
            created_by=user.display,
        )
    return ok(messageId=message_id)


# ── SMS info requests ──────────────────────────────────────────────────────

@router.post("/api/sms/request-info")
async def sms_request_info(
    body: SMSInfoRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:write")),
):
    if not body.phone_number or not body.missing_fields:
        raise HTTPException(status_code=400, detail="phone_number and missing_fields are required")
    try:
        thread = await sms_request_svc.send_info_request(
            db,
            body.phone_number,
            body.missing_fields,
            service_id=body.service_id,
            contact_id=body.contact_id,
            service_title=body.service_title,
            contact_name=body.contact_name,
        )
    except MessagingNotConfigured as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="sms_request",
        resource_id=str(thread.id),
        changes={
            "phone_number": body.phone_number,
            "service_id": str(body.service_id) if body.service_id else None,
            "contact_id": str(body.contact_id) if body.contact_id else None,
            "missing_fields_count": len(body.missing_fields),
        },
        request=request,
    )
    return ok({"thread_id": str(thread.id)})


@router.get("/api/sms/request-info")
async def sms_request_threads(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:read")),
    thread_id: uuid.UUID | None = None,
    service_id: uuid.UUID | None = None,
):
    if thread_id:
        return ok(dump(SMSThreadRead, await sms_request_svc.get_thread(db, thread_id)))
    if service_id:
        threads = await sms_request_svc.list_service_threads(db, service_id)
        return ok(dump_many(SMSThreadRead, threads))
    raise HTTPException(status_code=400, detail="thread_id or service_id is required")


# ── Email templates ────────────────────────────────────────────────────────

@router.get("/api/email-templates/variables")
async def template_variables():
    return ok(email_template_svc.available_variables())


@router.get("/api/email-templates")
async def template_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    category: str | None = None,
):
    if id:
        return ok(dump(EmailTemplateRead, await email_template_svc.get_template(db, id)))
    rows = await email_template_svc.list_templates(db, category=category)
    return ok(dump_many(EmailTemplateRead, rows))


@router.post("/api/email-templates")
async def template_create(body: EmailTemplateCreate, db: AsyncSession = Depends(get_db)):
    if not body.name or not body.subject or not body.body:
        raise HTTPException(status_code=400, detail="Name, subject, and body are required")
    template = await email_template_svc.create_template(db, **body.model_dump())
    return ok(dump(EmailTemplateRead, template))


@router.put("/api/email-templates")
async def template_update(body: EmailTemplateUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    template = await email_template_svc.update_template(db, body.id, **body.provided("id"))
    return ok(dump(EmailTemplateRead, template))


@router.delete("/api/email-templates")
async def template_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await email_template_svc.delete_template(db, id)
    return ok()
