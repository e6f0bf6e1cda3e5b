"""File routes - generic attachments, service sheets, parts diagrams and buckets."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.attachment import Attachment
from ..schemas.attachment import AttachmentRead, AttachmentUpdate, BucketRead, BucketSetup
from ..schemas.common import dump, dump_many, ok
from ..security.auth import AuthUser
from ..security.deps import get_current_user, require_permission, require_role
from ..services import attachment_svc, audit_svc, storage_svc
from ..services.attachment_svc import PARTS_DIAGRAM, SERVICE_SHEET, UploadRejected

router = APIRouter(tags=["attachments"])


def _with_url(attachment: Attachment) -> dict:
    return {**dump(AttachmentRead, attachment), "url": attachment_svc.attachment_url(attachment)}


def _split_tags(tags: str | None) -> list[str] | None:
    return attachment_svc.parse_tags(tags) if tags else None


async def _typed(db: AsyncSession, attachment_id: uuid.UUID, entity_type: str) -> Attachment:
    attachment = await attachment_svc.get_attachment(db, attachment_id)
    if attachment.entity_type != entity_type:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return attachment


# ── Generic attachments ────────────────────────────────────────────────────

@router.get("/api/attachments")
async def attachment_list(
    db: AsyncSession = Depends(get_db),
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
):
    if not (entity_type and entity_id):
        entity_type, entity_id = None, None
    rows = await attachment_svc.list_attachments(db, entity_type=entity_type, entity_id=entity_id)
    return ok([_with_url(a) for a in rows])


@router.post("/api/attachments")
async def attachment_upload(
    db: AsyncSession = Depends(get_db),
    user: AuthUser | None = Depends(get_current_user),
    file: UploadFile | None = File(None),
    entity_type: str | None = Form(None),
    entity_id: uuid.UUID | None = Form(None),
):
    if file is None or not entity_type or not entity_id:
        raise HTTPException(status_code=400, detail="File, entity_type, and entity_id are required")
    try:
        attachment = await attachment_svc.upload_attachment(
            db,
            data=await file.read(),
            file_name=file.filename or "upload",
            mime_type=file.content_type,
            entity_type=entity_type,
            entity_id=entity_id,
            uploaded_by=user.id if user else None,
        )
    except UploadRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ok(_with_url(attachment))


@router.put("/api/attachments")
async def attachment_update(body: AttachmentUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    attachment = await attachment_svc.update_attachment(
        db, body.id, title=body.title, description=body.description, tags=body.tags
    )
    return ok(_with_url(attachment))


@router.delete("/api/attachments")
async def attachment_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await attachment_svc.delete_attachment(db, id)
    return ok()


# ── Service sheets ─────────────────────────────────────────────────────────

@router.get("/api/service-sheets")
async def sheet_list(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:read")),
    service_id: uuid.UUID | None = None,
    appliance_id: uuid.UUID | None = None,
    tags: str | None = None,
):
    rows = await attachment_svc.list_attachments(
        db,
        entity_type=SERVICE_SHEET,
        entity_id=service_id,
        appliance_id=appliance_id,
        tags=_split_tags(tags),
    )
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="read",
        resource_type="service_sheet",
        changes={
            "serviceId": str(service_id) if service_id else None,
            "applianceId": str(appliance_id) if appliance_id else None,
            "tags": tags,
        },
        request=request,
    )
    return ok([_with_url(a) for a in rows])


@router.post("/api/service-sheets")
async def sheet_upload(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:write")),
    file: UploadFile | None = File(None),
    service_id: uuid.UUID | None = Form(None),
    appliance_id: uuid.UUID | None = Form(None),
    title: str | None = Form(None),
    description: str | None = Form(None),
    tags: str | None = Form(None),
):
    if file is None or not service_id:
        raise HTTPException(status_code=400, detail="File and service_id are required")
    try:
        sheet = await attachment_svc.upload_service_sheet(
            db,
            service_id=service_id,
            data=await file.read(),
            file_name=file.filename or "service-sheet.pdf",
            mime_type=file.content_type,
            title=title,
            uploaded_by=user.id,
            appliance_id=appliance_id,
            description=description,
            tags=_split_tags(tags),
        )
    except UploadRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    data = _with_url(sheet)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="service_sheet",
        resource_id=data["id"],
        changes={"service_id": str(service_id), "appliance_id": str(appliance_id) if appliance_id else None},
        request=request,
    )
    return ok(data)


@router.put("/api/service-sheets")
async def sheet_update(
    body: AttachmentUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:write")),
):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    await _typed(db, body.id, SERVICE_SHEET)
    sheet = await attachment_svc.update_attachment(
        db, body.id, title=body.title, description=body.description, tags=body.tags
    )
    data = _with_url(sheet)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="update",
        resource_type="service_sheet",
        resource_id=str(body.id),
        changes=body.model_dump(mode="json", exclude_unset=True, exclude={"id"}),
        request=request,
    )
    return ok(data)


@router.delete("/api/service-sheets")
async def sheet_delete(
    request: Request,
    id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("services:delete")),
):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await _typed(db, id, SERVICE_SHEET)
    await attachment_svc.delete_attachment(db, id)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="delete",
        resource_type="service_sheet",
        resource_id=str(id),
        changes={},
        request=request,
    )
    return ok()


# ── Parts diagrams ─────────────────────────────────────────────────────────

@router.get("/api/parts-diagrams")
async def diagram_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("appliances:read")),
    appliance_type_id: uuid.UUID | None = None,
    tags: str | None = None,
):
    rows = await attachment_svc.list_attachments(
        db, entity_type=PARTS_DIAGRAM, entity_id=appliance_type_id, tags=_split_tags(tags)
    )
    return ok([_with_url(a) for a in rows])


@router.post("/api/parts-diagrams")
async def diagram_upload(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("appliances:write")),
    file: UploadFile | None = File(None),
    appliance_type_id: uuid.UUID | None = Form(None),
    title: str | None = Form(None),
    description: str | None = Form(None),
    tags: str | None = Form(None),
):
    if file is None or not appliance_type_id:
        raise HTTPException(status_code=400, detail="File and appliance_type_id are required")
    try:
        diagram = await attachment_svc.upload_parts_diagram(
            db,
            appliance_type_id=appliance_type_id,
            data=await file.read(),
            file_name=file.filename or "parts-diagram.pdf",
            mime_type=file.content_type,
            title=title,
            uploaded_by=user.id,
            description=description,
            tags=_split_tags(tags),
        )
    except UploadRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    data = _with_url(diagram)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="parts_diagram",
        resource_id=data["id"],
        changes={"appliance_type_id": str(appliance_type_id)},
        request=request,
    )
    return ok(data)


@router.put("/api/parts-diagrams")
async def diagram_update(
    body: AttachmentUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("appliances:write")),
):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    await _typed(db, body.id, PARTS_DIAGRAM)
    diagram = await attachment_svc.update_attachment(
        db, body.id, title=body.title, description=body.description, tags=body.tags
    )
    data = _with_url(diagram)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="update",
        resource_type="parts_diagram",
        resource_id=str(body.id),
        changes=body.model_dump(mode="json", exclude_unset=True, exclude={"id"}),
        request=request,
    )
    return ok(data)


@router.delete("/api/parts-diagrams")
async def diagram_delete(
    request: Request,
    id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("appliances:delete")),
):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await _typed(db, id, PARTS_DIAGRAM)
    await attachment_svc.delete_attachment(db, id)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="delete",
        resource_type="parts_diagram",
        resource_id=str(id),
        changes={},
        request=request,
    )
    return ok()


# ── Storage buckets ────────────────────────────────────────────────────────

@router.get("/api/admin/storage-buckets")
async def bucket_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_role("admin", "super_admin")),
):
    buckets = await storage_svc.list_buckets(db)
    return ok(dump_many(BucketRead, buckets), defaults=storage_svc.DEFAULT_BUCKETS)


@router.post("/api/admin/storage-buckets")
async def bucket_setup(
    request: Request,
    body: BucketSetup | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_role("admin", "super_admin")),
):
    configs = None
    if body is not None and body.configs:
        configs = [c.model_dump() for c in body.configs]
    result = await storage_svc.create_storage_buckets(db, configs)
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action="create",
        resource_type="storage_buckets",
        changes=result,
        request=request,
    )
    return ok(result)
