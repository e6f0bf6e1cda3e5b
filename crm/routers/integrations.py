"""Google Workspace routes - connection status, Sheets, Contacts and Drive."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.common import ok
from ..schemas.integrations import (
    DriveRequest,
    DriveShare,
    GoogleContactsRequest,
    GoogleContactUpdate,
    GoogleServicesUpdate,
    SheetsRequest,
)
from ..security.auth import AuthUser
from ..security.deps import require_permission, require_user
from ..services import (
    audit_svc,
    calendar_svc,
    contact_svc,
    drive_svc,
    google_contacts_svc,
    google_svc,
    sheets_svc,
)
from ..services.calendar_svc import CalendarNotConfigured
from ..services.google_svc import GoogleServiceNotConnected

router = APIRouter(tags=["integrations"])


async def _access_token(db: AsyncSession, user: AuthUser, service: str) -> str:
    try:
        return await google_svc.get_access_token(db, user.id, service)
    except GoogleServiceNotConnected as exc:
        raise HTTPException(status_code=400, detail=str(exc))


async def _audit(db: AsyncSession, user: AuthUser, request: Request, action: str, resource_type: str,
                 resource_id: str | None, changes: dict | None) -> None:
    await audit_svc.log_action(
        db,
        user_id=user.id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        changes=changes,
        request=request,
    )


# ── Connection ─────────────────────────────────────────────────────────────

@router.get("/api/integrations/google")
async def google_status(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
    action: str | None = None,
    services: str | None = None,
):
    """Per-service status, or `?action=auth&services=sheets,drive` for a consent URL."""
    if action == "auth":
        requested = [s.strip() for s in (services or "calendar").split(",") if s.strip()]
        try:
            return ok(authUrl=calendar_svc.build_auth_url(services=requested))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except CalendarNotConfigured as exc:
            raise HTTPException(status_code=500, detail=str(exc))

    integration = await calendar_svc.get_integration(db, user.id)
    return ok(google_svc.integration_status(integration))


@router.put("/api/integrations/google")
async def google_services_update(
    body: GoogleServicesUpdate,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    try:
        integration = await google_svc.update_services(db, user.id, **body.provided())
    except GoogleServiceNotConnected as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ok(google_svc.integration_status(integration))


# ── Sheets ─────────────────────────────────────────────────────────────────

@router.post("/api/integrations/google/sheets")
async def sheets_action(
    body: SheetsRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:write")),
):
    token = await _access_token(db, user, "sheets")
    options = body.options

    if body.action == "export":
        rows = body.data
        if rows is None and body.entity:
            try:
                rows = await sheets_svc.entity_rows(db, body.entity)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc))
        if rows is None:
            raise HTTPException(status_code=400, detail="Data array is required")

        spreadsheet_id = await sheets_svc.export_rows(
            token,
            rows,
            spreadsheet_id=options.spreadsheet_id,
            sheet_name=options.sheet_name,
            range_=options.range,
            append=options.append,
        )
        await _audit(db, user, request, "export", "google_sheets", spreadsheet_id, {"rowCount": len(rows)})
        return ok({"spreadsheetId": spreadsheet_id})

    if body.action == "import":
        if not options.spreadsheet_id:
            raise HTTPException(status_code=400, detail="Spreadsheet ID is required")
        rows = await sheets_svc.import_rows(
            token, options.spreadsheet_id, range_=options.range, sheet_name=options.sheet_name
        )
        changes: dict = {"rowCount": len(rows)}
        result = None
        if options.import_contacts:
            result = await contact_svc.import_contacts(db, sheets_svc.rows_to_records(rows))
            changes.update(result)
        await _audit(db, user, request, "import", "google_sheets", options.spreadsheet_id, changes)
        if result is not None:
            return ok(rows, contacts=result)
        return ok(rows)

    if body.action == "template":
        if not options.template_type:
            raise HTTPException(status_code=400, detail="Template type is required")
        try:
            spreadsheet_id = await sheets_svc.create_template(token, options.template_type, options.sheet_name)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return ok({"spreadsheetId": spreadsheet_id})

    raise HTTPException(status_code=400, detail="Invalid action")


@router.get("/api/integrations/google/sheets")
async def sheets_info(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("settings:read")),
    spreadsheet_id: str | None = None,
):
    if not spreadsheet_id:
        raise HTTPException(status_code=400, detail="Spreadsheet ID is required")
    token = await _access_token(db, user, "sheets")
    return ok(await sheets_svc.get_spreadsheet_info(token, spreadsheet_id))


# ── Contacts ───────────────────────────────────────────────────────────────

@router.get("/api/integrations/google/contacts")
async def google_contacts_get(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("contacts:read")),
    action: str | None = None,
    resource_name: str | None = None,
    query: str | None = None,
    page_token: str | None = None,
):
    token = await _access_token(db, user, "contacts")

    if action == "list":
        return ok(await google_contacts_svc.list_contacts(token, page_token=page_token))

    if action == "get" and resource_name:
        person = await google_contacts_svc.get_contact(token, resource_name)
        if person is None:
            raise HTTPException(status_code=404, detail="Contact not found")
        return ok(person)

    if action == "search" and query:
        return ok(await google_contacts_svc.search_contacts(token, query))

    raise HTTPException(status_code=400, detail="Invalid action or missing parameters")


@router.post("/api/integrations/google/contacts")
async def google_contacts_post(
    body: GoogleContactsRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("contacts:write")),
):
    token = await _access_token(db, user, "contacts")

    if body.action == "create":
        if not body.name and not body.first_name:
            raise HTTPException(status_code=400, detail="Name or firstName is required")
        resource_name = await google_contacts_svc.create_contact(token, **body.fields())
        display = body.name or f"{body.first_name or ''} {body.last_name or ''}".strip()
        await _audit(db, user, request, "create", "google_contact", resource_name, {"name": display})
        return ok({"resourceName": resource_name})

    if body.action == "sync_to_google":
        contacts = body.contacts
        if contacts is None:
            contacts = [
                {"id": str(c.id), "name": c.name, "email": c.email, "phone": c.phone, "company": c.company}
                for c in await contact_svc.list_contacts(db)
            ]
        result = await google_contacts_svc.sync_to_google(token, contacts, body.contact_map)
        await _audit(db, user, request, "sync", "google_contacts", None, result)
        return ok(result)

    if body.action == "sync_from_google":
        if body.contacts is None:
            raise HTTPException(status_code=400, detail="contacts array is required")
        matches = await google_contacts_svc.match_contacts(token, body.contacts)
        await _audit(db, user, request, "sync", "google_contacts", None, {"matched": len(matches)})
        return ok(matches)

    if body.action == "import":
        result = await google_contacts_svc.import_to_crm(db, token)
        await _audit(db, user, request, "import", "google_contacts", None, result)
        return ok(result)

    raise HTTPException(status_code=400, detail="Invalid action")


@router.put("/api/integrations/google/contacts")
async def google_contacts_update(
    body: GoogleContactUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("contacts:write")),
):
    if not body.resource_name:
        raise HTTPException(status_code=400, detail="resourceName is required")
    token = await _access_token(db, user, "contacts")
    try:
        await google_contacts_svc.update_contact(token, body.resource_name, **body.fields())
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    updates = body.model_dump(exclude_unset=True, exclude={"resource_name"})
    await _audit(db, user, request, "update", "google_contact", body.resource_name, {"updates": updates})
    return ok()


@router.delete("/api/integrations/google/contacts")
async def google_contacts_delete(
    request: Request,
    resource_name: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("contacts:delete")),
):
    if not resource_name:
        raise HTTPException(status_code=400, detail="resourceName is required")
    token = await _access_token(db, user, "contacts")
    await google_contacts_svc.delete_contact(token, resource_name)
    await _audit(db, user, request, "delete", "google_contact", resource_name, None)
    return ok()


# ── Drive ──────────────────────────────────────────────────────────────────

@router.post("/api/integrations/google/drive")
async def drive_action(
    body: DriveRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("attachments:write")),
):
    token = await _access_token(db, user, "drive")

    if body.action == "upload":
        if not body.file_name or not body.mime_type or not body.file_content:
            raise HTTPException(status_code=400, detail="fileName, mimeType, and fileContent are required")
        try:
            content = drive_svc.decode_content(body.file_content)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        file = await drive_svc.upload_file(
            token,
            file_name=body.file_name,
            mime_type=body.mime_type,
            content=content,
            folder_id=body.folder_id,
            parents=body.parents,
        )
        await _audit(db, user, request, "upload", "google_drive", file.get("id"),
                     {"fileName": body.file_name, "mimeType": body.mime_type})
        return ok(file)

    if body.action == "create_folder":
        if not body.folder_name:
            raise HTTPException(status_code=400, detail="folderName is required")
        folder_id = await drive_svc.create_folder(token, body.folder_name, body.parent_folder_id)
        return ok({"folderId": folder_id})

    if body.action == "organize":
        if not body.file_id or not body.folder_path:
            raise HTTPException(status_code=400, detail="fileId and folderPath array are required")
        folder_ids = await drive_svc.organize_file(token, body.file_id, body.folder_path)
        return ok({"folderIds": folder_ids})

    raise HTTPException(status_code=400, detail="Invalid action")


@router.get("/api/integrations/google/drive")
async def drive_get(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("attachments:read")),
    action: str | None = None,
    file_id: str | None = None,
    folder_id: str | None = None,
    query: str | None = None,
):
    token = await _access_token(db, user, "drive")

    if action == "list":
        return ok(await drive_svc.list_files(token, folder_id, query))

    if action == "get" and file_id:
        file = await drive_svc.get_file(token, file_id)
        if file is None:
            raise HTTPException(status_code=404, detail="File not found")
        return ok(file)

    if action == "download" and file_id:
        file = await drive_svc.get_file(token, file_id)
        if file is None:
            raise HTTPException(status_code=404, detail="File not found")
        content = await drive_svc.download_file(token, file_id)
        return Response(
            content=content,
            media_type=file.get("mimeType") or "application/octet-stream",
            headers={"Content-Disposition": f'attachment; filename="{file.get("name") or "file"}"'},
        )

    raise HTTPException(status_code=400, detail="Invalid action or missing parameters")


@router.put("/api/integrations/google/drive")
async def drive_share(
    body: DriveShare,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("attachments:write")),
):
    if not body.file_id or not body.email:
        raise HTTPException(status_code=400, detail="fileId and email are required")
    token = await _access_token(db, user, "drive")
    try:
        await drive_svc.share_file(token, body.file_id, body.email, body.role)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    await _audit(db, user, request, "share", "google_drive", body.file_id,
                 {"email": body.email, "role": body.role})
    return ok()


@router.delete("/api/integrations/google/drive")
async def drive_delete(
    request: Request,
    file_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_permission("attachments:delete")),
):
    if not file_id:
        raise HTTPException(status_code=400, detail="fileId is required")
    token = await _access_token(db, user, "drive")
    await drive_svc.delete_file(token, file_id)
    await _audit(db, user, request, "delete", "google_drive", file_id, None)
    return ok()
