"""Google Drive v3 files: upload, folders, listing, sharing and download."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import secrets

import httpx

from . import google_svc

log = logging.getLogger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_API = "https://www.googleapis.com/upload/drive/v3/files"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id, name, mimeType, size, createdTime, modifiedTime, webViewLink, webContentLink, parents"
SHARE_ROLES = ("reader", "writer", "commenter")


def decode_content(content: str) -> bytes:
    """Decode plain base64 or a `data:<mime>;base64,` URL."""
    if content.startswith("data:"):
        content = content.split(",", 1)[1] if "," in content else ""
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid file content format") from exc


def _multipart_related(metadata: dict, content: bytes, mime_type: str) -> tuple[bytes, str]:
    boundary = f"crm-{secrets.token_hex(12)}"
    body = b"".join(
        [
            f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n".encode(),
            json.dumps(metadata).encode(),
            f"\r\n--{boundary}\r\nContent-Type: {mime_type}\r\n\r\n".encode(),
            content,
            f"\r\n--{boundary}--\r\n".encode(),
        ]
    )
    return body, f"multipart/related; boundary={boundary}"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


async def upload_file(
    access_token: str,
    *,
    file_name: str,
    mime_type: str,
    content: bytes,
    folder_id: str | None = None,
    parents: list[str] | None = None,
) -> dict:
    metadata: dict = {"name": file_name}
    if parents or folder_id:
        metadata["parents"] = parents or [folder_id]
    body, content_type = _multipart_related(metadata, content, mime_type)
    resp = await google_svc.api_request(
        access_token,
        "POST",
        DRIVE_UPLOAD_API,
        params={"uploadType": "multipart", "fields": FILE_FIELDS},
        content=body,
        headers={"Content-Type": content_type},
    )
    log.info("Uploaded %s to Google Drive", file_name)
    return {"name": file_name, "mimeType": mime_type, **resp.json()}


async def create_folder(access_token: str, folder_name: str, parent_folder_id: str | None = None) -> str:
    metadata: dict = {"name": folder_name, "mimeType": FOLDER_MIME_TYPE}
    if parent_folder_id:
        metadata["parents"] = [parent_folder_id]
    resp = await google_svc.api_request(
        access_token, "POST", f"{DRIVE_API}/files", params={"fields": "id"}, json=metadata
    )
    return resp.json().get("id", "")


async def list_files(access_token: str, folder_id: str | None = None, query: str | None = None) -> list[dict]:
    """Non-trashed files, newest modification first."""
    q = "trashed = false"
    if folder_id:
        q += f" and '{_escape(folder_id)}' in parents"
    if query:
        term = _escape(query)
        q += f" and (name contains '{term}' or fullText contains '{term}')"
    resp = await google_svc.api_request(
        access_token,
        "GET",
        f"{DRIVE_API}/files",
        params={
            "q": q,
            "fields": f"files({FILE_FIELDS})",
            "orderBy": "modifiedTime desc",
            "pageSize": 100,
        },
    )
    return resp.json().get("files", [])


async def get_file(access_token: str, file_id: str) -> dict | None:
    try:
        resp = await google_svc.api_request(
            access_token, "GET", f"{DRIVE_API}/files/{file_id}", params={"fields": FILE_FIELDS}
        )
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            return None
        raise
    return resp.json()


async def download_file(access_token: str, file_id: str) -> bytes:
    resp = await google_svc.api_request(
        access_token, "GET", f"{DRIVE_API}/files/{file_id}", params={"alt": "media"}
    )
    return resp.content


async def share_file(access_token: str, file_id: str, email: str, role: str = "reader") -> None:
    if role not in SHARE_ROLES:
        raise ValueError(f"role must be one of {', '.join(SHARE_ROLES)}")
    await google_svc.api_request(
        access_token,
        "POST",
        f"{DRIVE_API}/files/{file_id}/permissions",
        params={"sendNotificationEmail": "true"},
        json={"role": role, "type": "user", "emailAddress": email},
    )


async def delete_file(access_token: str, file_id: str) -> None:
    await google_svc.api_request(access_token, "DELETE", f"{DRIVE_API}/files/{file_id}")


async def organize_file(access_token: str, file_id: str, folder_path: list[str]) -> list[str]:
    """Move a file under a folder path, creating missing folders.

    e.g. ["Customers", "Jane Doe", "Service Sheets"]. Returns the ids of the
    folders that had to be created.
    """
    parent_id: str | None = None
    created: list[str] = []
    for folder_name in folder_path:
        existing = next(
            (
                f
                for f in await list_files(access_token, parent_id, folder_name)
                if f.get("name") == folder_name and f.get("mimeType") == FOLDER_MIME_TYPE
            ),
            None,
        )
        if existing is not None:
            parent_id = existing["id"]
        else:
            parent_id = await create_folder(access_token, folder_name, parent_id)
            created.append(parent_id)

    if parent_id:
        await google_svc.api_request(
            access_token,
            "PATCH",
            f"{DRIVE_API}/files/{file_id}",
            params={"addParents": parent_id, "fields": "id, parents"},
            json={},
        )
    return created
