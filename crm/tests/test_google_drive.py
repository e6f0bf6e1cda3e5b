"""Google Drive upload, folder and sharing tests."""

from __future__ import annotations

import base64
import json

import httpx
import pytest
from httpx import AsyncClient

from crm.services import drive_svc


def test_decode_content():
    raw = base64.b64encode(b"hello").decode()
    assert drive_svc.decode_content(raw) == b"hello"
    assert drive_svc.decode_content(f"data:text/plain;base64,{raw}") == b"hello"
    with pytest.raises(ValueError, match="Invalid file content format"):
        drive_svc.decode_content("not base64!")


@pytest.mark.asyncio
async def test_upload_sends_multipart(google_api):
    google_api.on("POST", "upload/drive/v3/files", {"id": "f-1", "webViewLink": "https://drive/f-1"})

    file = await drive_svc.upload_file(
        "at-1", file_name="invoice.pdf", mime_type="application/pdf", content=b"%PDF", folder_id="folder-1"
    )
    assert file["id"] == "f-1"
    assert file["name"] == "invoice.pdf"

    request = google_api.requests[0]
    assert request.url.params["uploadType"] == "multipart"
    assert request.headers["Content-Type"].startswith("multipart/related; boundary=")
    assert b'{"name": "invoice.pdf", "parents": ["folder-1"]}' in request.content
    assert b"%PDF" in request.content


@pytest.mark.asyncio
async def test_list_files_escapes_query(google_api):
    google_api.on("GET", "drive/v3/files", {"files": [{"id": "f-1"}]})

    assert await drive_svc.list_files("at-1", "folder-1", "O'Brien") == [{"id": "f-1"}]
    q = google_api.requests[0].url.params["q"]
    assert q == (
        "trashed = false and 'folder-1' in parents"
        " and (name contains 'O\\'Brien' or fullText contains 'O\\'Brien')"
    )


@pytest.mark.asyncio
async def test_organize_creates_missing_folders(google_api):
    customers = {"id": "fold-1", "name": "Customers", "mimeType": drive_svc.FOLDER_MIME_TYPE}

    def search(request: httpx.Request) -> httpx.Response:
        if "name contains 'Customers'" in request.url.params["q"]:
            return httpx.Response(200, json={"files": [customers]})
        return httpx.Response(200, json={"files": []})

    google_api.on("GET", "drive/v3/files", search)
    google_api.on("POST", "drive/v3/files", {"id": "fold-2"})
    google_api.on("PATCH", "drive/v3/files/file-1", {"id": "file-1"})

    created = await drive_svc.organize_file("at-1", "file-1", ["Customers", "Jane Doe"])
    assert created == ["fold-2"]

    folder = json.loads(google_api.sent("POST", "drive/v3/files")[0].content)
    assert folder == {"name": "Jane Doe", "mimeType": drive_svc.FOLDER_MIME_TYPE, "parents": ["fold-1"]}
    move = google_api.sent("PATCH", "drive/v3/files/file-1")[0]
    assert move.url.params["addParents"] == "fold-2"


@pytest.mark.asyncio
async def test_share_rejects_unknown_role(google_api):
    with pytest.raises(ValueError):
        await drive_svc.share_file("at-1", "file-1", "a@example.com", role="owner")
    assert google_api.requests == []


@pytest.mark.asyncio
async def test_upload_route(client: AsyncClient, google_headers, google_api):
    google_api.on("POST", "upload/drive/v3/files", {"id": "f-1"})
    url = "/api/integrations/google/drive"

    resp = await client.post(url, json={"action": "upload", "fileName": "a.txt"}, headers=google_headers)
    assert resp.json()["error"] == "fileName, mimeType, and fileContent are required"

    body = {"action": "upload", "fileName": "a.txt", "mimeType": "text/plain", "fileContent": "%%%"}
    resp = await client.post(url, json=body, headers=google_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid file content format"

    body["fileContent"] = base64.b64encode(b"hi").decode()
    resp = await client.post(url, json=body, headers=google_headers)
    assert resp.json()["data"]["id"] == "f-1"


@pytest.mark.asyncio
async def test_download_route(client: AsyncClient, google_headers, google_api):
    def files(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("alt") == "media":
            return httpx.Response(200, content=b"report body")
        return httpx.Response(200, json={"id": "f-1", "name": "report.txt", "mimeType": "text/plain"})

    google_api.on("GET", "drive/v3/files/f-1", files)

    resp = await client.get(
        "/api/integrations/google/drive", params={"action": "download", "file_id": "f-1"}, headers=google_headers
    )
    assert resp.content == b"report body"
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.headers["content-disposition"] == 'attachment; filename="report.txt"'

    resp = await client.get(
        "/api/integrations/google/drive", params={"action": "get", "file_id": "gone"}, headers=google_headers
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "File not found"


@pytest.mark.asyncio
async def test_share_and_delete_routes(client: AsyncClient, google_headers, google_api):
    google_api.on("POST", "/permissions", {})
    google_api.on("DELETE", "drive/v3/files/f-1", {})
    url = "/api/integrations/google/drive"

    resp = await client.put(url, json={"fileId": "f-1"}, headers=google_headers)
    assert resp.json()["error"] == "fileId and email are required"

    resp = await client.put(url, json={"fileId": "f-1", "email": "a@example.com", "role": "owner"}, headers=google_headers)
    assert resp.status_code == 400

    resp = await client.put(url, json={"fileId": "f-1", "email": "a@example.com", "role": "writer"}, headers=google_headers)
    assert resp.status_code == 200
    grant = json.loads(google_api.sent("POST", "/permissions")[0].content)
    assert grant == {"role": "writer", "type": "user", "emailAddress": "a@example.com"}

    resp = await client.delete(url, headers=google_headers)
    assert resp.json()["error"] == "fileId is required"

    resp = await client.delete(url, params={"file_id": "f-1"}, headers=google_headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_drive_routes_check_permissions(client: AsyncClient, make_headers, google_api):
    headers = await make_headers("customer")
    resp = await client.post(
        "/api/integrations/google/drive", json={"action": "create_folder", "folderName": "X"}, headers=headers
    )
    assert resp.status_code == 403
