"""Attachment, service sheet, parts diagram and bucket tests."""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crm.models.auth import AuditLog
from crm.services import attachment_svc, storage_svc


def _pdf(name: str = "sheet.pdf") -> dict:
    return {"file": (name, b"%PDF-1.4 test", "application/pdf")}


def test_parse_tags():
    assert attachment_svc.parse_tags(None) is None
    assert attachment_svc.parse_tags(" dryer, whirlpool ,,") == ["dryer", "whirlpool"]
    assert attachment_svc.parse_tags(["a", " "]) == ["a"]


def test_build_key_keeps_extension():
    key = attachment_svc.build_key("service/abc", "Manual.PDF")
    assert key.startswith("service/abc/")
    assert key.endswith(".pdf")
    assert attachment_svc.build_key("x", "README").endswith(".bin")


@pytest.mark.asyncio
async def test_upload_and_delete_removes_blob(db: AsyncSession):
    entity_id = uuid.uuid4()
    attachment = await attachment_svc.upload_attachment(
        db,
        data=b"hello",
        file_name="notes.txt",
        mime_type="text/plain",
        entity_type="contact",
        entity_id=entity_id,
    )
    store = storage_svc.get_blobstore()
    assert attachment.bucket == "attachments"
    assert attachment.file_size == 5
    assert store.read_bytes("attachments", attachment.file_path) == b"hello"

    rows = await attachment_svc.list_attachments(db, entity_type="contact", entity_id=entity_id)
    assert [a.id for a in rows] == [attachment.id]

    await attachment_svc.delete_attachment(db, attachment.id)
    assert not store.exists("attachments", attachment.file_path)
    assert await attachment_svc.list_attachments(db) == []


@pytest.mark.asyncio
async def test_bucket_policy_rejects_upload(db: AsyncSession):
    result = await storage_svc.create_storage_buckets(db)
    assert result["created"] == ["service-sheets", "parts-diagrams", "appliance-images"]
    assert result["errors"] == []

    again = await storage_svc.create_storage_buckets(db)
    assert again["created"] == []
    assert len(again["existing"]) == 3

    with pytest.raises(attachment_svc.UploadRejected, match="File type text/plain is not allowed"):
        await attachment_svc.upload_service_sheet(
            db, service_id=uuid.uuid4(), data=b"x", file_name="a.txt", mime_type="text/plain"
        )

    big = b"0" * (5 * storage_svc.MB + 1)
    with pytest.raises(attachment_svc.UploadRejected, match="File exceeds the 5 MB limit for bucket appliance-images"):
        await attachment_svc.upload_attachment(
            db, data=big, file_name="a.png", mime_type="image/png",
            entity_type="appliance", entity_id=uuid.uuid4(), bucket="appliance-images",
        )


@pytest.mark.asyncio
async def test_tag_filter_requires_all_tags(db: AsyncSession):
    service_id = uuid.uuid4()
    both = await attachment_svc.upload_service_sheet(
        db, service_id=service_id, data=b"1", file_name="a.pdf", mime_type="application/pdf",
        tags=["whirlpool", "dryer"],
    )
    await attachment_svc.upload_service_sheet(
        db, service_id=service_id, data=b"2", file_name="b.pdf", mime_type="application/pdf",
        tags=["whirlpool"],
    )

    rows = await attachment_svc.list_attachments(
        db, entity_type=attachment_svc.SERVICE_SHEET, tags=["dryer", "whirlpool"]
    )
    assert [a.id for a in rows] == [both.id]


@pytest.mark.asyncio
async def test_update_attachment_renames(db: AsyncSession):
    attachment = await attachment_svc.upload_attachment(
        db, data=b"x", file_name="scan.pdf", mime_type="application/pdf",
        entity_type="service", entity_id=uuid.uuid4(),
    )
    updated = await attachment_svc.update_attachment(
        db, attachment.id, title="Invoice scan", tags="billing"
    )
    assert updated.file_name == "Invoice scan"
    assert updated.tags == ["billing"]
    assert updated.file_path == attachment.file_path


# ── Routes ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_attachment_routes(client: AsyncClient):
    entity_id = str(uuid.uuid4())

    resp = await client.post("/api/attachments", files=_pdf(), data={"entity_type": "service"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "File, entity_type, and entity_id are required"

    resp = await client.post(
        "/api/attachments", files=_pdf(), data={"entity_type": "service", "entity_id": entity_id}
    )
    created = resp.json()["data"]
    assert created["mime_type"] == "application/pdf"
    assert created["url"] == f"http://test/storage/attachments/{created['file_path']}"

    resp = await client.get("/api/attachments", params={"entity_type": "service", "entity_id": entity_id})
    assert [a["id"] for a in resp.json()["data"]] == [created["id"]]

    resp = await client.delete("/api/attachments", params={"id": created["id"]})
    assert resp.status_code == 200
    resp = await client.delete("/api/attachments", params={"id": created["id"]})
    assert resp.status_code == 500


@pytest.mark.asyncio
async def test_service_sheet_routes_are_audited(client: AsyncClient, db: AsyncSession, make_headers):
    headers = await make_headers("technician", user_id="tech-7")
    service_id = str(uuid.uuid4())

    resp = await client.post("/api/service-sheets", files=_pdf(), headers=headers)
    assert resp.json()["error"] == "File and service_id are required"

    resp = await client.post(
        "/api/service-sheets",
        files=_pdf("whirlpool.pdf"),
        data={"service_id": service_id, "tags": "whirlpool, dryer", "title": "Whirlpool dryer"},
        headers=headers,
    )
    sheet = resp.json()["data"]
    assert sheet["file_name"] == "Whirlpool dryer"
    assert sheet["tags"] == ["whirlpool", "dryer"]
    assert sheet["uploaded_by"] == "tech-7"
    assert sheet["upload_source"] == "web"
    assert sheet["url"].startswith("http://test/storage/service-sheets/service-sheets/")

    resp = await client.get("/api/service-sheets", params={"tags": "dryer"}, headers=headers)
    assert [s["id"] for s in resp.json()["data"]] == [sheet["id"]]
    resp = await client.get("/api/service-sheets", params={"tags": "lg"}, headers=headers)
    assert resp.json()["data"] == []

    resp = await client.put(
        "/api/service-sheets", json={"id": sheet["id"], "description": "Heating element"}, headers=headers
    )
    assert resp.json()["data"]["description"] == "Heating element"

    # Technicians cannot delete.
    resp = await client.delete("/api/service-sheets", params={"id": sheet["id"]}, headers=headers)
    assert resp.status_code == 403

    entries = (
        await db.execute(select(AuditLog).where(AuditLog.resource_type == "service_sheet"))
    ).scalars().all()
    assert sorted(e.action for e in entries) == ["create", "read", "read", "update"]
    assert all(e.user_id == "tech-7" for e in entries)


@pytest.mark.asyncio
async def test_sheet_type_is_checked(client: AsyncClient, admin_headers):
    resp = await client.post(
        "/api/attachments", files=_pdf(), data={"entity_type": "service", "entity_id": str(uuid.uuid4())}
    )
    generic_id = resp.json()["data"]["id"]

    resp = await client.delete("/api/service-sheets", params={"id": generic_id}, headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "Attachment not found"


@pytest.mark.asyncio
async def test_parts_diagram_gating(client: AsyncClient, make_headers):
    customer = await make_headers("customer")
    technician = await make_headers("technician")
    type_id = str(uuid.uuid4())

    resp = await client.post(
        "/api/parts-diagrams", files=_pdf(), data={"appliance_type_id": type_id}, headers=customer
    )
    assert resp.status_code == 403

    resp = await client.post(
        "/api/parts-diagrams", files=_pdf("diagram.pdf"), data={"appliance_type_id": type_id}, headers=technician
    )
    diagram = resp.json()["data"]
    assert diagram["entity_type"] == "parts_diagram"
    assert diagram["bucket"] == "parts-diagrams"

    resp = await client.get("/api/parts-diagrams", params={"appliance_type_id": type_id}, headers=customer)
    assert [d["id"] for d in resp.json()["data"]] == [diagram["id"]]


@pytest.mark.asyncio
async def test_storage_bucket_admin(client: AsyncClient, make_headers, admin_headers):
    csr = await make_headers("csr")
    resp = await client.get("/api/admin/storage-buckets", headers=csr)
    assert resp.status_code == 403

    resp = await client.post("/api/admin/storage-buckets", headers=admin_headers)
    assert resp.json()["data"]["created"] == ["service-sheets", "parts-diagrams", "appliance-images"]

    resp = await client.get("/api/admin/storage-buckets", headers=admin_headers)
    body = resp.json()
    assert [b["name"] for b in body["data"]] == ["appliance-images", "parts-diagrams", "service-sheets"]
    assert len(body["defaults"]) == 3

    resp = await client.post(
        "/api/service-sheets",
        files={"file": ("notes.txt", b"hi", "text/plain")},
        data={"service_id": str(uuid.uuid4())},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "File type text/plain is not allowed in bucket service-sheets"
