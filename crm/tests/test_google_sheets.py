"""Google Sheets export, import and template tests."""

from __future__ import annotations

import json

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crm.models.auth import AuditLog
from crm.models.contact import Contact
from crm.services import sheets_svc


@pytest.mark.asyncio
async def test_export_creates_spreadsheet(google_api):
    google_api.on("POST", "sheets.googleapis.com/v4/spreadsheets", {"spreadsheetId": "ss-1"})
    google_api.on("PUT", "/values/", {})

    spreadsheet_id = await sheets_svc.export_rows("at-1", [["Name"], ["Jane"]], sheet_name="Leads")
    assert spreadsheet_id == "ss-1"

    create = json.loads(google_api.requests[0].content)
    assert create["properties"]["title"] == "Leads"
    write = google_api.sent("PUT", "/ss-1/values/Leads!A1")[0]
    assert write.url.params["valueInputOption"] == "USER_ENTERED"
    assert json.loads(write.content) == {"values": [["Name"], ["Jane"]]}
    assert write.headers["Authorization"] == "Bearer at-1"


@pytest.mark.asyncio
async def test_export_appends_to_existing(google_api):
    google_api.on("POST", ":append", {})

    assert await sheets_svc.export_rows("at-1", [["x"]], spreadsheet_id="ss-2", append=True) == "ss-2"
    assert len(google_api.sent("POST", "/ss-2/values/Sheet1!A1:append")) == 1


@pytest.mark.asyncio
async def test_create_template_formats_header(google_api):
    google_api.on("POST", ":batchUpdate", {})
    google_api.on("POST", "sheets.googleapis.com/v4/spreadsheets", {"spreadsheetId": "tpl-1"})
    google_api.on("PUT", "/values/", {})

    assert await sheets_svc.create_template("at-1", "services") == "tpl-1"
    header = json.loads(google_api.sent("PUT", "/tpl-1/values/Data!A1")[0].content)
    assert header["values"][0][:3] == ["Title", "Contact", "Appliance"]
    batch = json.loads(google_api.sent("POST", ":batchUpdate")[0].content)
    assert batch["requests"][0]["repeatCell"]["cell"]["userEnteredFormat"]["textFormat"] == {"bold": True}

    with pytest.raises(ValueError):
        await sheets_svc.create_template("at-1", "invoices")


def test_rows_to_records_skips_blank_rows():
    rows = [["Name", "Email Address"], ["Jane", "jane@example.com"], ["", ""]]
    assert sheets_svc.rows_to_records(rows) == [{"name": "Jane", "email_address": "jane@example.com"}]
    assert sheets_svc.rows_to_records([]) == []


@pytest.mark.asyncio
async def test_entity_rows_for_contacts(db: AsyncSession, contact: Contact):
    rows = await sheets_svc.entity_rows(db, "contacts")
    assert rows[0] == sheets_svc.TEMPLATES["contacts"][1]
    assert rows[1][:4] == ["Jane Doe", "jane@example.com", "+15550001111", ""]


@pytest.mark.asyncio
async def test_export_route_with_entity(client: AsyncClient, google_headers, google_api, contact: Contact, db: AsyncSession):
    google_api.on("POST", "sheets.googleapis.com/v4/spreadsheets", {"spreadsheetId": "ss-9"})
    google_api.on("PUT", "/values/", {})

    resp = await client.post(
        "/api/integrations/google/sheets",
        json={"action": "export", "entity": "contacts"},
        headers=google_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == {"spreadsheetId": "ss-9"}
    values = json.loads(google_api.sent("PUT", "/values/")[0].content)["values"]
    assert values[1][0] == "Jane Doe"

    logs = (await db.execute(select(AuditLog).where(AuditLog.resource_type == "google_sheets"))).scalars().all()
    assert [(a.action, a.resource_id) for a in logs] == [("export", "ss-9")]


@pytest.mark.asyncio
async def test_import_route_upserts_contacts(client: AsyncClient, google_headers, google_api, contact: Contact, db: AsyncSession):
    google_api.on(
        "GET",
        "/sheet-1/values/",
        {
            "values": [
                ["Name", "Email", "Phone"],
                ["Jane Smith", "JANE@example.com", ""],
                ["Bob Stone", "bob@example.com", "+15550002222"],
            ]
        },
    )

    resp = await client.post(
        "/api/integrations/google/sheets",
        json={"action": "import", "options": {"spreadsheetId": "sheet-1", "importContacts": True}},
        headers=google_headers,
    )
    body = resp.json()
    assert len(body["data"]) == 3
    assert body["contacts"] == {"created": 1, "updated": 1, "skipped": 0}
    assert len(google_api.sent("GET", "/sheet-1/values/Sheet1!A:Z")) == 1

    db.expire_all()
    names = (await db.execute(select(Contact.name).order_by(Contact.name))).scalars().all()
    assert names == ["Bob Stone", "Jane Smith"]


@pytest.mark.asyncio
async def test_sheets_route_validation(client: AsyncClient, google_headers):
    url = "/api/integrations/google/sheets"

    resp = await client.post(url, json={"action": "export"}, headers=google_headers)
    assert resp.json()["error"] == "Data array is required"

    resp = await client.post(url, json={"action": "import"}, headers=google_headers)
    assert resp.json()["error"] == "Spreadsheet ID is required"

    resp = await client.post(url, json={"action": "template"}, headers=google_headers)
    assert resp.json()["error"] == "Template type is required"

    resp = await client.post(url, json={"action": "nope"}, headers=google_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid action"


@pytest.mark.asyncio
async def test_sheets_route_not_connected(client: AsyncClient, make_headers):
    headers = await make_headers("admin")
    resp = await client.post(
        "/api/integrations/google/sheets", json={"action": "export", "data": [["a"]]}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Google Sheets integration not connected"


@pytest.mark.asyncio
async def test_sheets_route_requires_settings_permission(client: AsyncClient, make_headers, google_api):
    headers = await make_headers("technician")
    resp = await client.post(
        "/api/integrations/google/sheets", json={"action": "export", "data": [["a"]]}, headers=headers
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_spreadsheet_info_route(client: AsyncClient, google_headers, google_api):
    google_api.on(
        "GET",
        "/spreadsheets/ss-1",
        {
            "spreadsheetId": "ss-1",
            "properties": {"title": "Leads"},
            "sheets": [{"properties": {"sheetId": 0, "title": "Sheet1"}}],
        },
    )
    resp = await client.get(
        "/api/integrations/google/sheets", params={"spreadsheet_id": "ss-1"}, headers=google_headers
    )
    assert resp.json()["data"] == {"id": "ss-1", "title": "Leads", "sheets": [{"id": 0, "title": "Sheet1"}]}
