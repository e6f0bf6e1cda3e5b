"""Google Sheets export/import over the Sheets v4 REST API."""

from __future__ import annotations

import logging
from datetime import datetime
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from . import contact_svc, google_svc, pipeline_svc, service_svc

log = logging.getLogger(__name__)

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_SHEET = "Sheet1"

TEMPLATES: dict[str, tuple[str, list[str]]] = {
    "contacts": ("Contacts Template", ["Name", "Email", "Phone", "Company", "Created At", "Updated At"]),
    "deals": (
        "Deals Template",
        ["Title", "Contact", "Value", "Stage", "Probability", "Expected Close Date", "Created At", "Updated At"],
    ),
    "services": (
        "Services Template",
        ["Title", "Contact", "Appliance", "Service Date", "Status", "Technician", "Cost", "Created At", "Updated At"],
    ),
}

HEADER_FORMAT = {
    "textFormat": {"bold": True},
    "backgroundColor": {"red": 0.9, "green": 0.9, "blue": 0.9},
}


def _values_url(spreadsheet_id: str, a1_range: str, suffix: str = "") -> str:
    return f"{SHEETS_API}/{spreadsheet_id}/values/{quote(a1_range, safe='!:')}{suffix}"


async def _create_spreadsheet(access_token: str, title: str, sheet_name: str) -> str:
    resp = await google_svc.api_request(
        access_token,
        "POST",
        SHEETS_API,
        json={"properties": {"title": title}, "sheets": [{"properties": {"title": sheet_name}}]},
    )
    spreadsheet_id = resp.json().get("spreadsheetId")
    if not spreadsheet_id:
        raise RuntimeError("Failed to create spreadsheet")
    return spreadsheet_id


async def _write_values(access_token: str, spreadsheet_id: str, a1_range: str, rows: list[list]) -> None:
    await google_svc.api_request(
        access_token,
        "PUT",
        _values_url(spreadsheet_id, a1_range),
        params={"valueInputOption": "USER_ENTERED"},
        json={"values": rows},
    )


async def export_rows(
    access_token: str,
    rows: list[list],
    *,
    spreadsheet_id: str | None = None,
    sheet_name: str | None = None,
    range_: str | None = None,
    append: bool = False,
) -> str:
    """Write rows to a sheet and return the spreadsheet id.

    Without a spreadsheet id a new spreadsheet is created. With one, rows
    overwrite the range, or are appended after the last row when `append`.
    """
    sheet = sheet_name or DEFAULT_SHEET
    target = f"{sheet}!{range_ or 'A1'}"

    if spreadsheet_id is None:
        spreadsheet_id = await _create_spreadsheet(access_token, sheet_name or "CRM Export", sheet)
        await _write_values(access_token, spreadsheet_id, target, rows)
    elif append:
        await google_svc.api_request(
            access_token,
            "POST",
            _values_url(spreadsheet_id, target, ":append"),
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": rows},
        )
    else:
        await _write_values(access_token, spreadsheet_id, target, rows)

    log.info("Exported %d row(s) to spreadsheet %s", len(rows), spreadsheet_id)
    return spreadsheet_id


async def import_rows(
    access_token: str,
    spreadsheet_id: str,
    *,
    range_: str | None = None,
    sheet_name: str | None = None,
) -> list[list]:
    a1_range = range_ or f"{sheet_name or DEFAULT_SHEET}!A:Z"
    resp = await google_svc.api_request(access_token, "GET", _values_url(spreadsheet_id, a1_range))
    return resp.json().get("values", [])


async def create_template(access_token: str, template_type: str, sheet_name: str | None = None) -> str:
    """New spreadsheet with a bold header row for contacts, deals or services."""
    if template_type not in TEMPLATES:
        raise ValueError(f"Unknown template type: {template_type}")
    title, headers = TEMPLATES[template_type]
    sheet = sheet_name or "Data"

    spreadsheet_id = await _create_spreadsheet(access_token, title, sheet)
    await _write_values(access_token, spreadsheet_id, f"{sheet}!A1", [headers])
    await google_svc.api_request(
        access_token,
        "POST",
        f"{SHEETS_API}/{spreadsheet_id}:batchUpdate",
        json={
            "requests": [
                {
                    "repeatCell": {
                        "range": {"sheetId": 0, "startRowIndex": 0, "endRowIndex": 1},
                        "cell": {"userEnteredFormat": HEADER_FORMAT},
                        "fields": "userEnteredFormat(textFormat,backgroundColor)",
                    }
                }
            ]
        },
    )
    return spreadsheet_id


async def get_spreadsheet_info(access_token: str, spreadsheet_id: str) -> dict:
    resp = await google_svc.api_request(access_token, "GET", f"{SHEETS_API}/{spreadsheet_id}")
    data = resp.json()
    return {
        "id": data.get("spreadsheetId"),
        "title": (data.get("properties") or {}).get("title"),
        "sheets": [
            {"id": s["properties"].get("sheetId"), "title": s["properties"].get("title")}
            for s in data.get("sheets", [])
            if s.get("properties")
        ],
    }


# ── CRM data ───────────────────────────────────────────────────────────────

def _cell(value) -> str | float | int:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (int, float)):
        return value
    return str(value)


async def entity_rows(db: AsyncSession, entity: str) -> list[list]:
    """Header row plus one row per record, in the template column order."""
    if entity not in TEMPLATES:
        raise ValueError(f"Unknown template type: {entity}")
    rows: list[list] = [TEMPLATES[entity][1]]

    if entity == "contacts":
        for c in await contact_svc.list_contacts(db):
            rows.append([c.name, c.email, c.phone, c.company, c.created_at, c.updated_at])
    elif entity == "deals":
        for d in await pipeline_svc.list_deals(db):
            rows.append([
                d.title,
                d.contact.name if d.contact else None,
                d.value,
                d.stage.name if d.stage else None,
                d.probability,
                d.expected_close_date,
                d.created_at,
                d.updated_at,
            ])
    else:
        for s in await service_svc.list_services(db):
            rows.append([
                s.title,
                s.contact.name if s.contact else None,
                s.appliance.name if s.appliance else None,
                s.service_date,
                s.status,
                s.technician,
                s.cost,
                s.created_at,
                s.updated_at,
            ])
    return [[_cell(v) for v in row] for row in rows]


def rows_to_records(rows: list[list]) -> list[dict]:
    """Map data rows to dicts keyed by the lower-cased header row."""
    if not rows:
        return []
    keys = [str(h).strip().lower().replace(" ", "_") for h in rows[0]]
    return [dict(zip(keys, row)) for row in rows[1:] if any(str(v).strip() for v in row)]

