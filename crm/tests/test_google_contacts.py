"""Google Contacts (People API) client and sync tests."""

from __future__ import annotations

import json

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crm.models.contact import Contact
from crm.services import google_contacts_svc

JANE = {
    "resourceName": "people/c1",
    "etag": "etag-1",
    "names": [{"displayName": "Jane Doe", "givenName": "Jane", "familyName": "Doe"}],
    "emailAddresses": [{"value": "jane@example.com", "type": "home"}],
    "phoneNumbers": [{"value": "+15550001111"}],
}
BOB = {
    "resourceName": "people/c2",
    "names": [{"givenName": "Bob", "familyName": "Stone"}],
    "emailAddresses": [{"value": "Bob@Example.com"}],
}


def test_build_person_splits_name():
    person = google_contacts_svc.build_person(name="Mary Ann Lee", email="m@example.com", company="Acme")
    assert person["names"] == [{"givenName": "Mary", "familyName": "Ann Lee", "displayName": "Mary Ann Lee"}]
    assert person["emailAddresses"] == [{"value": "m@example.com", "type": "work"}]
    assert person["organizations"] == [{"name": "Acme"}]
    assert "phoneNumbers" not in person


def test_person_to_contact():
    assert google_contacts_svc.person_to_contact(BOB) == {
        "name": "Bob Stone",
        "email": "Bob@Example.com",
        "phone": None,
        "company": None,
    }
    assert google_contacts_svc.person_to_contact({})["name"] is None


@pytest.mark.asyncio
async def test_update_contact_merges_existing(google_api):
    google_api.on("GET", "people/c1?", JANE)
    google_api.on("PATCH", "people/c1:updateContact", {"resourceName": "people/c1"})

    await google_contacts_svc.update_contact("at-1", "people/c1", email="new@example.com")

    patch = google_api.sent("PATCH", ":updateContact")[0]
    body = json.loads(patch.content)
    assert body["etag"] == "etag-1"
    assert body["names"] == JANE["names"]
    assert body["emailAddresses"] == [{"value": "new@example.com", "type": "home"}]
    assert body["phoneNumbers"] == JANE["phoneNumbers"]
    assert patch.url.params["updatePersonFields"] == google_contacts_svc.PERSON_FIELDS


@pytest.mark.asyncio
async def test_update_missing_contact(google_api):
    with pytest.raises(LookupError):
        await google_contacts_svc.update_contact("at-1", "people/missing", name="X")


@pytest.mark.asyncio
async def test_sync_to_google_counts_each_outcome(google_api):
    def create(request: httpx.Request) -> httpx.Response:
        if json.loads(request.content)["names"][0]["displayName"] == "Broken":
            return httpx.Response(500, json={"error": {"message": "boom"}})
        return httpx.Response(200, json={"resourceName": "people/new"})

    google_api.on("GET", "people/c1?", JANE)
    google_api.on("PATCH", ":updateContact", {"resourceName": "people/c1"})
    google_api.on("POST", "people:createContact", create)

    result = await google_contacts_svc.sync_to_google(
        "at-1",
        [
            {"id": "crm-1", "name": "Jane Doe", "email": "jane@example.com"},
            {"id": "crm-2", "name": "Bob Stone"},
            {"id": "crm-3", "name": "Broken"},
        ],
        {"crm-1": "people/c1"},
    )
    assert result == {"created": 1, "updated": 1, "errors": 1}


@pytest.mark.asyncio
async def test_match_contacts_reads_every_page(google_api):
    def connections(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("pageToken") == "p2":
            return httpx.Response(200, json={"connections": [BOB]})
        return httpx.Response(200, json={"connections": [JANE], "nextPageToken": "p2"})

    google_api.on("GET", "people/me/connections", connections)

    matches = await google_contacts_svc.match_contacts(
        "at-1",
        [
            {"id": "crm-1", "email": "JANE@example.com"},
            {"id": "crm-2", "email": "bob@example.com"},
            {"id": "crm-3", "email": "nobody@example.com"},
        ],
    )
    assert matches == [
        {"crm_contact_id": "crm-1", "google_resource_name": "people/c1", "action": "matched"},
        {"crm_contact_id": "crm-2", "google_resource_name": "people/c2", "action": "matched"},
    ]


@pytest.mark.asyncio
async def test_import_route_upserts_crm_contacts(client: AsyncClient, google_headers, google_api, contact: Contact, db: AsyncSession):
    google_api.on("GET", "people/me/connections", {"connections": [JANE, BOB]})

    resp = await client.post(
        "/api/integrations/google/contacts", json={"action": "import"}, headers=google_headers
    )
    assert resp.json()["data"] == {"created": 1, "updated": 1, "skipped": 0}

    db.expire_all()
    emails = (await db.execute(select(Contact.email).order_by(Contact.email))).scalars().all()
    assert emails == ["Bob@Example.com", "jane@example.com"]


@pytest.mark.asyncio
async def test_create_route(client: AsyncClient, google_headers, google_api):
    google_api.on("POST", "people:createContact", {"resourceName": "people/c9"})
    url = "/api/integrations/google/contacts"

    resp = await client.post(url, json={"action": "create", "email": "x@example.com"}, headers=google_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Name or firstName is required"

    resp = await client.post(
        url, json={"action": "create", "firstName": "Ann", "lastName": "Lee"}, headers=google_headers
    )
    assert resp.json()["data"] == {"resourceName": "people/c9"}
    sent = json.loads(google_api.sent("POST", "people:createContact")[0].content)
    assert sent["names"][0]["displayName"] == "Ann Lee"


@pytest.mark.asyncio
async def test_get_update_delete_routes(client: AsyncClient, google_headers, google_api):
    google_api.on("GET", "people/c1?", JANE)
    google_api.on("DELETE", "people/c1:deleteContact", {})
    url = "/api/integrations/google/contacts"

    resp = await client.get(url, params={"action": "get", "resource_name": "people/c1"}, headers=google_headers)
    assert resp.json()["data"]["etag"] == "etag-1"

    resp = await client.get(url, params={"action": "get", "resource_name": "people/c404"}, headers=google_headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "Contact not found"

    resp = await client.get(url, params={"action": "get"}, headers=google_headers)
    assert resp.json()["error"] == "Invalid action or missing parameters"

    resp = await client.put(url, json={"name": "Jane"}, headers=google_headers)
    assert resp.json()["error"] == "resourceName is required"

    resp = await client.put(url, json={"resourceName": "people/c404", "name": "Jane"}, headers=google_headers)
    assert resp.status_code == 404

    resp = await client.delete(url, params={"resource_name": "people/c1"}, headers=google_headers)
    assert resp.json() == {"success": True}


@pytest.mark.asyncio
async def test_sync_from_google_requires_contacts(client: AsyncClient, google_headers):
    resp = await client.post(
        "/api/integrations/google/contacts", json={"action": "sync_from_google"}, headers=google_headers
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "contacts array is required"


@pytest.mark.asyncio
async def test_delete_requires_contacts_delete(client: AsyncClient, make_headers, google_api):
    headers = await make_headers("csr")
    resp = await client.delete(
        "/api/integrations/google/contacts", params={"resource_name": "people/c1"}, headers=headers
    )
    assert resp.status_code == 403
