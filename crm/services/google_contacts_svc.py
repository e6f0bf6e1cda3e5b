"""Google Contacts (People API v1) client and CRM contact sync."""

from __future__ import annotations

import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from . import contact_svc, google_svc

log = logging.getLogger(__name__)

PEOPLE_API = "https://people.googleapis.com/v1"
PERSON_FIELDS = "names,emailAddresses,phoneNumbers,organizations"
PAGE_SIZE = 100


def build_person(
    *,
    name: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    company: str | None = None,
) -> dict:
    """People API person body from flat contact fields."""
    person: dict = {}
    if name or first_name or last_name:
        parts = (name or "").split(" ")
        person["names"] = [
            {
                "givenName": first_name or parts[0],
                "familyName": last_name or " ".join(parts[1:]),
                "displayName": name or f"{first_name or ''} {last_name or ''}".strip(),
            }
        ]
    if email:
        person["emailAddresses"] = [{"value": email, "type": "work"}]
    if phone:
        person["phoneNumbers"] = [{"value": phone, "type": "work"}]
    if company:
        person["organizations"] = [{"name": company}]
    return person


def person_to_contact(person: dict) -> dict:
    """Flatten a person into CRM contact fields (first entry of each list)."""
    names = person.get("names") or [{}]
    display = names[0].get("displayName") or " ".join(
        p for p in (names[0].get("givenName"), names[0].get("familyName")) if p
    )
    return {
        "name": display or None,
        "email": ((person.get("emailAddresses") or [{}])[0]).get("value"),
        "phone": ((person.get("phoneNumbers") or [{}])[0]).get("value"),
        "company": ((person.get("organizations") or [{}])[0]).get("name"),
    }


# ── People API ─────────────────────────────────────────────────────────────

async def list_contacts(access_token: str, page_size: int = PAGE_SIZE, page_token: str | None = None) -> dict:
    params = {"personFields": PERSON_FIELDS, "pageSize": page_size}
    if page_token:
        params["pageToken"] = page_token
    resp = await google_svc.api_request(
        access_token, "GET", f"{PEOPLE_API}/people/me/connections", params=params
    )
    data = resp.json()
    return {"contacts": data.get("connections", []), "nextPageToken": data.get("nextPageToken")}


async def get_contact(access_token: str, resource_name: str) -> dict | None:
    try:
        resp = await google_svc.api_request(
            access_token, "GET", f"{PEOPLE_API}/{resource_name}", params={"personFields": PERSON_FIELDS}
        )
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            return None
        raise
    return resp.json()


async def create_contact(access_token: str, **fields) -> str:
    """Create a Google contact and return its resource name."""
    resp = await google_svc.api_request(
        access_token, "POST", f"{PEOPLE_API}/people:createContact", json=build_person(**fields)
    )
    return resp.json().get("resourceName", "")


async def update_contact(
    access_token: str,
    resource_name: str,
    *,
    name: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    company: str | None = None,
) -> str:
    """Merge the given fields into an existing contact.

    Only the first email, phone and organization entries are replaced; the
    rest of the person is sent back unchanged.
    """
    existing = await get_contact(access_token, resource_name)
    if existing is None:
        raise LookupError("Contact not found")

    person = {
        "etag": existing.get("etag"),
        "names": existing.get("names") or [],
        "emailAddresses": existing.get("emailAddresses") or [],
        "phoneNumbers": existing.get("phoneNumbers") or [],
        "organizations": existing.get("organizations") or [],
    }
    if name or first_name or last_name:
        current = person["names"][0] if person["names"] else {}
        parts = (name or "").split(" ")
        person["names"] = [
            {
                "givenName": first_name or (parts[0] if name else "") or current.get("givenName", ""),
                "familyName": last_name or " ".join(parts[1:]) or current.get("familyName", ""),
                "displayName": name
                or f"{first_name or ''} {last_name or ''}".strip()
                or current.get("displayName", ""),
            }
        ]
    for key, attr, value in (
        ("emailAddresses", "value", email),
        ("phoneNumbers", "value", phone),
        ("organizations", "name", company),
    ):
        if not value:
            continue
        if person[key]:
            person[key][0] = {**person[key][0], attr: value}
        else:
            entry = {attr: value}
            if key != "organizations":
                entry["type"] = "work"
            person[key].append(entry)

    resp = await google_svc.api_request(
        access_token,
        "PATCH",
        f"{PEOPLE_API}/{resource_name}:updateContact",
        params={"updatePersonFields": PERSON_FIELDS},
        json=person,
    )
    return resp.json().get("resourceName", resource_name)


async def delete_contact(access_token: str, resource_name: str) -> None:
    await google_svc.api_request(access_token, "DELETE", f"{PEOPLE_API}/{resource_name}:deleteContact")


async def search_contacts(access_token: str, query: str) -> list[dict]:
    resp = await google_svc.api_request(
        access_token,
        "GET",
        f"{PEOPLE_API}/people:searchContacts",
        params={"query": query, "readMask": PERSON_FIELDS},
    )
    return [r["person"] for r in resp.json().get("results", []) if r.get("person")]


async def all_contacts(access_token: str) -> list[dict]:
    people: list[dict] = []
    page_token = None
    while True:
        page = await list_contacts(access_token, PAGE_SIZE, page_token)
        people.extend(page["contacts"])
        page_token = page["nextPageToken"]
        if not page_token:
            return people


# ── Sync ───────────────────────────────────────────────────────────────────

async def sync_to_google(
    access_token: str,
    contacts: list[dict],
    contact_map: dict[str, str] | None = None,
) -> dict[str, int]:
    """Push CRM contacts to Google.

    `contact_map` maps CRM contact id to Google resource name; mapped
    contacts are updated, the rest created. A failure on one contact is
    counted and the sync carries on.
    """
    result = {"created": 0, "updated": 0, "errors": 0}
    contact_map = contact_map or {}
    for contact in contacts:
        fields = {k: contact.get(k) for k in ("name", "email", "phone", "company")}
        resource_name = contact_map.get(str(contact.get("id")))
        try:
            if resource_name:
                await update_contact(access_token, resource_name, **fields)
                result["updated"] += 1
            else:
                await create_contact(access_token, **fields)
                result["created"] += 1
        except (httpx.HTTPError, LookupError) as exc:
            log.warning("Error syncing contact %s to Google: %s", contact.get("id"), exc)
            result["errors"] += 1
    return result


async def match_contacts(access_token: str, contacts: list[dict]) -> list[dict]:
    """Pair CRM contacts with Google contacts sharing the same email."""
    by_email: dict[str, dict] = {}
    for person in await all_contacts(access_token):
        email = person_to_contact(person)["email"]
        if email:
            by_email[email.lower()] = person

    matches = []
    for contact in contacts:
        person = by_email.get((contact.get("email") or "").lower())
        if person is not None:
            matches.append(
                {
                    "crm_contact_id": contact.get("id"),
                    "google_resource_name": person.get("resourceName", ""),
                    "action": "matched",
                }
            )
    return matches


async def import_to_crm(db: AsyncSession, access_token: str) -> dict[str, int]:
    """Upsert every Google contact into the CRM, deduplicating by email then phone."""
    people = await all_contacts(access_token)
    return await contact_svc.import_contacts(db, [person_to_contact(p) for p in people])
