"""Invoice numbering and Stripe payment tests."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
import stripe
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config import settings
from crm.models.billing import Invoice
from crm.models.contact import Contact
from crm.services import billing_svc


@pytest.fixture
def fake_stripe(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_test_123")
    calls = {}

    def intent_create(**kwargs):
        calls["intent"] = kwargs
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret")

    def session_create(**kwargs):
        calls["session"] = kwargs
        return SimpleNamespace(id="cs_123", url="https://checkout.stripe.test/cs_123")

    monkeypatch.setattr(stripe.PaymentIntent, "create", intent_create)
    monkeypatch.setattr(stripe.checkout.Session, "create", session_create)
    return calls


@pytest.mark.asyncio
async def test_invoice_numbers_increment(db: AsyncSession, contact: Contact):
    year = datetime.now(timezone.utc).year
    first = await billing_svc.create_invoice(db, contact_id=contact.id, amount=120.0)
    second = await billing_svc.create_invoice(db, contact_id=contact.id, amount=80.5)

    assert first.invoice_number == f"INV-{year}-00001"
    assert second.invoice_number == f"INV-{year}-00002"
    assert first.status == "draft"
    assert first.contact.name == "Jane Doe"


@pytest.mark.asyncio
async def test_invoice_number_ignores_other_years(db: AsyncSession):
    year = datetime.now(timezone.utc).year
    db.add_all(
        [
            Invoice(invoice_number=f"INV-{year - 1}-00042", amount=1.0),
            Invoice(invoice_number=f"INV-{year}-00007", amount=1.0),
        ]
    )
    await db.commit()
    assert await billing_svc.generate_invoice_number(db) == f"INV-{year}-00008"


@pytest.mark.asyncio
async def test_invoice_number_compares_sequences_numerically(db: AsyncSession):
    year = datetime.now(timezone.utc).year
    db.add_all(
        [
            Invoice(invoice_number=f"INV-{year}-9", amount=1.0),
            Invoice(invoice_number=f"INV-{year}-00010", amount=1.0),
        ]
    )
    await db.commit()
    assert await billing_svc.generate_invoice_number(db) == f"INV-{year}-00011"


@pytest.mark.asyncio
async def test_invoice_routes(client: AsyncClient, contact: Contact):
    resp = await client.post("/api/invoices", json={"amount": 0})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Valid amount is required"

    resp = await client.post(
        "/api/invoices",
        json={"contactId": str(contact.id), "amount": 250, "dueDate": "2026-12-01"},
    )
    invoice = resp.json()["data"]
    assert invoice["due_date"] == "2026-12-01"
    assert invoice["contact"]["id"] == str(contact.id)

    resp = await client.put("/api/invoices", json={"id": invoice["id"], "status": "sent"})
    assert resp.json()["data"]["status"] == "sent"

    resp = await client.get("/api/invoices", params={"contact_id": str(contact.id)})
    assert [i["invoice_number"] for i in resp.json()["data"]] == [invoice["invoice_number"]]


def test_cents_rounding():
    assert billing_svc._to_cents(19.99) == 1999
    assert billing_svc._to_cents(0.1 + 0.2) == 30


@pytest.mark.asyncio
async def test_payment_not_configured(client: AsyncClient, make_headers):
    headers = await make_headers("csr")
    resp = await client.post("/api/payments", json={"amount": 50}, headers=headers)
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Payment processing not configured"}


@pytest.mark.asyncio
async def test_payment_requires_user(client: AsyncClient):
    resp = await client.post("/api/payments", json={"amount": 50})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_payment_intent_recorded(client: AsyncClient, make_headers, fake_stripe, contact: Contact):
    headers = await make_headers("csr", user_id="csr-1")
    resp = await client.post(
        "/api/payments",
        json={"amount": 49.95, "contactId": str(contact.id)},
        headers=headers,
    )
    body = resp.json()["data"]
    assert body["clientSecret"] == "pi_123_secret"
    assert body["paymentIntentId"] == "pi_123"
    assert body["payment"]["status"] == "pending"
    assert body["payment"]["method"] == "payment_intent"

    intent = fake_stripe["intent"]
    assert intent["amount"] == 4995
    assert intent["currency"] == "usd"
    assert intent["metadata"] == {"user_id": "csr-1", "contact_id": str(contact.id)}

    resp = await client.get("/api/payments", params={"contact_id": str(contact.id)}, headers=headers)
    assert [p["stripe_payment_intent_id"] for p in resp.json()["data"]] == ["pi_123"]


@pytest.mark.asyncio
async def test_checkout_session(db: AsyncSession, fake_stripe):
    payment, client_data = await billing_svc.start_payment(db, amount=100, user_id="u1", checkout=True)

    assert client_data == {"checkoutUrl": "https://checkout.stripe.test/cs_123"}
    assert payment.method == "checkout"
    assert payment.stripe_checkout_session_id == "cs_123"
    session = fake_stripe["session"]
    assert session["line_items"][0]["price_data"]["unit_amount"] == 10000
    assert session["success_url"].endswith("?payment=success")
