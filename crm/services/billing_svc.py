"""Invoices and Stripe payments."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.billing import Invoice, Payment

log = logging.getLogger(__name__)


class PaymentsNotConfigured(Exception):
    """Raised when Stripe credentials are missing."""


# ── Invoices ───────────────────────────────────────────────────────────────

async def generate_invoice_number(db: AsyncSession) -> str:
    """Next `INV-<year>-<seq>` number.

    Read-then-insert: two concurrent creates can draw the same number, in
    which case the unique constraint rejects the second insert.
    """
    year = datetime.now(timezone.utc).year
    prefix = f"INV-{year}-"
    stmt = select(Invoice.invoice_number).where(Invoice.invoice_number.like(f"{prefix}%"))
    numbers = (await db.execute(stmt)).scalars().all()
    # Compare numerically: "INV-2026-9" sorts after "INV-2026-00010" as text.
    seqs = [int(n[len(prefix):]) for n in numbers if n[len(prefix):].isdigit()]
    return f"{prefix}{max(seqs, default=0) + 1:05d}"


async def list_invoices(
    db: AsyncSession,
    *,
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
) -> list[Invoice]:
    stmt = select(Invoice)
    if deal_id:
        stmt = stmt.where(Invoice.deal_id == deal_id)
    if contact_id:
        stmt = stmt.where(Invoice.contact_id == contact_id)
    stmt = stmt.order_by(Invoice.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_invoice(db: AsyncSession, invoice_id: uuid.UUID) -> Invoice:
    stmt = select(Invoice).where(Invoice.id == invoice_id)
    return (await db.execute(stmt)).scalar_one()


async def create_invoice(db: AsyncSession, **kwargs) -> Invoice:
    invoice_number = await generate_invoice_number(db)
    invoice = Invoice(invoice_number=invoice_number, status="draft", **kwargs)
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


async def update_invoice(db: AsyncSession, invoice_id: uuid.UUID, **kwargs) -> Invoice:
    invoice = await get_invoice(db, invoice_id)
    for key, value in kwargs.items():
        setattr(invoice, key, value)
    invoice.updated_at = func.now()
    await db.commit()
    await db.refresh(invoice)
    return invoice


async def delete_invoice(db: AsyncSession, invoice_id: uuid.UUID) -> None:
    invoice = await get_invoice(db, invoice_id)
    await db.delete(invoice)
    await db.commit()


# ── Payments ───────────────────────────────────────────────────────────────

def _to_cents(amount: float) -> int:
    return int(round(amount * 100))


def _stripe():
    if not settings.stripe_configured:
        raise PaymentsNotConfigured("Payment processing not configured")
    import stripe

    stripe.api_key = settings.stripe_secret_key
    return stripe


def create_payment_intent(amount: float, currency: str, metadata: dict[str, str]) -> tuple[str, str]:
    """Returns (client_secret, payment_intent_id)."""
    stripe = _stripe()
    intent = stripe.PaymentIntent.create(
        amount=_to_cents(amount),
        currency=currency,
        metadata=metadata,
        automatic_payment_methods={"enabled": True},
    )
    return intent.client_secret or "", intent.id


def create_checkout_session(
    amount: float,
    currency: str,
    success_url: str,
    cancel_url: str,
    metadata: dict[str, str],
) -> tuple[str, str]:
    """Returns (checkout_url, session_id)."""
    stripe = _stripe()
    session = stripe.checkout.Session.create(
        payment_method_types=["card"],
        line_items=[
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": "Invoice Payment"},
                    "unit_amount": _to_cents(amount),
                },
                "quantity": 1,
            }
        ],
        mode="payment",
        success_url=success_url,
        cancel_url=cancel_url,
        metadata=metadata,
    )
    return session.url or "", session.id


async def start_payment(
    db: AsyncSession,
    *,
    amount: float,
    user_id: str,
    checkout: bool = False,
    invoice_id: uuid.UUID | None = None,
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
) -> tuple[Payment, dict[str, str]]:
    """Create the Stripe object, record a pending Payment, return client data."""
    currency = settings.stripe_currency
    metadata = {"user_id": user_id}
    if invoice_id:
        metadata["invoice_id"] = str(invoice_id)
    if deal_id:
        metadata["deal_id"] = str(deal_id)
    if contact_id:
        metadata["contact_id"] = str(contact_id)

    payment = Payment(
        invoice_id=invoice_id,
        deal_id=deal_id,
        contact_id=contact_id,
        amount=amount,
        currency=currency,
        created_by=user_id,
    )

    if checkout:
        base = f"{settings.site_url.rstrip('/')}/pipeline/{deal_id or ''}"
        url, session_id = create_checkout_session(
            amount,
            currency,
            f"{base}?payment=success",
            f"{base}?payment=cancelled",
            metadata,
        )
        payment.method = "checkout"
        payment.stripe_checkout_session_id = session_id
        client = {"checkoutUrl": url}
    else:
        client_secret, intent_id = create_payment_intent(amount, currency, metadata)
        payment.method = "payment_intent"
        payment.stripe_payment_intent_id = intent_id
        client = {"clientSecret": client_secret, "paymentIntentId": intent_id}

    db.add(payment)
    await db.commit()
    await db.refresh(payment)
    log.info("Started %s payment %s for %.2f %s", payment.method, payment.id, amount, currency)
    return payment, client


async def list_payments(
    db: AsyncSession,
    *,
    invoice_id: uuid.UUID | None = None,
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
) -> list[Payment]:
    stmt = select(Payment)
    if invoice_id:
        stmt = stmt.where(Payment.invoice_id == invoice_id)
    if deal_id:
        stmt = stmt.where(Payment.deal_id == deal_id)
    if contact_id:
        stmt = stmt.where(Payment.contact_id == contact_id)
    stmt = stmt.order_by(Payment.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())
