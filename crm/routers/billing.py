"""Invoice and payment routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.billing import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceUpdate,
    PaymentCreate,
    PaymentRead,
)
from ..schemas.common import dump, dump_many, ok
from ..security.auth import AuthUser
from ..security.deps import require_user
from ..services import billing_svc

router = APIRouter(tags=["billing"])


@router.get("/api/invoices")
async def invoice_list(
    db: AsyncSession = Depends(get_db),
    id: uuid.UUID | None = None,
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
):
    if id:
        return ok(dump(InvoiceRead, await billing_svc.get_invoice(db, id)))
    rows = await billing_svc.list_invoices(db, deal_id=deal_id, contact_id=contact_id)
    return ok(dump_many(InvoiceRead, rows))


@router.post("/api/invoices")
async def invoice_create(body: InvoiceCreate, db: AsyncSession = Depends(get_db)):
    if not body.amount or body.amount <= 0:
        raise HTTPException(status_code=400, detail="Valid amount is required")
    invoice = await billing_svc.create_invoice(db, **body.model_dump())
    return ok(dump(InvoiceRead, invoice))


@router.put("/api/invoices")
async def invoice_update(body: InvoiceUpdate, db: AsyncSession = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="ID is required")
    invoice = await billing_svc.update_invoice(db, body.id, **body.provided("id"))
    return ok(dump(InvoiceRead, invoice))


@router.delete("/api/invoices")
async def invoice_delete(id: uuid.UUID | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="ID is required")
    await billing_svc.delete_invoice(db, id)
    return ok()


# ── Payments ───────────────────────────────────────────────────────────────

@router.get("/api/payments")
async def payment_list(
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
    invoice_id: uuid.UUID | None = None,
    deal_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
):
    rows = await billing_svc.list_payments(
        db, invoice_id=invoice_id, deal_id=deal_id, contact_id=contact_id
    )
    return ok(dump_many(PaymentRead, rows))


@router.post("/api/payments")
async def payment_create(
    body: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthUser = Depends(require_user),
):
    if not body.amount or body.amount <= 0:
        raise HTTPException(status_code=400, detail="Valid amount is required")
    payment, client = await billing_svc.start_payment(
        db,
        amount=body.amount,
        user_id=user.id,
        checkout=body.type == "checkout",
        invoice_id=body.invoice_id,
        deal_id=body.deal_id,
        contact_id=body.contact_id,
    )
    return ok({**client, "payment": dump(PaymentRead, payment)})
