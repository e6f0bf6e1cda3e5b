"""Invoice and payment schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import Field

from .common import ORMModel, RequestModel
from .contact import ContactBrief
from .pipeline import DealBrief


class InvoiceCreate(RequestModel):
    deal_id: uuid.UUID | None = Field(default=None, alias="dealId")
    contact_id: uuid.UUID | None = Field(default=None, alias="contactId")
    amount: float | None = None
    due_date: date | None = Field(default=None, alias="dueDate")
    notes: str | None = None


class InvoiceUpdate(RequestModel):
    id: uuid.UUID | None = None
    status: str | None = None
    amount: float | None = None
    due_date: date | None = Field(default=None, alias="dueDate")
    notes: str | None = None


class InvoiceBrief(ORMModel):
    id: uuid.UUID
    invoice_number: str
    amount: float
    status: str


class InvoiceRead(InvoiceBrief):
    deal_id: uuid.UUID | None = None
    contact_id: uuid.UUID | None = None
    due_date: date | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deal: DealBrief | None = None
    contact: ContactBrief | None = None


class PaymentCreate(RequestModel):
    invoice_id: uuid.UUID | None = Field(default=None, alias="invoiceId")
    deal_id: uuid.UUID | None = Field(default=None, alias="dealId")
    contact_id: uuid.UUID | None = Field(default=None, alias="contactId")
    amount: float | None = None
    type: str | None = None  # "checkout" or embedded payment intent


class PaymentRead(ORMModel):
    id: uuid.UUID
    invoice_id: uuid.UUID | None = None
    deal_id: uuid.UUID | None = None
    contact_id: uuid.UUID | None = None
    amount: float
    currency: str
    method: str
    status: str
    stripe_payment_intent_id: str | None = None
    stripe_checkout_session_id: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    invoice: InvoiceBrief | None = None
    deal: DealBrief | None = None
    contact: ContactBrief | None = None
