"""Invoice and Payment models."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDMixin, TimestampMixin
from .contact import Contact
from .pipeline import Deal


class Invoice(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "invoice"

    deal_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("deal.id", ondelete="SET NULL"), default=None, index=True
    )
    contact_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="SET NULL"), default=None, index=True
    )
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True)
    amount: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(20), default="draft")  # draft, sent, paid, void
    due_date: Mapped[date | None] = mapped_column(Date, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    deal: Mapped[Deal | None] = relationship(lazy="selectin")
    contact: Mapped[Contact | None] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} {self.amount}>"


class Payment(UUIDMixin, TimestampMixin, Base):
    """A Stripe payment attempt (payment intent or checkout session)."""

    __tablename__ = "payment"

    invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("invoice.id", ondelete="SET NULL"), default=None, index=True
    )
    deal_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("deal.id", ondelete="SET NULL"), default=None, index=True
    )
    contact_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="SET NULL"), default=None, index=True
    )
    amount: Mapped[float] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(10), default="usd")
    method: Mapped[str] = mapped_column(String(20), default="payment_intent")  # payment_intent, checkout
    status: Mapped[str] = mapped_column(String(20), default="pending")
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(100), default=None, index=True)
    stripe_checkout_session_id: Mapped[str | None] = mapped_column(String(100), default=None)
    created_by: Mapped[str | None] = mapped_column(String(100), default=None)

    invoice: Mapped[Invoice | None] = relationship(lazy="selectin")
    deal: Mapped[Deal | None] = relationship(lazy="selectin")
    contact: Mapped[Contact | None] = relationship(lazy="selectin")
