"""Appliance and ApplianceType models."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDMixin, TimestampMixin
from .contact import Contact


class ApplianceType(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "appliance_type"

    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(100), index=True)
    icon: Mapped[str | None] = mapped_column(String(50), default=None)

    def __repr__(self) -> str:
        return f"<ApplianceType {self.name!r}>"


class Appliance(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "appliance"

    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="CASCADE"), index=True
    )
    appliance_type_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appliance_type.id", ondelete="SET NULL"), default=None
    )
    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(100))
    model_number: Mapped[str | None] = mapped_column(String(100), default=None)
    serial_number: Mapped[str | None] = mapped_column(String(100), default=None)
    brand: Mapped[str | None] = mapped_column(String(100), default=None)
    purchase_date: Mapped[date | None] = mapped_column(Date, default=None)
    install_date: Mapped[date | None] = mapped_column(Date, default=None)
    age_years: Mapped[int | None] = mapped_column(Integer, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    # Relationships
    contact: Mapped[Contact] = relationship(lazy="selectin")
    appliance_type: Mapped[ApplianceType | None] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Appliance {self.name!r}>"
