"""Custom field definitions (EAV pattern) and per-contact values."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDMixin, TimestampMixin
from .contact import Contact

FIELD_TYPES = ("text", "number", "date", "select", "textarea")


class CustomFieldDefinition(UUIDMixin, TimestampMixin, Base):
    """Defines a custom contact field."""

    __tablename__ = "custom_field_definition"

    name: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(20))  # text, number, date, select, textarea
    category: Mapped[str] = mapped_column(String(100), default="General")
    order: Mapped[int] = mapped_column("order", Integer, default=0)
    required: Mapped[bool] = mapped_column(Boolean, default=False)
    options: Mapped[list | None] = mapped_column(JSON, default=None)  # select choices

    def __repr__(self) -> str:
        return f"<CustomFieldDefinition {self.name!r}>"


class CustomFieldValue(UUIDMixin, TimestampMixin, Base):
    """One value per (contact, field definition)."""

    __tablename__ = "custom_field_value"
    __table_args__ = (
        UniqueConstraint("contact_id", "field_definition_id", name="uq_cfv_contact_definition"),
    )

    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="CASCADE"), index=True
    )
    field_definition_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("custom_field_definition.id", ondelete="CASCADE"), index=True
    )
    value: Mapped[str | None] = mapped_column(Text, default=None)

    contact: Mapped[Contact] = relationship(back_populates="custom_field_values")
    field_definition: Mapped[CustomFieldDefinition] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<CustomFieldValue contact={self.contact_id} def={self.field_definition_id}>"
