"""Service (work order) and ServiceHistory models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .appliance import Appliance
from .base import Base, CreatedAtMixin, UUIDMixin, TimestampMixin
from .contact import Contact

SERVICE_STATUSES = ("scheduled", "in_progress", "completed", "cancelled")
HISTORY_TYPES = ("service", "repair", "maintenance", "inspection")


class Service(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "service"

    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="CASCADE"), index=True
    )
    appliance_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appliance.id", ondelete="SET NULL"), default=None, index=True
    )
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    service_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    status: Mapped[str] = mapped_column(String(20), default="scheduled", index=True)
    technician: Mapped[str | None] = mapped_column(String(200), default=None)
    cost: Mapped[float | None] = mapped_column(Float, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    triage_result: Mapped[dict | None] = mapped_column(JSON, default=None)

    # Relationships
    contact: Mapped[Contact] = relationship(lazy="selectin")
    appliance: Mapped[Appliance | None] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Service {self.title!r} status={self.status}>"


class ServiceHistory(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "service_history"

    contact_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="CASCADE"), index=True
    )
    service_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("service.id", ondelete="SET NULL"), default=None, index=True
    )
    appliance_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appliance.id", ondelete="SET NULL"), default=None, index=True
    )
    type: Mapped[str] = mapped_column(String(20))  # service, repair, maintenance, inspection
    description: Mapped[str] = mapped_column(Text)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    cost: Mapped[float | None] = mapped_column(Float, default=None)
    technician: Mapped[str | None] = mapped_column(String(200), default=None)

    service: Mapped[Service | None] = relationship(lazy="selectin")
    appliance: Mapped[Appliance | None] = relationship(lazy="selectin")
    contact: Mapped[Contact] = relationship(lazy="selectin")
