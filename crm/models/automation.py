"""Automation and AutomationRun models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, OrganizationMixin, UUIDMixin, TimestampMixin


class Automation(UUIDMixin, TimestampMixin, OrganizationMixin, Base):
    """A trigger condition plus an ordered list of actions."""

    __tablename__ = "automation"

    name: Mapped[str] = mapped_column(String(200))
    trigger_type: Mapped[str] = mapped_column(String(50), index=True)
    trigger_config: Mapped[dict] = mapped_column(JSON, default=dict)
    actions: Mapped[list] = mapped_column(JSON, default=list)  # [{"type": ..., "config": {...}}]
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    runs: Mapped[list["AutomationRun"]] = relationship(
        back_populates="automation",
        cascade="all, delete-orphan",
        order_by="AutomationRun.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<Automation {self.name!r} trigger={self.trigger_type}>"


class AutomationRun(UUIDMixin, CreatedAtMixin, Base):
    """Execution record for one automation firing."""

    __tablename__ = "automation_run"

    automation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("automation.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending/running/completed/failed
    input_data: Mapped[dict | None] = mapped_column(JSON, default=None)
    output_data: Mapped[dict | None] = mapped_column(JSON, default=None)
    error: Mapped[str | None] = mapped_column(Text, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    automation: Mapped[Automation] = relationship(back_populates="runs")

    def __repr__(self) -> str:
        return f"<AutomationRun {self.status}>"
