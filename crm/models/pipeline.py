"""PipelineStage and Deal models."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDMixin, TimestampMixin
from .contact import Contact


class PipelineStage(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "pipeline_stage"

    name: Mapped[str] = mapped_column(String(200))
    order: Mapped[int] = mapped_column("order", Integer, default=0)
    color: Mapped[str | None] = mapped_column(String(20), default=None)

    def __repr__(self) -> str:
        return f"<PipelineStage {self.name!r}>"


class Deal(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "deal"

    contact_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="SET NULL"), default=None, index=True
    )
    stage_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("pipeline_stage.id", ondelete="SET NULL"), default=None, index=True
    )
    title: Mapped[str] = mapped_column(String(300))
    value: Mapped[float] = mapped_column(Float, default=0.0)
    probability: Mapped[int | None] = mapped_column(Integer, default=None)
    expected_close_date: Mapped[date | None] = mapped_column(Date, default=None)

    # Relationships
    contact: Mapped[Contact | None] = relationship(lazy="selectin")
    stage: Mapped[PipelineStage | None] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Deal {self.title!r}>"
