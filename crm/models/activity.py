"""Activity model - timeline entries for deals and contacts."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, UUIDMixin

ACTIVITY_TYPES = ("note", "call", "email", "meeting", "task")


class Activity(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "activity"

    deal_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("deal.id", ondelete="CASCADE"), default=None, index=True
    )
    contact_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="CASCADE"), default=None, index=True
    )
    type: Mapped[str] = mapped_column(String(20))  # note, call, email, meeting, task
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    created_by: Mapped[str | None] = mapped_column(String(255), default=None)

    def __repr__(self) -> str:
        return f"<Activity {self.type} {self.title!r}>"
