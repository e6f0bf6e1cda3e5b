"""SMS threads and email templates."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, TimestampMixin


class SMSThread(UUIDMixin, TimestampMixin, Base):
    """Append-only message log for one phone number."""

    __tablename__ = "sms_thread"

    service_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("service.id", ondelete="SET NULL"), default=None, index=True
    )
    contact_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contact.id", ondelete="SET NULL"), default=None, index=True
    )
    phone_number: Mapped[str] = mapped_column(String(50), index=True)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending/sent/delivered/failed/responded
    messages: Mapped[list] = mapped_column(JSON, default=list)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    def __repr__(self) -> str:
        return f"<SMSThread {self.phone_number} messages={len(self.messages or [])}>"


class EmailTemplate(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "email_template"

    name: Mapped[str] = mapped_column(String(200))
    subject: Mapped[str] = mapped_column(String(500))
    body: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(100), default="general", index=True)
    variables: Mapped[list] = mapped_column(JSON, default=list)

    def __repr__(self) -> str:
        return f"<EmailTemplate {self.name!r}>"
