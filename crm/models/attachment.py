"""File attachments and storage bucket policies."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, UUIDMixin, TimestampMixin


class Attachment(UUIDMixin, CreatedAtMixin, Base):
    """An uploaded file bound to an (entity_type, entity_id) pair."""

    __tablename__ = "attachment"

    entity_type: Mapped[str] = mapped_column(String(50), index=True)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    bucket: Mapped[str] = mapped_column(String(100), default="attachments")
    file_name: Mapped[str] = mapped_column(String(500))
    file_path: Mapped[str] = mapped_column(String(1000))
    file_size: Mapped[int] = mapped_column(Integer, default=0)
    mime_type: Mapped[str | None] = mapped_column(String(200), default=None)
    uploaded_by: Mapped[str | None] = mapped_column(String(100), default=None)
    appliance_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appliance.id", ondelete="SET NULL"), default=None
    )
    description: Mapped[str | None] = mapped_column(String(2000), default=None)
    tags: Mapped[list | None] = mapped_column(JSON, default=None)
    upload_source: Mapped[str | None] = mapped_column(String(20), default=None)

    def __repr__(self) -> str:
        return f"<Attachment {self.bucket}/{self.file_path}>"


class StorageBucket(UUIDMixin, TimestampMixin, Base):
    """Access, type and size policy for a blob bucket."""

    __tablename__ = "storage_bucket"

    name: Mapped[str] = mapped_column(String(100), unique=True)
    public: Mapped[bool] = mapped_column(Boolean, default=True)
    allowed_mime_types: Mapped[list | None] = mapped_column(JSON, default=None)
    file_size_limit: Mapped[int | None] = mapped_column(Integer, default=None)  # bytes

    def __repr__(self) -> str:
        return f"<StorageBucket {self.name!r}>"
