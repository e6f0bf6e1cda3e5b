"""Role assignments, audit log and field change log."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, UUIDMixin, TimestampMixin


class UserRole(UUIDMixin, TimestampMixin, Base):
    """Role of a user, globally (organization_id NULL) or within an organization."""

    __tablename__ = "user_role"
    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_user_role_user_org"),
    )

    user_id: Mapped[str] = mapped_column(String(100), index=True)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, default=None)
    role: Mapped[str] = mapped_column(String(20), default="customer")

    def __repr__(self) -> str:
        return f"<UserRole {self.user_id} {self.role}>"


class AuditLog(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "audit_log"

    user_id: Mapped[str | None] = mapped_column(String(100), default=None, index=True)
    action: Mapped[str] = mapped_column(String(50), index=True)
    resource_type: Mapped[str] = mapped_column(String(50), index=True)
    resource_id: Mapped[str | None] = mapped_column(String(100), default=None, index=True)
    changes: Mapped[dict | None] = mapped_column(JSON, default=None)
    ip_address: Mapped[str | None] = mapped_column(String(100), default=None)
    user_agent: Mapped[str | None] = mapped_column(String(500), default=None)
    metadata_json: Mapped[dict | None] = mapped_column("metadata", JSON, default=None)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.resource_type}>"


class ChangeLog(UUIDMixin, CreatedAtMixin, Base):
    __tablename__ = "change_log"

    entity_type: Mapped[str] = mapped_column(String(50), index=True)
    entity_id: Mapped[str] = mapped_column(String(100), index=True)
    field_name: Mapped[str] = mapped_column(String(100))
    old_value: Mapped[str | None] = mapped_column(Text, default=None)
    new_value: Mapped[str | None] = mapped_column(Text, default=None)
    changed_by: Mapped[str | None] = mapped_column(String(100), default=None)
    change_reason: Mapped[str | None] = mapped_column(Text, default=None)
