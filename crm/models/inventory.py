"""Inventory connections, synced items and sync logs."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, OrganizationMixin, UUIDMixin, TimestampMixin


class InventoryConnection(UUIDMixin, TimestampMixin, OrganizationMixin, Base):
    """An external inventory API; the key is stored encrypted."""

    __tablename__ = "inventory_connection"

    provider: Mapped[str] = mapped_column(String(50))  # 1shotInventory/custom
    api_endpoint: Mapped[str] = mapped_column(String(2000))
    api_key_encrypted: Mapped[str] = mapped_column(Text)
    config: Mapped[dict] = mapped_column(JSON, default=dict)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<InventoryConnection {self.provider} {self.api_endpoint!r}>"


class InventoryItem(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "inventory_item"
    __table_args__ = (
        UniqueConstraint("connection_id", "external_id", name="uq_inventory_item_connection_external"),
    )

    connection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("inventory_connection.id", ondelete="CASCADE"), index=True
    )
    external_id: Mapped[str] = mapped_column(String(200))
    name: Mapped[str] = mapped_column(String(300), index=True)
    sku: Mapped[str | None] = mapped_column(String(100), default=None, index=True)
    price: Mapped[float | None] = mapped_column(Float, default=None)
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    meta_json: Mapped[dict] = mapped_column(JSON, default=dict)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<InventoryItem {self.name!r} qty={self.quantity}>"


class InventorySyncLog(UUIDMixin, Base):
    __tablename__ = "inventory_sync_log"

    connection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("inventory_connection.id", ondelete="CASCADE"), index=True
    )
    sync_type: Mapped[str] = mapped_column(String(20), default="incremental")  # full/incremental
    status: Mapped[str] = mapped_column(String(20), default="running")  # running/completed/failed
    items_synced: Mapped[int] = mapped_column(Integer, default=0)
    error: Mapped[str | None] = mapped_column(Text, default=None)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
