"""Inventory connection and item schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from .common import ORMModel, RequestModel


class InventoryRequest(RequestModel):
    """POST body: `action: "sync"` runs a sync, anything else creates a connection."""

    action: str | None = None
    connection_id: uuid.UUID | None = None
    sync_type: str = "incremental"
    organization_id: uuid.UUID | None = None
    provider: str | None = None
    api_endpoint: str | None = None
    api_key: str | None = None
    config: dict | None = None


class InventoryConnectionUpdate(RequestModel):
    id: uuid.UUID | None = None
    provider: str | None = None
    api_endpoint: str | None = None
    api_key: str | None = None
    config: dict | None = None
    active: bool | None = None


class InventoryConnectionRead(ORMModel):
    """Connection without its API key."""

    id: uuid.UUID
    organization_id: uuid.UUID | None = None
    provider: str
    api_endpoint: str
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InventoryItemRead(ORMModel):
    id: uuid.UUID
    connection_id: uuid.UUID
    external_id: str
    name: str
    sku: str | None = None
    price: float | None = None
    quantity: int
    metadata: dict | None = Field(default=None, validation_alias="meta_json")
    synced_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InventorySyncLogRead(ORMModel):
    id: uuid.UUID
    connection_id: uuid.UUID
    sync_type: str
    status: str
    items_synced: int
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
