"""Inventory connections to external stock APIs, and item sync."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import httpx
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.inventory import InventoryConnection, InventoryItem, InventorySyncLog
from ..security.secrets import decrypt_secret, encrypt_secret

log = logging.getLogger(__name__)

PROVIDERS = ("1shotInventory", "custom")
SYNC_TYPES = ("full", "incremental")


# ── Connections ────────────────────────────────────────────────────────────

async def list_connections(db: AsyncSession) -> list[InventoryConnection]:
    stmt = select(InventoryConnection).order_by(InventoryConnection.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_connection(db: AsyncSession, connection_id: uuid.UUID) -> InventoryConnection:
    stmt = select(InventoryConnection).where(InventoryConnection.id == connection_id)
    return (await db.execute(stmt)).scalar_one()


async def create_connection(
    db: AsyncSession,
    *,
    provider: str,
    api_endpoint: str,
    api_key: str,
    organization_id: uuid.UUID | None = None,
    config: dict | None = None,
) -> InventoryConnection:
    connection = InventoryConnection(
        organization_id=organization_id,
        provider=provider,
        api_endpoint=api_endpoint.rstrip("/"),
        api_key_encrypted=encrypt_secret(api_key),
        config=config or {},
        active=True,
    )
    db.add(connection)
    await db.commit()
    await db.refresh(connection)
    return connection


async def update_connection(db: AsyncSession, connection_id: uuid.UUID, **kwargs) -> InventoryConnection:
    """Apply updates; a new `api_key` is re-encrypted."""
    connection = await get_connection(db, connection_id)
    api_key = kwargs.pop("api_key", None)
    if api_key:
        connection.api_key_encrypted = encrypt_secret(api_key)
    if kwargs.get("api_endpoint"):
        kwargs["api_endpoint"] = kwargs["api_endpoint"].rstrip("/")
    for key, value in kwargs.items():
        setattr(connection, key, value)
    connection.updated_at = func.now()
    await db.commit()
    await db.refresh(connection)
    return connection


async def delete_connection(db: AsyncSession, connection_id: uuid.UUID) -> None:
    connection = await get_connection(db, connection_id)
    await db.delete(connection)
    await db.commit()


# ── Items ──────────────────────────────────────────────────────────────────

async def list_items(
    db: AsyncSession,
    *,
    connection_id: uuid.UUID | None = None,
    search: str | None = None,
) -> list[InventoryItem]:
    stmt = select(InventoryItem)
    if connection_id:
        stmt = stmt.where(InventoryItem.connection_id == connection_id)
    if search:
        q = f"%{search}%"
        stmt = stmt.where(or_(InventoryItem.name.ilike(q), InventoryItem.sku.ilike(q)))
    stmt = stmt.order_by(InventoryItem.name)
    return list((await db.execute(stmt)).scalars().all())


async def _upsert_item(db: AsyncSession, connection_id: uuid.UUID, data: dict, now: datetime) -> bool:
    external_id = data.get("id") or data.get("external_id")
    if not external_id or not data.get("name"):
        return False

    stmt = select(InventoryItem).where(
        InventoryItem.connection_id == connection_id,
        InventoryItem.external_id == str(external_id),
    )
    item = (await db.execute(stmt)).scalar_one_or_none()
    if item is None:
        item = InventoryItem(connection_id=connection_id, external_id=str(external_id))
        db.add(item)
    else:
        item.updated_at = func.now()
    item.name = data["name"]
    item.sku = data.get("sku")
    item.price = data.get("price")
    item.quantity = int(data.get("quantity") or 0)
    item.meta_json = data.get("metadata") or {}
    item.synced_at = now
    return True


async def sync_inventory(
    db: AsyncSession, connection_id: uuid.UUID, sync_type: str = "incremental"
) -> dict:
    """Pull `<api_endpoint>/inventory` and upsert its items.

    Every run is recorded in inventory_sync_log. Fetch failures mark the log
    `failed` and come back as `{"success": False, "error": ...}`.
    """
    connection = await get_connection(db, connection_id)
    sync_log = InventorySyncLog(connection_id=connection.id, sync_type=sync_type, status="running")
    db.add(sync_log)
    await db.commit()

    try:
        async with httpx.AsyncClient(timeout=settings.inventory_timeout_seconds) as client:
            resp = await client.get(
                f"{connection.api_endpoint}/inventory",
                headers={
                    "Authorization": f"Bearer {decrypt_secret(connection.api_key_encrypted)}",
                    "Content-Type": "application/json",
                },
            )
        if not resp.is_success:
            raise RuntimeError(f"API returned {resp.status_code}")
        items = resp.json().get("items") or []
    except (httpx.HTTPError, ValueError, RuntimeError) as exc:
        sync_log.status = "failed"
        sync_log.error = str(exc) or exc.__class__.__name__
        sync_log.completed_at = datetime.now(timezone.utc)
        await db.commit()
        log.warning("Inventory sync failed for connection %s: %s", connection_id, sync_log.error)
        return {"success": False, "items_synced": 0, "error": sync_log.error}

    now = datetime.now(timezone.utc)
    synced = 0
    for data in items:
        if await _upsert_item(db, connection.id, data, now):
            synced += 1

    sync_log.status = "completed"
    sync_log.items_synced = synced
    sync_log.completed_at = datetime.now(timezone.utc)
    await db.commit()
    log.info("Inventory sync %s: %d item(s) from connection %s", sync_type, synced, connection_id)
    return {"success": True, "items_synced": synced}


async def list_sync_logs(db: AsyncSession, connection_id: uuid.UUID) -> list[InventorySyncLog]:
    stmt = (
        select(InventorySyncLog)
        .where(InventorySyncLog.connection_id == connection_id)
        .order_by(InventorySyncLog.started_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())
