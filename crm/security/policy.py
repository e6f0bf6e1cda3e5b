"""In-process authorization policy: role -> permission tables."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.auth import UserRole

ROLES = ("customer", "csr", "technician", "admin", "super_admin")
DEFAULT_ROLE = "customer"

_RESOURCES = ("contacts", "appliances", "attachments", "services")


def _crud(*resources: str, actions: tuple[str, ...] = ("read", "write", "delete")) -> frozenset[str]:
    return frozenset(f"{resource}:{action}" for resource in resources for action in actions)


ALL_PERMISSIONS = _crud(*_RESOURCES) | frozenset({"settings:read", "settings:write"})

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "customer": _crud("services", "appliances", "attachments", actions=("read",)),
    "technician": (
        _crud("contacts", actions=("read",))
        | _crud("services", "appliances", "attachments", actions=("read", "write"))
    ),
    "csr": (
        _crud("contacts", "appliances", "attachments", "services", actions=("read", "write"))
        | frozenset({"settings:read"})
    ),
    "admin": ALL_PERMISSIONS,
    "super_admin": ALL_PERMISSIONS,
}


def normalize_role(role: str | None) -> str:
    role_norm = (role or "").strip().lower()
    return role_norm if role_norm in ROLES else DEFAULT_ROLE


def has_permission(role: str | None, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS[normalize_role(role)]


def permissions_for(role: str | None) -> list[str]:
    return sorted(ROLE_PERMISSIONS[normalize_role(role)])


async def get_user_role(
    db: AsyncSession,
    user_id: str,
    organization_id: uuid.UUID | None = None,
) -> str:
    """Resolve a user's role: organization row first, then global row, else customer."""
    stmt = select(UserRole).where(UserRole.user_id == user_id)
    rows = list((await db.execute(stmt)).scalars().all())

    if organization_id is not None:
        for row in rows:
            if row.organization_id == organization_id:
                return normalize_role(row.role)
    for row in rows:
        if row.organization_id is None:
            return normalize_role(row.role)
    return DEFAULT_ROLE


async def check_permission(
    db: AsyncSession,
    user_id: str,
    permission: str,
    organization_id: uuid.UUID | None = None,
) -> bool:
    role = await get_user_role(db, user_id, organization_id)
    return has_permission(role, permission)


async def set_user_role(
    db: AsyncSession,
    user_id: str,
    role: str,
    organization_id: uuid.UUID | None = None,
) -> UserRole:
    """Create or update a role assignment."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    stmt = select(UserRole).where(UserRole.user_id == user_id)
    if organization_id is None:
        stmt = stmt.where(UserRole.organization_id.is_(None))
    else:
        stmt = stmt.where(UserRole.organization_id == organization_id)
    row = (await db.execute(stmt)).scalar_one_or_none()

    if row:
        row.role = role
    else:
        row = UserRole(user_id=user_id, organization_id=organization_id, role=role)
        db.add(row)

    await db.commit()
    await db.refresh(row)
    return row
