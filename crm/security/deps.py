"""FastAPI dependencies for the auth/permission gate."""

from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from .auth import AuthUser, current_user_from_request
from .policy import get_user_role, has_permission, normalize_role


def _organization_scope(request: Request) -> uuid.UUID | None:
    raw = request.headers.get("x-organization-id") or request.query_params.get("organization_id")
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> AuthUser | None:
    """Resolve the caller (with role) or None when unauthenticated."""
    user = current_user_from_request(request, settings)
    if user is None:
        return None
    role = await get_user_role(db, user.id, _organization_scope(request))
    return AuthUser(id=user.id, email=user.email, role=role)


async def require_user(user: AuthUser | None = Depends(get_current_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_permission(permission: str):
    async def _dep(user: AuthUser = Depends(require_user)) -> AuthUser:
        if not has_permission(user.role, permission):
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return _dep


def require_role(*roles: str):
    allowed = {normalize_role(r) for r in roles}

    async def _dep(user: AuthUser = Depends(require_user)) -> AuthUser:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return _dep
