"""Dashboard route - stats + recent activity."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database import get_session_factory
from ..schemas.common import dump_many, ok
from ..schemas.pipeline import ActivityRead
from ..schemas.service import ServiceBrief
from ..services import dashboard_svc

router = APIRouter(tags=["dashboard"])


@router.get("/api/dashboard")
async def dashboard(
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    stats = await dashboard_svc.summary(factory)
    stats["recent_activities"] = dump_many(ActivityRead, stats["recent_activities"])
    stats["upcoming_services"] = dump_many(ServiceBrief, stats["upcoming_services"])
    return ok(stats)
