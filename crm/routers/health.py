"""Health and readiness checks for the CRM service."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return {"status": "healthy", "service": "service-crm"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Database reachable, plus which optional integrations are configured."""
    await db.execute(text("SELECT 1"))
    return {
        "status": "ready",
        "service": "service-crm",
        "integrations": {
            "stripe": settings.stripe_configured,
            "twilio": settings.twilio_configured,
            "sendgrid": settings.sendgrid_configured,
            "openai": settings.openai_configured,
            "google_calendar": settings.google_configured,
        },
    }
