"""FastAPI application factory for the Service CRM."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .config import settings
from .errors import install_error_handlers
from .logging_config import RequestLoggingMiddleware, configure_logging

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Auto-create tables for SQLite (local dev); PostgreSQL uses Alembic migrations
    if "sqlite" in settings.database_url:
        from .database import engine
        from .models import Base
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    log.info("%s started (%s)", settings.app_title, settings.environment)
    yield


app = FastAPI(title=settings.app_title, lifespan=lifespan)

install_error_handlers(app)
app.add_middleware(RequestLoggingMiddleware)
app.mount(
    "/storage",
    StaticFiles(directory=str(settings.storage_root), check_dir=False),
    name="storage",
)

# Import and register routers
from .routers import (  # noqa: E402
    ai, appliances, attachments, audit, automations, billing, calendars, contacts,
    custom_fields, dashboard, health, integrations, inventory, messaging, pipelines, services,
    tasks, webhooks,
)

app.include_router(dashboard.router)
app.include_router(contacts.router)
app.include_router(pipelines.router)
app.include_router(tasks.router)
app.include_router(custom_fields.router)
app.include_router(appliances.router)
app.include_router(services.router)
app.include_router(billing.router)
app.include_router(automations.router)
app.include_router(webhooks.router)
app.include_router(messaging.router)
app.include_router(attachments.router)
app.include_router(audit.router)
app.include_router(ai.router)
app.include_router(calendars.router)
app.include_router(integrations.router)
app.include_router(inventory.router)
app.include_router(health.router)
