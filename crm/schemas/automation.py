"""Automation and webhook schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from .common import ORMModel, RequestModel


class AutomationCreate(RequestModel):
    name: str | None = None
    trigger_type: str | None = None
    trigger_config: dict | None = None
    actions: list | None = None
    organization_id: uuid.UUID | None = None
    active: bool = True


class AutomationUpdate(RequestModel):
    id: uuid.UUID | None = None
    name: str | None = None
    trigger_type: str | None = None
    trigger_config: dict | None = None
    actions: list | None = None
    active: bool | None = None


class AutomationRunRead(ORMModel):
    id: uuid.UUID
    automation_id: uuid.UUID
    status: str
    input_data: dict | None = None
    output_data: dict | None = None
    error: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None


class AutomationRead(ORMModel):
    id: uuid.UUID
    organization_id: uuid.UUID | None = None
    name: str
    trigger_type: str
    trigger_config: dict = {}
    actions: list = []
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AutomationTest(RequestModel):
    automation_id: uuid.UUID | None = None
    trigger_type: str | None = None
    trigger_data: dict | None = None
    organization_id: uuid.UUID | None = None


class WebhookCreate(RequestModel):
    url: str | None = None
    events: list[str] | None = None
    organization_id: uuid.UUID | None = None


class WebhookUpdate(RequestModel):
    id: uuid.UUID | None = None
    url: str | None = None
    events: list[str] | None = None
    active: bool | None = None


class WebhookRead(ORMModel):
    """Webhook without its signing secret."""

    id: uuid.UUID
    organization_id: uuid.UUID | None = None
    url: str
    events: list[str] = []
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WebhookCreated(WebhookRead):
    secret: str
