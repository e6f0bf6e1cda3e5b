"""Pipeline stage, deal, task and activity schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import Field

from .common import ORMModel, RequestModel
from .contact import ContactBrief


class StageCreate(RequestModel):
    name: str | None = None
    order: int = 0
    color: str | None = None


class StageUpdate(RequestModel):
    id: uuid.UUID | None = None
    name: str | None = None
    order: int | None = None
    color: str | None = None


class StageRead(ORMModel):
    id: uuid.UUID
    name: str
    order: int
    color: str | None = None


class DealCreate(RequestModel):
    title: str | None = None
    contact_id: uuid.UUID | None = None
    stage_id: uuid.UUID | None = None
    value: float = 0.0
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_close_date: date | None = None


class DealUpdate(RequestModel):
    id: uuid.UUID | None = None
    title: str | None = None
    contact_id: uuid.UUID | None = None
    stage_id: uuid.UUID | None = None
    value: float | None = None
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_close_date: date | None = None


class DealBrief(ORMModel):
    id: uuid.UUID
    title: str
    value: float
    stage_id: uuid.UUID | None = None
    contact_id: uuid.UUID | None = None


class DealRead(DealBrief):
    probability: int | None = None
    expected_close_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    contact: ContactBrief | None = None
    stage: StageRead | None = None


class TaskCreate(RequestModel):
    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    completed: bool = False
    contact_id: uuid.UUID | None = None
    deal_id: uuid.UUID | None = None


class TaskUpdate(RequestModel):
    id: uuid.UUID | None = None
    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    completed: bool | None = None
    contact_id: uuid.UUID | None = None
    deal_id: uuid.UUID | None = None


class TaskRead(ORMModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    due_date: datetime | None = None
    completed: bool
    contact_id: uuid.UUID | None = None
    deal_id: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    contact: ContactBrief | None = None
    deal: DealBrief | None = None


class ActivityCreate(RequestModel):
    deal_id: uuid.UUID | None = None
    contact_id: uuid.UUID | None = None
    type: str | None = None
    title: str | None = None
    description: str | None = None


class ActivityRead(ORMModel):
    id: uuid.UUID
    deal_id: uuid.UUID | None = None
    contact_id: uuid.UUID | None = None
    type: str
    title: str
    description: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
