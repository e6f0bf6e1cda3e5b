"""Custom field definition/value schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from .common import ORMModel, RequestModel


class FieldDefinitionCreate(RequestModel):
    name: str | None = None
    type: str | None = None
    category: str | None = None
    order: int = 0
    required: bool = False
    options: list | None = None


class FieldDefinitionUpdate(RequestModel):
    id: uuid.UUID | None = None
    name: str | None = None
    type: str | None = None
    category: str | None = None
    order: int | None = None
    required: bool | None = None
    options: list | None = None


class FieldDefinitionRead(ORMModel):
    id: uuid.UUID
    name: str
    type: str
    category: str
    order: int
    required: bool
    options: list | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FieldValueUpsert(RequestModel):
    contact_id: uuid.UUID | None = None
    field_definition_id: uuid.UUID | None = None
    value: str | int | float | bool | None = None


class FieldValueRead(ORMModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    field_definition_id: uuid.UUID
    value: str | None = None
    updated_at: datetime | None = None
    field_definition: FieldDefinitionRead | None = None
