"""Attachment, storage bucket and audit schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from .common import ORMModel, RequestModel


class AttachmentRead(ORMModel):
    id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    bucket: str
    file_name: str
    file_path: str
    file_size: int
    mime_type: str | None = None
    uploaded_by: str | None = None
    appliance_id: uuid.UUID | None = None
    description: str | None = None
    tags: list[str] | None = None
    upload_source: str | None = None
    created_at: datetime | None = None


class AttachmentUpdate(RequestModel):
    id: uuid.UUID | None = None
    title: str | None = None
    description: str | None = None
    tags: list[str] | str | None = None


class BucketConfig(RequestModel):
    name: str
    public: bool = True
    allowed_mime_types: list[str] | None = None
    file_size_limit: int | None = None


class BucketSetup(RequestModel):
    configs: list[BucketConfig] | None = None


class BucketRead(ORMModel):
    id: uuid.UUID
    name: str
    public: bool
    allowed_mime_types: list[str] | None = None
    file_size_limit: int | None = None
    created_at: datetime | None = None


class AuditLogRead(ORMModel):
    id: uuid.UUID
    user_id: str | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    changes: dict | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="metadata_json")
    created_at: datetime | None = None


class ChangeLogRead(ORMModel):
    id: uuid.UUID
    entity_type: str
    entity_id: str
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    changed_by: str | None = None
    change_reason: str | None = None
    created_at: datetime | None = None
