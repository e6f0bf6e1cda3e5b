"""Contact, profile type and category schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from .common import ORMModel, RequestModel


class ContactCreate(RequestModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None


class ContactUpdate(ContactCreate):
    id: uuid.UUID | None = None


class ContactBrief(ORMModel):
    id: uuid.UUID
    name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None


class ProfileTypeRead(ORMModel):
    id: uuid.UUID
    name: str
    icon: str | None = None
    color: str | None = None
    default_layout_config: dict | None = None


class ProfileTypeCreate(RequestModel):
    name: str | None = None
    icon: str | None = None
    color: str = "#6b7280"
    default_layout_config: dict | None = None


class ProfileAssignmentRead(ORMModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    profile_type_id: uuid.UUID
    is_primary: bool
    created_at: datetime | None = None
    profile_type: ProfileTypeRead | None = None


class ProfileAssignmentCreate(RequestModel):
    contact_id: uuid.UUID | None = None
    profile_type_id: uuid.UUID | None = None
    is_primary: bool = False


class ProfileAssignmentUpdate(RequestModel):
    id: uuid.UUID | None = None
    is_primary: bool | None = None


class CategoryRead(ORMModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    parent_category_id: uuid.UUID | None = None


class CategoryCreate(RequestModel):
    name: str | None = None
    description: str | None = None
    icon: str | None = None
    color: str = "#6b7280"
    parent_category_id: uuid.UUID | None = None


class CategoryAssignmentRead(ORMModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    category_id: uuid.UUID
    created_at: datetime | None = None
    category: CategoryRead | None = None


class CategoryAssignmentCreate(RequestModel):
    contact_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None


class ContactRead(ContactBrief):
    created_at: datetime | None = None
    updated_at: datetime | None = None
    profile_types: list[ProfileAssignmentRead] = []
    categories: list[CategoryAssignmentRead] = []
