"""Appliance and appliance type schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from .common import ORMModel, RequestModel
from .contact import ContactBrief


class ApplianceTypeCreate(RequestModel):
    name: str | None = None
    category: str | None = None
    icon: str | None = None


class ApplianceTypeUpdate(ApplianceTypeCreate):
    id: uuid.UUID | None = None


class ApplianceTypeRead(ORMModel):
    id: uuid.UUID
    name: str
    category: str
    icon: str | None = None


class ApplianceCreate(RequestModel):
    contact_id: uuid.UUID | None = None
    name: str | None = None
    category: str | None = None
    appliance_type_id: uuid.UUID | None = None
    model_number: str | None = None
    serial_number: str | None = None
    brand: str | None = None
    purchase_date: date | None = None
    install_date: date | None = None
    age_years: int | None = None
    notes: str | None = None


class ApplianceUpdate(RequestModel):
    id: uuid.UUID | None = None
    name: str | None = None
    category: str | None = None
    appliance_type_id: uuid.UUID | None = None
    model_number: str | None = None
    serial_number: str | None = None
    brand: str | None = None
    purchase_date: date | None = None
    install_date: date | None = None
    age_years: int | None = None
    notes: str | None = None


class ApplianceBrief(ORMModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    name: str
    category: str
    brand: str | None = None
    model_number: str | None = None
    serial_number: str | None = None


class ApplianceRead(ApplianceBrief):
    appliance_type_id: uuid.UUID | None = None
    purchase_date: date | None = None
    install_date: date | None = None
    age_years: int | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    appliance_type: ApplianceTypeRead | None = None
    contact: ContactBrief | None = None
