"""Service, service history and triage schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from .appliance import ApplianceBrief
from .common import ORMModel, RequestModel
from .contact import ContactBrief


class ServiceCreate(RequestModel):
    contact_id: uuid.UUID | None = None
    appliance_id: uuid.UUID | None = None
    title: str | None = None
    description: str | None = None
    service_date: datetime | None = None
    status: str | None = None
    technician: str | None = None
    cost: float | None = None
    notes: str | None = None
    organization_id: uuid.UUID | None = None


class ServiceUpdate(RequestModel):
    id: uuid.UUID | None = None
    title: str | None = None
    description: str | None = None
    service_date: datetime | None = None
    status: str | None = None
    technician: str | None = None
    cost: float | None = None
    notes: str | None = None


class ServiceBrief(ORMModel):
    id: uuid.UUID
    title: str
    status: str
    service_date: datetime | None = None


class ServiceRead(ServiceBrief):
    contact_id: uuid.UUID
    appliance_id: uuid.UUID | None = None
    description: str | None = None
    technician: str | None = None
    cost: float | None = None
    notes: str | None = None
    triage_result: dict | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    contact: ContactBrief | None = None
    appliance: ApplianceBrief | None = None


class HistoryCreate(RequestModel):
    contact_id: uuid.UUID | None = None
    service_id: uuid.UUID | None = None
    appliance_id: uuid.UUID | None = None
    type: str | None = None
    description: str | None = None
    date: datetime | None = None
    cost: float | None = None
    technician: str | None = None


class HistoryUpdate(RequestModel):
    id: uuid.UUID | None = None
    type: str | None = None
    description: str | None = None
    date: datetime | None = None
    cost: float | None = None
    technician: str | None = None


class HistoryRead(ORMModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    service_id: uuid.UUID | None = None
    appliance_id: uuid.UUID | None = None
    type: str
    description: str
    date: datetime | None = None
    cost: float | None = None
    technician: str | None = None
    created_at: datetime | None = None
    service: ServiceBrief | None = None
    appliance: ApplianceBrief | None = None


class ServiceRequestData(BaseModel):
    """Free-text service request handed to the triage analyzer."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    title: str = ""
    description: str | None = None
    contact_name: str | None = Field(default=None, alias="contactName")
    appliance_type: str | None = Field(default=None, alias="applianceType")
    appliance_brand: str | None = Field(default=None, alias="applianceBrand")
    appliance_model: str | None = Field(default=None, alias="applianceModel")
    service_date: str | None = Field(default=None, alias="serviceDate")


class TriageRequest(RequestModel):
    service_id: uuid.UUID | None = None
    service_data: ServiceRequestData | None = None


class SMSInfoRequest(RequestModel):
    phone_number: str | None = None
    missing_fields: list[dict] | None = None
    service_id: uuid.UUID | None = None
    contact_id: uuid.UUID | None = None
    service_title: str | None = None
    contact_name: str | None = None


class SMSThreadRead(ORMModel):
    id: uuid.UUID
    service_id: uuid.UUID | None = None
    contact_id: uuid.UUID | None = None
    phone_number: str
    status: str
    messages: list = []
    last_message_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
