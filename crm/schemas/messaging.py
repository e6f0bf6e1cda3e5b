"""Email/SMS send, email template, calendar and assistant schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from .common import ORMModel, RequestModel


class EmailSend(RequestModel):
    to: str | None = None
    subject: str | None = None
    html: str | None = None
    text: str | None = None
    deal_id: uuid.UUID | None = Field(default=None, alias="dealId")
    contact_id: uuid.UUID | None = Field(default=None, alias="contactId")
    template_id: uuid.UUID | None = Field(default=None, alias="templateId")


class SMSSend(RequestModel):
    to: str | None = None
    message: str | None = None
    deal_id: uuid.UUID | None = Field(default=None, alias="dealId")
    contact_id: uuid.UUID | None = Field(default=None, alias="contactId")


class EmailTemplateCreate(RequestModel):
    name: str | None = None
    subject: str | None = None
    body: str | None = None
    category: str | None = None
    variables: list[str] | None = None


class EmailTemplateUpdate(EmailTemplateCreate):
    id: uuid.UUID | None = None


class EmailTemplateRead(ORMModel):
    id: uuid.UUID
    name: str
    subject: str
    body: str
    category: str
    variables: list = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CalendarCodeExchange(RequestModel):
    code: str | None = None


class CalendarEventCreate(RequestModel):
    deal_id: uuid.UUID | None = Field(default=None, alias="dealId")
    contact_id: uuid.UUID | None = Field(default=None, alias="contactId")
    title: str | None = None
    description: str | None = None
    start_date_time: datetime | None = Field(default=None, alias="startDateTime")
    end_date_time: datetime | None = Field(default=None, alias="endDateTime")
    location: str | None = None


class CalendarIntegrationRead(ORMModel):
    id: uuid.UUID
    user_id: str
    provider: str
    token_expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChatTurn(RequestModel):
    role: str = "user"
    content: str = ""


class AssistantRequest(RequestModel):
    message: str | None = None
    messages: list[ChatTurn] | None = None
