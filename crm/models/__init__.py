"""CRM models - re-exports all models and Base.metadata."""

from .base import Base, UUIDMixin, CreatedAtMixin, TimestampMixin, OrganizationMixin
from .contact import (
    Contact,
    ContactCategory,
    ContactCategoryAssignment,
    ContactProfileType,
    ContactProfileTypeAssignment,
)
from .pipeline import PipelineStage, Deal
from .task import Task
from .activity import Activity
from .custom_field import CustomFieldDefinition, CustomFieldValue
from .appliance import ApplianceType, Appliance
from .service import Service, ServiceHistory
from .billing import Invoice, Payment
from .automation import Automation, AutomationRun
from .webhook import Webhook, WebhookDelivery, WebhookLog
from .messaging import SMSThread, EmailTemplate
from .attachment import Attachment, StorageBucket
from .calendar import CalendarIntegration
from .inventory import InventoryConnection, InventoryItem, InventorySyncLog
from .auth import UserRole, AuditLog, ChangeLog

__all__ = [
    "Base",
    "UUIDMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "OrganizationMixin",
    "Contact",
    "ContactCategory",
    "ContactCategoryAssignment",
    "ContactProfileType",
    "ContactProfileTypeAssignment",
    "PipelineStage",
    "Deal",
    "Task",
    "Activity",
    "CustomFieldDefinition",
    "CustomFieldValue",
    "ApplianceType",
    "Appliance",
    "Service",
    "ServiceHistory",
    "Invoice",
    "Payment",
    "Automation",
    "AutomationRun",
    "Webhook",
    "WebhookDelivery",
    "WebhookLog",
    "SMSThread",
    "EmailTemplate",
    "Attachment",
    "StorageBucket",
    "CalendarIntegration",
    "InventoryConnection",
    "InventoryItem",
    "InventorySyncLog",
    "UserRole",
    "AuditLog",
    "ChangeLog",
]
