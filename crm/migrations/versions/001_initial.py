"""Initial Service CRM schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True)


def _created() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())


def _updated() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now())


def _fk(name: str, target: str, ondelete: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable)


def upgrade() -> None:
    # Contacts
    op.create_table(
        "contact",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(50)),
        sa.Column("company", sa.String(200)),
        _created(),
        _updated(),
    )
    op.create_index("ix_contact_email", "contact", ["email"])
    op.create_index("ix_contact_phone", "contact", ["phone"])

    op.create_table(
        "contact_profile_type",
        _id(),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("icon", sa.String(50)),
        sa.Column("color", sa.String(20), nullable=False),
        sa.Column("default_layout_config", sa.JSON()),
        _created(),
        _updated(),
    )

    op.create_table(
        "contact_profile_type_assignment",
        _id(),
        _fk("contact_id", "contact.id", "CASCADE", nullable=False),
        _fk("profile_type_id", "contact_profile_type.id", "CASCADE", nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created(),
        sa.UniqueConstraint("contact_id", "profile_type_id", name="uq_profile_assignment_contact_type"),
    )
    op.create_index(
        "ix_contact_profile_type_assignment_contact_id",
        "contact_profile_type_assignment",
        ["contact_id"],
    )

    op.create_table(
        "contact_category",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("icon", sa.String(50)),
        sa.Column("color", sa.String(20), nullable=False),
        _fk("parent_category_id", "contact_category.id", "SET NULL"),
        _created(),
        _updated(),
    )

    op.create_table(
        "contact_category_assignment",
        _id(),
        _fk("contact_id", "contact.id", "CASCADE", nullable=False),
        _fk("category_id", "contact_category.id", "CASCADE", nullable=False),
        _created(),
        sa.UniqueConstraint("contact_id", "category_id", name="uq_category_assignment_contact_category"),
    )
    op.create_index(
        "ix_contact_category_assignment_contact_id",
        "contact_category_assignment",
        ["contact_id"],
    )

    # Pipeline
    op.create_table(
        "pipeline_stage",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("color", sa.String(20)),
        _created(),
        _updated(),
    )

    op.create_table(
        "deal",
        _id(),
        _fk("contact_id", "contact.id", "SET NULL"),
        _fk("stage_id", "pipeline_stage.id", "SET NULL"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("probability", sa.Integer()),
        sa.Column("expected_close_date", sa.Date()),
        _created(),
        _updated(),
    )
    op.create_index("ix_deal_contact_id", "deal", ["contact_id"])
    op.create_index("ix_deal_stage_id", "deal", ["stage_id"])

    op.create_table(
        "task",
        _id(),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("due_date", sa.DateTime(timezone=True)),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _fk("contact_id", "contact.id", "SET NULL"),
        _fk("deal_id", "deal.id", "SET NULL"),
        _created(),
        _updated(),
    )
    op.create_index("ix_task_contact_id", "task", ["contact_id"])
    op.create_index("ix_task_deal_id", "task", ["deal_id"])

    op.create_table(
        "activity",
        _id(),
        _fk("deal_id", "deal.id", "CASCADE"),
        _fk("contact_id", "contact.id", "CASCADE"),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_by", sa.String(255)),
        _created(),
    )
    op.create_index("ix_activity_deal_id", "activity", ["deal_id"])
    op.create_index("ix_activity_contact_id", "activity", ["contact_id"])

    # Custom fields
    op.create_table(
        "custom_field_definition",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("options", sa.JSON()),
        _created(),
        _updated(),
    )

    op.create_table(
        "custom_field_value",
        _id(),
        _fk("contact_id", "contact.id", "CASCADE", nullable=False),
        _fk("field_definition_id", "custom_field_definition.id", "CASCADE", nullable=False),
        sa.Column("value", sa.Text()),
        _created(),
        _updated(),
        sa.UniqueConstraint("contact_id", "field_definition_id", name="uq_cfv_contact_definition"),
    )
    op.create_index("ix_custom_field_value_contact_id", "custom_field_value", ["contact_id"])
    op.create_index(
        "ix_custom_field_value_field_definition_id", "custom_field_value", ["field_definition_id"]
    )

    # Appliances and services
    op.create_table(
        "appliance_type",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(50)),
        _created(),
        _updated(),
    )
    op.create_index("ix_appliance_type_category", "appliance_type", ["category"])

    op.create_table(
        "appliance",
        _id(),
        _fk("contact_id", "contact.id", "CASCADE", nullable=False),
        _fk("appliance_type_id", "appliance_type.id", "SET NULL"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("model_number", sa.String(100)),
        sa.Column("serial_number", sa.String(100)),
        sa.Column("brand", sa.String(100)),
        sa.Column("purchase_date", sa.Date()),
        sa.Column("install_date", sa.Date()),
        sa.Column("age_years", sa.Integer()),
        sa.Column("notes", sa.Text()),
        _created(),
        _updated(),
    )
    op.create_index("ix_appliance_contact_id", "appliance", ["contact_id"])

    op.create_table(
        "service",
        _id(),
        _fk("contact_id", "contact.id", "CASCADE", nullable=False),
        _fk("appliance_id", "appliance.id", "SET NULL"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("service_date", sa.DateTime(timezone=True)),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("technician", sa.String(200)),
        sa.Column("cost", sa.Float()),
        sa.Column("notes", sa.Text()),
        sa.Column("triage_result", sa.JSON()),
        _created(),
        _updated(),
    )
    op.create_index("ix_service_contact_id", "service", ["contact_id"])
    op.create_index("ix_service_appliance_id", "service", ["appliance_id"])
    op.create_index("ix_service_status", "service", ["status"])

    op.create_table(
        "service_history",
        _id(),
        _fk("contact_id", "contact.id", "CASCADE", nullable=False),
        _fk("service_id", "service.id", "SET NULL"),
        _fk("appliance_id", "appliance.id", "SET NULL"),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("cost", sa.Float()),
        sa.Column("technician", sa.String(200)),
        _created(),
    )
    op.create_index("ix_service_history_contact_id", "service_history", ["contact_id"])
    op.create_index("ix_service_history_service_id", "service_history", ["service_id"])
    op.create_index("ix_service_history_appliance_id", "service_history", ["appliance_id"])

    # Billing
    op.create_table(
        "invoice",
        _id(),
        _fk("deal_id", "deal.id", "SET NULL"),
        _fk("contact_id", "contact.id", "SET NULL"),
        sa.Column("invoice_number", sa.String(50), nullable=False, unique=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("due_date", sa.Date()),
        sa.Column("notes", sa.Text()),
        _created(),
        _updated(),
    )
    op.create_index("ix_invoice_deal_id", "invoice", ["deal_id"])
    op.create_index("ix_invoice_contact_id", "invoice", ["contact_id"])

    op.create_table(
        "payment",
        _id(),
        _fk("invoice_id", "invoice.id", "SET NULL"),
        _fk("deal_id", "deal.id", "SET NULL"),
        _fk("contact_id", "contact.id", "SET NULL"),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("stripe_payment_intent_id", sa.String(100)),
        sa.Column("stripe_checkout_session_id", sa.String(100)),
        sa.Column("created_by", sa.String(100)),
        _created(),
        _updated(),
    )
    op.create_index("ix_payment_invoice_id", "payment", ["invoice_id"])
    op.create_index("ix_payment_deal_id", "payment", ["deal_id"])
    op.create_index("ix_payment_contact_id", "payment", ["contact_id"])
    op.create_index("ix_payment_stripe_payment_intent_id", "payment", ["stripe_payment_intent_id"])

    # Automations
    op.create_table(
        "automation",
        _id(),
        sa.Column("organization_id", sa.Uuid()),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("trigger_type", sa.String(50), nullable=False),
        sa.Column("trigger_config", sa.JSON(), nullable=False),
        sa.Column("actions", sa.JSON(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created(),
        _updated(),
    )
    op.create_index("ix_automation_organization_id", "automation", ["organization_id"])
    op.create_index("ix_automation_trigger_type", "automation", ["trigger_type"])
    op.create_index("ix_automation_active", "automation", ["active"])

    op.create_table(
        "automation_run",
        _id(),
        _fk("automation_id", "automation.id", "CASCADE", nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("input_data", sa.JSON()),
        sa.Column("output_data", sa.JSON()),
        sa.Column("error", sa.Text()),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        _created(),
    )
    op.create_index("ix_automation_run_automation_id", "automation_run", ["automation_id"])

    # Webhooks
    op.create_table(
        "webhook",
        _id(),
        sa.Column("organization_id", sa.Uuid()),
        sa.Column("url", sa.String(2000), nullable=False),
        sa.Column("events", sa.JSON(), nullable=False),
        sa.Column("secret", sa.String(128), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created(),
        _updated(),
    )
    op.create_index("ix_webhook_organization_id", "webhook", ["organization_id"])

    op.create_table(
        "webhook_delivery",
        _id(),
        _fk("webhook_id", "webhook.id", "CASCADE", nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("payload", sa.JSON()),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("next_retry_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("response_status", sa.Integer()),
        sa.Column("error_message", sa.Text()),
        sa.Column("delivered_at", sa.DateTime(timezone=True)),
        _created(),
    )
    op.create_index("ix_webhook_delivery_webhook_id", "webhook_delivery", ["webhook_id"])
    op.create_index("ix_webhook_delivery_status", "webhook_delivery", ["status"])
    op.create_index("ix_webhook_delivery_next_retry_at", "webhook_delivery", ["next_retry_at"])

    op.create_table(
        "webhook_log",
        _id(),
        _fk("webhook_id", "webhook.id", "CASCADE", nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("payload", sa.JSON()),
        sa.Column("response_status", sa.Integer()),
        sa.Column("response_body", sa.Text()),
        sa.Column("error_message", sa.Text()),
        _created(),
    )
    op.create_index("ix_webhook_log_webhook_id", "webhook_log", ["webhook_id"])

    # Messaging
    op.create_table(
        "sms_thread",
        _id(),
        _fk("service_id", "service.id", "SET NULL"),
        _fk("contact_id", "contact.id", "SET NULL"),
        sa.Column("phone_number", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("messages", sa.JSON(), nullable=False),
        sa.Column("last_message_at", sa.DateTime(timezone=True)),
        _created(),
        _updated(),
    )
    op.create_index("ix_sms_thread_service_id", "sms_thread", ["service_id"])
    op.create_index("ix_sms_thread_contact_id", "sms_thread", ["contact_id"])
    op.create_index("ix_sms_thread_phone_number", "sms_thread", ["phone_number"])

    op.create_table(
        "email_template",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("subject", sa.String(500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("variables", sa.JSON(), nullable=False),
        _created(),
        _updated(),
    )
    op.create_index("ix_email_template_category", "email_template", ["category"])

    # Files
    op.create_table(
        "attachment",
        _id(),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("bucket", sa.String(100), nullable=False),
        sa.Column("file_name", sa.String(500), nullable=False),
        sa.Column("file_path", sa.String(1000), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(200)),
        sa.Column("uploaded_by", sa.String(100)),
        _fk("appliance_id", "appliance.id", "SET NULL"),
        sa.Column("description", sa.String(2000)),
        sa.Column("tags", sa.JSON()),
        sa.Column("upload_source", sa.String(20)),
        _created(),
    )
    op.create_index("ix_attachment_entity_type", "attachment", ["entity_type"])
    op.create_index("ix_attachment_entity_id", "attachment", ["entity_id"])

    op.create_table(
        "storage_bucket",
        _id(),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allowed_mime_types", sa.JSON()),
        sa.Column("file_size_limit", sa.Integer()),
        _created(),
        _updated(),
    )

    op.create_table(
        "calendar_integration",
        _id(),
        sa.Column("user_id", sa.String(100), nullable=False, unique=True),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=False),
        sa.Column("access_token", sa.Text()),
        sa.Column("token_expires_at", sa.DateTime(timezone=True)),
        _created(),
        _updated(),
    )

    # Auth and audit
    op.create_table(
        "user_role",
        _id(),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column("organization_id", sa.Uuid()),
        sa.Column("role", sa.String(20), nullable=False),
        _created(),
        _updated(),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_user_role_user_org"),
    )
    op.create_index("ix_user_role_user_id", "user_role", ["user_id"])

    op.create_table(
        "audit_log",
        _id(),
        sa.Column("user_id", sa.String(100)),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", sa.String(100)),
        sa.Column("changes", sa.JSON()),
        sa.Column("ip_address", sa.String(100)),
        sa.Column("user_agent", sa.String(500)),
        sa.Column("metadata", sa.JSON()),
        _created(),
    )
    op.create_index("ix_audit_log_user_id", "audit_log", ["user_id"])
    op.create_index("ix_audit_log_action", "audit_log", ["action"])
    op.create_index("ix_audit_log_resource_type", "audit_log", ["resource_type"])
    op.create_index("ix_audit_log_resource_id", "audit_log", ["resource_id"])

    op.create_table(
        "change_log",
        _id(),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(100), nullable=False),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column("old_value", sa.Text()),
        sa.Column("new_value", sa.Text()),
        sa.Column("changed_by", sa.String(100)),
        sa.Column("change_reason", sa.Text()),
        _created(),
    )
    op.create_index("ix_change_log_entity_type", "change_log", ["entity_type"])
    op.create_index("ix_change_log_entity_id", "change_log", ["entity_id"])


def downgrade() -> None:
    for table in (
        "change_log",
        "audit_log",
        "user_role",
        "calendar_integration",
        "storage_bucket",
        "attachment",
        "email_template",
        "sms_thread",
        "webhook_log",
        "webhook_delivery",
        "webhook",
        "automation_run",
        "automation",
        "payment",
        "invoice",
        "service_history",
        "service",
        "appliance",
        "appliance_type",
        "custom_field_value",
        "custom_field_definition",
        "activity",
        "task",
        "deal",
        "pipeline_stage",
        "contact_category_assignment",
        "contact_category",
        "contact_profile_type_assignment",
        "contact_profile_type",
        "contact",
    ):
        op.drop_table(table)
