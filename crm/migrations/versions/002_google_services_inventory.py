"""Per-service Google flags and inventory sync tables.

Revision ID: 002_google_services_inventory
Revises: 001_initial
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "002_google_services_inventory"
down_revision = "001_initial"
branch_labels = None
depends_on = None

_SERVICE_FLAGS = ("calendar_enabled", "sheets_enabled", "drive_enabled", "contacts_enabled")


def upgrade() -> None:
    with op.batch_alter_table("calendar_integration") as batch:
        batch.add_column(sa.Column("scopes", sa.JSON()))
        for flag in _SERVICE_FLAGS:
            default = sa.true() if flag == "calendar_enabled" else sa.false()
            batch.add_column(sa.Column(flag, sa.Boolean(), nullable=False, server_default=default))

    op.create_table(
        "inventory_connection",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("organization_id", sa.Uuid()),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("api_endpoint", sa.String(2000), nullable=False),
        sa.Column("api_key_encrypted", sa.Text(), nullable=False),
        sa.Column("config", sa.JSON()),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_inventory_connection_organization_id", "inventory_connection", ["organization_id"]
    )

    op.create_table(
        "inventory_item",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "connection_id",
            sa.Uuid(),
            sa.ForeignKey("inventory_connection.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("external_id", sa.String(200), nullable=False),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("sku", sa.String(100)),
        sa.Column("price", sa.Float()),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("meta_json", sa.JSON()),
        sa.Column("synced_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "connection_id", "external_id", name="uq_inventory_item_connection_external"
        ),
    )
    op.create_index("ix_inventory_item_connection_id", "inventory_item", ["connection_id"])
    op.create_index("ix_inventory_item_name", "inventory_item", ["name"])
    op.create_index("ix_inventory_item_sku", "inventory_item", ["sku"])

    op.create_table(
        "inventory_sync_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "connection_id",
            sa.Uuid(),
            sa.ForeignKey("inventory_connection.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sync_type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("items_synced", sa.Integer(), nullable=False),
        sa.Column("error", sa.Text()),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_inventory_sync_log_connection_id", "inventory_sync_log", ["connection_id"])


def downgrade() -> None:
    op.drop_table("inventory_sync_log")
    op.drop_table("inventory_item")
    op.drop_table("inventory_connection")
    with op.batch_alter_table("calendar_integration") as batch:
        for flag in reversed(_SERVICE_FLAGS):
            batch.drop_column(flag)
        batch.drop_column("scopes")
