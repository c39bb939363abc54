"""order lifecycle schema

Revision ID: 0001_lifecycle_schema
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_lifecycle_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum("ADMIN", "STAFF", "DIRECTOR", "FINANCE", name="user_role"), nullable=False),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(length=50), nullable=False),
        sa.Column("order_year", sa.Integer(), nullable=False),
        sa.Column("order_seq", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("current_stage", sa.String(length=50), nullable=False),
        sa.Column("original_ship_date", sa.Date(), nullable=False),
        sa.Column("current_ship_date", sa.Date(), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_status", sa.String(length=50), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
    )
    op.create_index("ix_orders_organization_id", "orders", ["organization_id"])
    op.create_index("uq_orders_order_number", "orders", ["order_number"], unique=True)
    op.create_index("uq_orders_order_year_seq", "orders", ["order_year", "order_seq"], unique=True)

    op.create_table(
        "order_stage_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("stage", sa.String(length=50), nullable=False),
        sa.Column("entered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.String(length=200), nullable=False),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("previous_ship_date", sa.Date(), nullable=True),
        sa.Column("new_ship_date", sa.Date(), nullable=True),
        sa.Column("change_reason", sa.String(length=500), nullable=True),
    )
    op.create_index("ix_order_stage_history_order_entered", "order_stage_history", ["order_id", "entered_at"])

    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("milestone_type", sa.String(length=64), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("email_enabled", sa.Boolean(), nullable=False),
        sa.Column("sms_enabled", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "uq_notification_preferences_user_milestone",
        "notification_preferences",
        ["user_id", "milestone_type"],
        unique=True,
    )

    op.create_table(
        "role_access_audits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("user_role", sa.String(length=32), nullable=False),
        sa.Column("resource", sa.String(length=500), nullable=False),
        sa.Column("http_method", sa.String(length=10), nullable=False),
        sa.Column("access_granted", sa.Boolean(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=1000), nullable=True),
        sa.Column("details", sa.String(length=2000), nullable=True),
    )
    op.create_index("ix_role_access_audits_user_id", "role_access_audits", ["user_id"])
    op.create_index("ix_role_access_audits_organization_id", "role_access_audits", ["organization_id"])


def downgrade() -> None:
    op.drop_index("ix_role_access_audits_organization_id", table_name="role_access_audits")
    op.drop_index("ix_role_access_audits_user_id", table_name="role_access_audits")
    op.drop_table("role_access_audits")
    op.drop_index("uq_notification_preferences_user_milestone", table_name="notification_preferences")
    op.drop_table("notification_preferences")
    op.drop_index("ix_order_stage_history_order_entered", table_name="order_stage_history")
    op.drop_table("order_stage_history")
    op.drop_index("uq_orders_order_year_seq", table_name="orders")
    op.drop_index("uq_orders_order_number", table_name="orders")
    op.drop_index("ix_orders_organization_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_users_organization_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("organizations")
