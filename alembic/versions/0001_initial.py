"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ("SUPER_ADMIN", "PRACTICE_ADMIN", "PRACTICE_MANAGER", "GP", "NURSE", "HCA", "RECEPTIONIST")
ACTIVITY_ACTIONS = (
    "LOGIN",
    "VIEW_PRACTICE",
    "CREATE_PRACTICE",
    "CREATE_PRACTICE_ADMIN",
    "UPDATE_SUBSCRIPTION",
    "ACTIVATE_PRACTICE",
    "DEACTIVATE_PRACTICE",
    "APPROVE_DEVICE",
)


def upgrade() -> None:
    op.create_table(
        "practices",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("ods_code", sa.String(length=16), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("address_line1", sa.String(length=255), nullable=False),
        sa.Column("address_line2", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=False),
        sa.Column("county", sa.String(length=128), nullable=True),
        sa.Column("postcode", sa.String(length=16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "subscription_tier",
            sa.Enum("BASIC", "STANDARD", "PREMIUM", "ENTERPRISE", name="subscriptiontier"),
            nullable=False,
        ),
        sa.Column("max_staff_included", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("extra_staff_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subscription_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_practices_ods_code"), "practices", ["ods_code"], unique=True)
    op.create_index(op.f("ix_practices_email"), "practices", ["email"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("practice_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("role", sa.Enum(*USER_ROLES, name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], name="fk_users_practice_id_practices"),
    )
    op.create_index(op.f("ix_users_practice_id"), "users", ["practice_id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "super_admins",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=False),
        sa.Column("last_name", sa.String(length=128), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_ip", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_super_admins_email"), "super_admins", ["email"], unique=True)

    op.create_table(
        "devices",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("practice_id", sa.Uuid(), nullable=False),
        sa.Column("device_fingerprint", sa.String(length=255), nullable=False),
        sa.Column("device_name", sa.String(length=255), nullable=False),
        sa.Column("device_type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.Enum("PENDING", "APPROVED", "REVOKED", name="devicestatus"), nullable=False),
        sa.Column("approved_by_id", sa.Uuid(), nullable=True),
        sa.Column("approved_by_super_admin_id", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.Text(), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_by_user_id", sa.Uuid(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], name="fk_devices_practice_id_practices"),
        sa.ForeignKeyConstraint(
            ["approved_by_id"], ["users.id"], name="fk_devices_approved_by_id_users", ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["approved_by_super_admin_id"],
            ["super_admins.id"],
            name="fk_devices_approved_by_super_admin_id_super_admins",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["last_used_by_user_id"], ["users.id"], name="fk_devices_last_used_by_user_id_users", ondelete="SET NULL"
        ),
    )
    op.create_index(op.f("ix_devices_practice_id"), "devices", ["practice_id"], unique=False)
    op.create_index(op.f("ix_devices_device_fingerprint"), "devices", ["device_fingerprint"], unique=True)

    op.create_table(
        "super_admin_activity_logs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("super_admin_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.Enum(*ACTIVITY_ACTIONS, name="superadminaction"), nullable=False),
        sa.Column("practice_id", sa.Uuid(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ["super_admin_id"], ["super_admins.id"], name="fk_super_admin_activity_logs_super_admin_id_super_admins"
        ),
        sa.ForeignKeyConstraint(
            ["practice_id"], ["practices.id"], name="fk_super_admin_activity_logs_practice_id_practices"
        ),
    )
    op.create_index(
        op.f("ix_super_admin_activity_logs_super_admin_id"),
        "super_admin_activity_logs",
        ["super_admin_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_super_admin_activity_logs_practice_id"),
        "super_admin_activity_logs",
        ["practice_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_super_admin_activity_logs_practice_id"), table_name="super_admin_activity_logs")
    op.drop_index(op.f("ix_super_admin_activity_logs_super_admin_id"), table_name="super_admin_activity_logs")
    op.drop_table("super_admin_activity_logs")

    op.drop_index(op.f("ix_devices_device_fingerprint"), table_name="devices")
    op.drop_index(op.f("ix_devices_practice_id"), table_name="devices")
    op.drop_table("devices")

    op.drop_index(op.f("ix_super_admins_email"), table_name="super_admins")
    op.drop_table("super_admins")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_practice_id"), table_name="users")
    op.drop_table("users")

    op.drop_index(op.f("ix_practices_email"), table_name="practices")
    op.drop_index(op.f("ix_practices_ods_code"), table_name="practices")
    op.drop_table("practices")

    op.execute("DROP TYPE IF EXISTS superadminaction")
    op.execute("DROP TYPE IF EXISTS devicestatus")
    op.execute("DROP TYPE IF EXISTS userrole")
    op.execute("DROP TYPE IF EXISTS subscriptiontier")
