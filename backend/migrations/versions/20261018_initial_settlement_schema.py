"""Initial schema: tenants, customers, packages, appointments, ledger, notifications

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("tenants", schema=None) as batch_op:
        batch_op.create_index("ix_tenants_slug", ["slug"], unique=True)

    op.create_table(
        "tenant_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("blacklist_threshold", sa.Integer(), nullable=True, server_default=sa.text("3")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", name="uq_tenant_settings_tenant"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("tenant_settings", schema=None) as batch_op:
        batch_op.create_index("ix_tenant_settings_tenant_id", ["tenant_id"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("last_name", sa.String(128), nullable=False, server_default=sa.text("''")),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("no_show_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_blacklisted", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("blacklisted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("no_show_count >= 0", name="ck_customers_no_show_count"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_tenant_id", ["tenant_id"], unique=False)
        batch_op.create_index("ix_customers_tenant_phone", ["tenant_id", "phone"], unique=False)

    op.create_table(
        "customer_packages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("package_name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'active'")),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("status IN ('active', 'completed')", name="ck_customer_packages_status"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("customer_packages", schema=None) as batch_op:
        batch_op.create_index("ix_customer_packages_tenant_id", ["tenant_id"], unique=False)
        batch_op.create_index("ix_customer_packages_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_customer_packages_tenant_customer", ["tenant_id", "customer_id"], unique=False)

    op.create_table(
        "customer_package_usages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_package_id", sa.Integer(), nullable=False),
        sa.Column("item_type", sa.String(16), nullable=False, server_default=sa.text("'service'")),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("total_quantity", sa.Integer(), nullable=False),
        sa.Column("used_quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("remaining_quantity", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["customer_package_id"], ["customer_packages.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("used_quantity + remaining_quantity = total_quantity", name="ck_package_usages_balance"),
        sa.CheckConstraint("remaining_quantity >= 0", name="ck_package_usages_remaining"),
        sa.CheckConstraint("used_quantity >= 0", name="ck_package_usages_used"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("customer_package_usages", schema=None) as batch_op:
        batch_op.create_index("ix_customer_package_usages_customer_package_id", ["customer_package_id"], unique=False)

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("staff_id", sa.Integer(), nullable=True),
        sa.Column("service_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("service_name", sa.String(255), nullable=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("time", sa.String(5), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("payment_type", sa.String(32), nullable=True),
        sa.Column("package_info", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="ck_appointments_status",
        ),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("appointments", schema=None) as batch_op:
        batch_op.create_index("ix_appointments_tenant_id", ["tenant_id"], unique=False)
        batch_op.create_index("ix_appointments_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_appointments_staff_id", ["staff_id"], unique=False)
        batch_op.create_index("ix_appointments_tenant_date", ["tenant_id", "date"], unique=False)
        batch_op.create_index("ix_appointments_tenant_status", ["tenant_id", "status"], unique=False)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("payment_type", sa.String(32), nullable=False, server_default=sa.text("'cash'")),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("appointment_id", sa.Integer(), nullable=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("profit", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "type IN ('appointment', 'sale', 'income', 'expense', 'package')",
            name="ck_transactions_type",
        ),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("transactions", schema=None) as batch_op:
        batch_op.create_index("ix_transactions_tenant_id", ["tenant_id"], unique=False)
        batch_op.create_index("ix_transactions_type", ["type"], unique=False)
        batch_op.create_index("ix_transactions_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_transactions_appointment_id", ["appointment_id"], unique=False)
        batch_op.create_index("ix_transactions_tenant_date", ["tenant_id", "date"], unique=False)

    # At most one appointment-revenue row per appointment
    op.create_index(
        "uq_transactions_appointment_once",
        "transactions",
        ["appointment_id"],
        unique=True,
        sqlite_where=sa.text("type = 'appointment'"),
        postgresql_where=sa.text("type = 'appointment'"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(255), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("notifications", schema=None) as batch_op:
        batch_op.create_index("ix_notifications_tenant_id", ["tenant_id"], unique=False)
        batch_op.create_index("ix_notifications_tenant_read", ["tenant_id", "read"], unique=False)


def downgrade():
    with op.batch_alter_table("notifications", schema=None) as batch_op:
        batch_op.drop_index("ix_notifications_tenant_read")
        batch_op.drop_index("ix_notifications_tenant_id")
    op.drop_table("notifications")

    op.drop_index("uq_transactions_appointment_once", table_name="transactions")
    with op.batch_alter_table("transactions", schema=None) as batch_op:
        batch_op.drop_index("ix_transactions_tenant_date")
        batch_op.drop_index("ix_transactions_appointment_id")
        batch_op.drop_index("ix_transactions_customer_id")
        batch_op.drop_index("ix_transactions_type")
        batch_op.drop_index("ix_transactions_tenant_id")
    op.drop_table("transactions")

    with op.batch_alter_table("appointments", schema=None) as batch_op:
        batch_op.drop_index("ix_appointments_tenant_status")
        batch_op.drop_index("ix_appointments_tenant_date")
        batch_op.drop_index("ix_appointments_staff_id")
        batch_op.drop_index("ix_appointments_customer_id")
        batch_op.drop_index("ix_appointments_tenant_id")
    op.drop_table("appointments")

    with op.batch_alter_table("customer_package_usages", schema=None) as batch_op:
        batch_op.drop_index("ix_customer_package_usages_customer_package_id")
    op.drop_table("customer_package_usages")

    with op.batch_alter_table("customer_packages", schema=None) as batch_op:
        batch_op.drop_index("ix_customer_packages_tenant_customer")
        batch_op.drop_index("ix_customer_packages_customer_id")
        batch_op.drop_index("ix_customer_packages_tenant_id")
    op.drop_table("customer_packages")

    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.drop_index("ix_customers_tenant_phone")
        batch_op.drop_index("ix_customers_tenant_id")
    op.drop_table("customers")

    with op.batch_alter_table("tenant_settings", schema=None) as batch_op:
        batch_op.drop_index("ix_tenant_settings_tenant_id")
    op.drop_table("tenant_settings")

    with op.batch_alter_table("tenants", schema=None) as batch_op:
        batch_op.drop_index("ix_tenants_slug")
    op.drop_table("tenants")
