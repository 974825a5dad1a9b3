"""initial schema: users, customers, price catalog, quotations

Revision ID: a1f3c9e20b71
Revises:
Create Date: 2026-10-16 09:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "a1f3c9e20b71"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="EMPLOYEE"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("position", sa.String(length=100), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("name"),
        sa.CheckConstraint("role IN ('ADMIN','EMPLOYEE')", name="ck_users_role_valid"),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("memo", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_lower_customer_name", "customers", [sa.text("lower(customer_name)")])
    op.create_index("ix_customers_lower_company_name", "customers", [sa.text("lower(company_name)")])
    op.create_index("ix_customers_phone", "customers", ["phone"])
    op.create_index("ix_customers_created_at", "customers", ["created_at"])

    op.create_table(
        "customer_addresses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("is_main", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customer_addresses_customer_id", "customer_addresses", ["customer_id"])

    op.create_table(
        "price_categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_price_categories_created_by", "price_categories", ["created_by"])
    op.create_index("ix_price_categories_lower_name", "price_categories", [sa.text("lower(name)")])

    op.create_table(
        "price_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit_price", sa.Numeric(14, 0), nullable=False),
        sa.Column("base_cost", sa.Numeric(14, 0), nullable=True),
        sa.Column("labor_hours", sa.Numeric(8, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["price_categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("unit_price >= 0", name="ck_price_items_unit_price_nonneg"),
        sa.CheckConstraint("base_cost IS NULL OR base_cost >= 0", name="ck_price_items_base_cost_nonneg"),
    )
    op.create_index("ix_price_items_category_id", "price_items", ["category_id"])
    op.create_index("ix_price_items_category_active", "price_items", ["category_id", "is_active"])
    op.create_index("ix_price_items_lower_item_name", "price_items", [sa.text("lower(item_name)")])

    op.create_table(
        "quotations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("quotation_number", sa.String(length=32), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("customer_address_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'DRAFT'")),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("material_cost", sa.Numeric(14, 0), nullable=False),
        sa.Column("labor_cost", sa.Numeric(14, 0), nullable=False),
        sa.Column("travel_cost", sa.Numeric(14, 0), nullable=False),
        sa.Column("margin_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(16, 0), nullable=False),
        sa.Column("tax", sa.Numeric(16, 0), nullable=False),
        sa.Column("total", sa.Numeric(16, 0), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["customer_address_id"], ["customer_addresses.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("quotation_number"),
        sa.CheckConstraint(
            "status IN ('DRAFT','REVIEWED','SENT','CONTRACTED','CANCELLED')",
            name="ck_quotations_status_valid",
        ),
    )
    op.create_index("ix_quotations_customer_id", "quotations", ["customer_id"])
    op.create_index("ix_quotations_created_by", "quotations", ["created_by"])
    op.create_index("ix_quotations_status", "quotations", ["status"])
    op.create_index("ix_quotations_created_at", "quotations", ["created_at"])

    op.create_table(
        "quotation_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("quotation_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("price_item_id", sa.Integer(), nullable=True),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 0), nullable=False),
        sa.Column("amount", sa.Numeric(16, 0), nullable=False),
        sa.ForeignKeyConstraint(["quotation_id"], ["quotations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["price_categories.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["price_item_id"], ["price_items.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quotation_items_quotation_id", "quotation_items", ["quotation_id"])
    op.create_index("ix_quotation_items_category_id", "quotation_items", ["category_id"])
    op.create_index("ix_quotation_items_price_item_id", "quotation_items", ["price_item_id"])


def downgrade():
    op.drop_table("quotation_items")
    op.drop_table("quotations")
    op.drop_table("price_items")
    op.drop_table("price_categories")
    op.drop_table("customer_addresses")
    op.drop_table("customers")
    op.drop_table("users")
