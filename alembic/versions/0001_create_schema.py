from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _tenant_fk() -> sa.Column:
    return sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False, unique=True),
        sa.Column("domain", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_tenants_domain", "tenants", ["domain"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(120), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("first_name", sa.String(120), nullable=True),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "user_tenants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _tenant_fk(),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "tenant_id", name="uq_user_tenants_user_tenant"),
    )
    op.create_index("ix_user_tenants_user_id", "user_tenants", ["user_id"], unique=False)
    op.create_index("ix_user_tenants_tenant_id", "user_tenants", ["tenant_id"], unique=False)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("tenant_id", "name", name="uq_categories_tenant_name"),
    )
    op.create_index("ix_categories_tenant_id", "categories", ["tenant_id"], unique=False)

    op.create_table(
        "sub_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column(
            "category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("tenant_id", "category_id", "name", name="uq_sub_categories_tenant_category_name"),
    )
    op.create_index("ix_sub_categories_tenant_id", "sub_categories", ["tenant_id"], unique=False)
    op.create_index("ix_sub_categories_category_id", "sub_categories", ["category_id"], unique=False)

    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(120), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "name", name="uq_brands_tenant_name"),
    )
    op.create_index("ix_brands_tenant_id", "brands", ["tenant_id"], unique=False)

    op.create_table(
        "personalities",
        sa.Column("id", sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("image_url", sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "name", name="uq_personalities_tenant_name"),
    )
    op.create_index("ix_personalities_tenant_id", "personalities", ["tenant_id"], unique=False)

    op.create_table(
        "product_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("weight", sa.String(50), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="SET NULL"), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "weight", name="uq_product_items_tenant_weight"),
    )
    op.create_index("ix_product_items_tenant_id", "product_items", ["tenant_id"], unique=False)
    op.create_index("ix_product_items_tenant_order", "product_items", ["tenant_id", "display_order"], unique=False)

    op.create_table(
        "item_sub_categories",
        sa.Column(
            "product_item_id",
            sa.Integer(),
            sa.ForeignKey("product_items.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "sub_category_id",
            sa.Integer(),
            sa.ForeignKey("sub_categories.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_table(
        "item_personalities",
        sa.Column(
            "product_item_id",
            sa.Integer(),
            sa.ForeignKey("product_items.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "personality_id",
            sa.Integer(),
            sa.ForeignKey("personalities.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "taxes",
        sa.Column("id", sa.Integer(), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("value", sa.Numeric(10, 4), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("type IN ('percentage', 'fixed')", name="ck_taxes_type"),
    )
    op.create_index("ix_taxes_tenant_id", "taxes", ["tenant_id"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _tenant_fk(),
        sa.Column("order_number", sa.String(40), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("delivery_address", sa.Text(), nullable=False),
        sa.Column("apt_suite", sa.String(120), nullable=True),
        sa.Column("scheduled_delivery_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("bag_type", sa.String(20), nullable=False, server_default="normal"),
        sa.Column("order_request", sa.Text(), nullable=True),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("taxes", sa.Numeric(10, 2), nullable=False),
        sa.Column("delivery_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'preparing', 'arriving', 'completed', 'cancelled', 'rejected')",
            name="ck_orders_status",
        ),
        sa.CheckConstraint("bag_type IN ('normal', 'discrete')", name="ck_orders_bag_type"),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"], unique=False)
    op.create_index("ix_orders_tenant_id", "orders", ["tenant_id"], unique=False)

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "product_item_id",
            sa.Integer(),
            sa.ForeignKey("product_items.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"], unique=False)

    op.create_table(
        "admin_audit_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), nullable=True),
        sa.Column("actor_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("meta_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_admin_audit_log_id", "admin_audit_log", ["id"], unique=False)
    op.create_index("ix_admin_audit_log_tenant_id", "admin_audit_log", ["tenant_id"], unique=False)
    op.create_index("ix_admin_audit_log_actor_id", "admin_audit_log", ["actor_id"], unique=False)


def downgrade() -> None:
    for table in (
        "admin_audit_log",
        "order_items",
        "orders",
        "taxes",
        "item_personalities",
        "item_sub_categories",
        "product_items",
        "personalities",
        "brands",
        "sub_categories",
        "categories",
        "user_tenants",
        "users",
        "tenants",
    ):
        op.drop_table(table)
