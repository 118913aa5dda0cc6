from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0002_promo_codes_and_templates"
down_revision = "0001_create_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "promo_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("tenant_id", "name", name="uq_promo_codes_tenant_name"),
        sa.CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100", name="ck_promo_codes_discount_range"
        ),
    )
    op.create_index("ix_promo_codes_tenant_id", "promo_codes", ["tenant_id"], unique=False)

    op.create_table(
        "category_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "template_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "template_id",
            sa.Integer(),
            sa.ForeignKey("category_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("template_id", "name", name="uq_template_categories_template_name"),
    )
    op.create_index("ix_template_categories_template_id", "template_categories", ["template_id"], unique=False)
    op.create_table(
        "template_sub_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "template_category_id",
            sa.Integer(),
            sa.ForeignKey("template_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("template_category_id", "name", name="uq_template_sub_categories_parent_name"),
    )
    op.create_index(
        "ix_template_sub_categories_template_category_id",
        "template_sub_categories",
        ["template_category_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("template_sub_categories")
    op.drop_table("template_categories")
    op.drop_table("category_templates")
    op.drop_table("promo_codes")
