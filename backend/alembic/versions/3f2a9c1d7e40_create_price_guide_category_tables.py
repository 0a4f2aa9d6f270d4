"""Create companies, offices and price guide category tables

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-15 09:12:44.318204

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '3f2a9c1d7e40'
down_revision = None
branch_labels = None
depends_on = None

CATEGORY_TYPE = postgresql.ENUM("DEFAULT", "DETAIL", "DEEP_DRILL_DOWN", name="categorytype", create_type=False)


def upgrade() -> None:
    # 1) Tenancy tables
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_companies_id", "companies", ["id"])
    op.create_index("ix_companies_name", "companies", ["name"])

    op.create_table(
        "offices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_offices_id", "offices", ["id"])
    op.create_index("ix_offices_company_id", "offices", ["company_id"])

    # 2) Category tree
    CATEGORY_TYPE.create(op.get_bind(), checkfirst=True)
    op.create_table(
        "price_guide_categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("price_guide_categories.id"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("depth", sa.Integer(), nullable=False, server_default="0"),
        # order keys compare by code point
        sa.Column("sort_order", sa.String(collation="C"), nullable=False),
        sa.Column("category_type", CATEGORY_TYPE, nullable=False, server_default="DEFAULT"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_modified_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_price_guide_categories_id", "price_guide_categories", ["id"])
    op.create_index("ix_price_guide_categories_company_id", "price_guide_categories", ["company_id"])
    op.create_index(
        "ix_price_guide_categories_company_parent",
        "price_guide_categories",
        ["company_id", "parent_id"],
    )

    op.create_table(
        "price_guide_category_offices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("price_guide_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("office_id", sa.Integer(), sa.ForeignKey("offices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.UniqueConstraint("category_id", "office_id", name="uq_price_guide_category_office"),
    )
    op.create_index("ix_price_guide_category_offices_id", "price_guide_category_offices", ["id"])
    op.create_index("ix_price_guide_category_offices_category_id", "price_guide_category_offices", ["category_id"])
    op.create_index("ix_price_guide_category_offices_office_id", "price_guide_category_offices", ["office_id"])

    # 3) Items filed under categories
    op.create_table(
        "measure_sheet_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("price_guide_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_measure_sheet_items_id", "measure_sheet_items", ["id"])
    op.create_index("ix_measure_sheet_items_company_id", "measure_sheet_items", ["company_id"])
    op.create_index("ix_measure_sheet_items_category_id", "measure_sheet_items", ["category_id"])


def downgrade() -> None:
    op.drop_table("measure_sheet_items")
    op.drop_table("price_guide_category_offices")
    op.drop_table("price_guide_categories")
    CATEGORY_TYPE.drop(op.get_bind(), checkfirst=True)
    op.drop_table("offices")
    op.drop_table("companies")
