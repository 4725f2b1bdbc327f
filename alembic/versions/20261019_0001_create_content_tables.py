"""create content, taxonomy and media tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False, comment="Projects, Calls, News"),
        sa.Column("external_id", sa.String(length=255), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("post_status", sa.String(length=16), nullable=False),
        sa.Column(
            "call_status",
            sa.String(length=32),
            nullable=True,
            comment="Calls only: scheduled, open, closing_soon, expired",
        ),
        sa.Column("closing_date", sa.Date(), nullable=True),
        sa.Column("featured_media_id", sa.Integer(), nullable=True),
        sa.Column(
            "attributes",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Kind-specific fields",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_content_items"),
    )
    op.create_index("ix_content_items_kind_title", "content_items", ["kind", "title"], unique=False)
    op.create_index(
        "ix_content_items_kind_external_id",
        "content_items",
        ["kind", "external_id"],
        unique=False,
    )
    op.create_index(
        "ix_content_items_kind_call_status_closing_date",
        "content_items",
        ["kind", "call_status", "closing_date"],
        unique=False,
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("axis", sa.String(length=32), nullable=False, comment="estado, area, boletin"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("meta", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["parent_id"],
            ["categories.id"],
            name="fk_categories_parent_id_categories",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_categories"),
        sa.UniqueConstraint("axis", "name", name="uq_categories_axis_name"),
    )
    op.create_index("ix_categories_axis_slug", "categories", ["axis", "slug"], unique=False)

    op.create_table(
        "content_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_item_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("axis", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(
            ["content_item_id"],
            ["content_items.id"],
            name="fk_content_categories_content_item_id_content_items",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["categories.id"],
            name="fk_content_categories_category_id_categories",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_content_categories"),
        sa.UniqueConstraint(
            "content_item_id",
            "category_id",
            name="uq_content_categories_content_item_id_category_id",
        ),
    )
    op.create_index(
        "ix_content_categories_content_item_id_axis",
        "content_categories",
        ["content_item_id", "axis"],
        unique=False,
    )

    op.create_table(
        "media_attachments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_item_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=True),
        sa.Column("file_size_bytes", sa.Integer(), nullable=False),
        sa.Column("checksum", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["content_item_id"],
            ["content_items.id"],
            name="fk_media_attachments_content_item_id_content_items",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_media_attachments"),
    )
    op.create_index(
        "ix_media_attachments_content_item_id",
        "media_attachments",
        ["content_item_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_media_attachments_content_item_id", table_name="media_attachments")
    op.drop_table("media_attachments")
    op.drop_index("ix_content_categories_content_item_id_axis", table_name="content_categories")
    op.drop_table("content_categories")
    op.drop_index("ix_categories_axis_slug", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_content_items_kind_call_status_closing_date", table_name="content_items")
    op.drop_index("ix_content_items_kind_external_id", table_name="content_items")
    op.drop_index("ix_content_items_kind_title", table_name="content_items")
    op.drop_table("content_items")
