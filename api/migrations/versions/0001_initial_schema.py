"""Initial schema: content, reviews, settings, users

Revision ID: 5e1a9c3b7d20
Revises:
Create Date: 2026-09-01 00:00:00.000000

Creates all 5 tables: users, content_items, content_terms, reviews,
schema_settings.

The reviews table normally belongs to the review store and may already exist;
it is created here so a fresh development database is complete.

NOTE: Written manually (not via autogenerate) so the initial schema stays
reviewable and the composite indexes are explicit.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSON, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5e1a9c3b7d20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users table ---
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("api_key_hash", sa.String(255), nullable=True, unique=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    # --- content_items table ---
    op.create_table(
        "content_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("content_type", sa.String(50), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False, unique=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="publish"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        # Schema list stored by the SEO toolkit
        sa.Column("seo_schemas", JSON, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_content_items_content_type", "content_items", ["content_type"])

    # --- content_terms table ---
    op.create_table(
        "content_terms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "content_id",
            sa.Integer(),
            sa.ForeignKey(
                "content_items.id", name="fk_content_terms_content_id_content_items"
            ),
            nullable=False,
        ),
        sa.Column("taxonomy", sa.String(50), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_content_terms_content_id_taxonomy", "content_terms", ["content_id", "taxonomy"]
    )

    # --- reviews table (review store) ---
    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("author_name", sa.String(100), nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    # Serves the per-content COUNT/AVG aggregate query
    op.create_index("ix_reviews_post_id_approved", "reviews", ["post_id", "approved"])

    # --- schema_settings table (single row, id = 1) ---
    op.create_table(
        "schema_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type_mappings", JSON, nullable=False),
        sa.Column("enabled_types", JSON, nullable=False),
        sa.Column("organization_name", sa.String(200), nullable=False),
        sa.Column(
            "integration_enabled", sa.Boolean(), nullable=False, server_default="true"
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )


def downgrade() -> None:
    # Drop tables in reverse dependency order
    op.drop_table("schema_settings")
    op.drop_index("ix_reviews_post_id_approved", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_content_terms_content_id_taxonomy", table_name="content_terms")
    op.drop_table("content_terms")
    op.drop_index("ix_content_items_content_type", table_name="content_items")
    op.drop_table("content_items")
    op.drop_table("users")
