"""Create marketplace tables

Revision ID: 001
Revises: None
Create Date: 2025-03-02 00:00:00.000000+00:00

What:  Creates users, listings, listing_images, swap_offers and ratings.
How:   PostgreSQL-specific: UUID primary keys defaulting to gen_random_uuid(),
       TIMESTAMP WITH TIME ZONE. The ORM supplies ids itself, so the server
       defaults only matter for rows inserted by hand.

Rollback: downgrade() drops every table (destructive — all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all tables, then their secondary indexes."""
    op.create_table(
        "users",
        _id_column(),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Login identifier; unique across all accounts",
        ),
        sa.Column(
            "password_hash",
            sa.String(128),
            nullable=False,
            comment="bcrypt hash of the password",
        ),
        sa.Column("name", sa.String(120), nullable=True),
        sa.Column("avatar_url", sa.String(2048), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "listings",
        _id_column(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("condition", sa.String(50), nullable=True),
        sa.Column(
            "is_active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
            comment="Inactive listings are hidden from browse",
        ),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
    )

    op.create_table(
        "listing_images",
        _id_column(),
        sa.Column("listing_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column(
            "ordinal",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Position of the image within its listing",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
    )

    op.create_table(
        "swap_offers",
        _id_column(),
        sa.Column("listing_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("proposer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("offered_text", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        _created_at_column(),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.ForeignKeyConstraint(["proposer_id"], ["users.id"]),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'completed')",
            name="ck_swap_offers_status",
        ),
    )

    op.create_table(
        "ratings",
        _id_column(),
        sa.Column("rater_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("ratee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("listing_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["rater_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["ratee_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.CheckConstraint("score BETWEEN 1 AND 5", name="ck_ratings_score_range"),
    )

    # Browse: WHERE is_active ORDER BY created_at DESC
    op.create_index(
        "idx_listings_active_created_at",
        "listings",
        ["is_active", sa.text("created_at DESC")],
    )
    op.create_index("ix_listings_owner_id", "listings", ["owner_id"])
    op.create_index("ix_listing_images_listing_id", "listing_images", ["listing_id"])
    op.create_index("ix_swap_offers_listing_id", "swap_offers", ["listing_id"])
    op.create_index("ix_swap_offers_proposer_id", "swap_offers", ["proposer_id"])
    op.create_index("ix_ratings_ratee_id", "ratings", ["ratee_id"])
    op.create_index("ix_ratings_listing_id", "ratings", ["listing_id"])


def downgrade() -> None:
    """
    Drop every marketplace table, children first.

    WARNING: destructive — all data is permanently lost.
    """
    op.drop_index("ix_ratings_listing_id", table_name="ratings")
    op.drop_index("ix_ratings_ratee_id", table_name="ratings")
    op.drop_index("ix_swap_offers_proposer_id", table_name="swap_offers")
    op.drop_index("ix_swap_offers_listing_id", table_name="swap_offers")
    op.drop_index("ix_listing_images_listing_id", table_name="listing_images")
    op.drop_index("ix_listings_owner_id", table_name="listings")
    op.drop_index("idx_listings_active_created_at", table_name="listings")
    op.drop_table("ratings")
    op.drop_table("swap_offers")
    op.drop_table("listing_images")
    op.drop_table("listings")
    op.drop_table("users")
