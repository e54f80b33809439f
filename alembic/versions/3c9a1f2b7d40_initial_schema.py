"""Initial schema

Revision ID: 3c9a1f2b7d40
Revises:
Create Date: 2026-10-18 09:12:44.218503

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c9a1f2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LISTING_TABLES = {
    "market_listings": [sa.Column("price", sa.Integer(), nullable=True)],
    "housing_listings": [sa.Column("price_per_month", sa.Integer(), nullable=True)],
    "job_listings": [
        sa.Column("salary_from", sa.Integer(), nullable=True),
        sa.Column("salary_to", sa.Integer(), nullable=True),
    ],
}


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("telegram_username", sa.String(100), nullable=True),
        sa.Column("nickname", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "dating_profiles",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("nickname", sa.String(100), nullable=False),
        sa.Column("looking_for", sa.Text(), nullable=False),
        sa.Column("offering", sa.Text(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("purposes", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("photo_urls", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("has_photo", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("link_market", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("link_housing", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("link_jobs", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("last_activated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "dating_swipes",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("from_user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("to_profile_id", sa.String(50), sa.ForeignKey("dating_profiles.id"), nullable=False),
        sa.Column("decision", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("from_user_id", "to_profile_id", name="uq_dating_swipes_pair"),
    )

    op.create_table(
        "dating_matches",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("user1_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user2_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_activity_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user1_id", "user2_id", name="uq_dating_matches_pair"),
        sa.CheckConstraint("user1_id < user2_id", name="ck_dating_matches_canonical_order"),
    )

    op.create_table(
        "dating_reports",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("reporter_user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reported_user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reason", sa.String(50), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'new'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("resolved_by_user_id", sa.String(50), nullable=True),
        sa.Column("moderator_note", sa.Text(), nullable=True),
        sa.UniqueConstraint("reporter_user_id", "reported_user_id", name="uq_dating_reports_pair"),
    )

    op.create_table(
        "listing_reports",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("section", sa.String(20), nullable=False),
        sa.Column("listing_id", sa.String(50), nullable=False),
        sa.Column("reporter_user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("owner_user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reason", sa.String(50), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'new'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("resolved_by_user_id", sa.String(50), nullable=True),
        sa.Column("moderator_note", sa.Text(), nullable=True),
        sa.UniqueConstraint("section", "listing_id", "reporter_user_id", name="uq_listing_reports_reporter"),
    )

    for table, price_columns in LISTING_TABLES.items():
        op.create_table(
            table,
            sa.Column("id", sa.String(50), primary_key=True),
            sa.Column("user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("title", sa.String(200), nullable=False),
            sa.Column("city", sa.String(100), nullable=True),
            sa.Column("currency", sa.String(10), nullable=True),
            *price_columns,
            sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        )
        op.create_index(f"idx_{table}_user_id", table, ["user_id"])
        op.create_index(f"idx_{table}_status", table, ["status"])

    # Create indexes
    op.create_index("idx_users_telegram_username", "users", ["telegram_username"])
    op.create_index("idx_users_status", "users", ["status"])
    op.create_index("idx_dating_profiles_status", "dating_profiles", ["status"])
    op.create_index("idx_dating_swipes_from_user_id", "dating_swipes", ["from_user_id"])
    op.create_index("idx_dating_swipes_to_profile_id", "dating_swipes", ["to_profile_id"])
    op.create_index("idx_dating_matches_user1_id", "dating_matches", ["user1_id"])
    op.create_index("idx_dating_matches_user2_id", "dating_matches", ["user2_id"])
    op.create_index("idx_dating_reports_reported_user_id", "dating_reports", ["reported_user_id"])
    op.create_index("idx_dating_reports_status", "dating_reports", ["status"])
    op.create_index("idx_dating_reports_created_at", "dating_reports", ["created_at"])
    op.create_index("idx_listing_reports_listing", "listing_reports", ["section", "listing_id"])
    op.create_index("idx_listing_reports_status", "listing_reports", ["status"])
    op.create_index("idx_listing_reports_created_at", "listing_reports", ["created_at"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_listing_reports_created_at", table_name="listing_reports")
    op.drop_index("idx_listing_reports_status", table_name="listing_reports")
    op.drop_index("idx_listing_reports_listing", table_name="listing_reports")
    op.drop_index("idx_dating_reports_created_at", table_name="dating_reports")
    op.drop_index("idx_dating_reports_status", table_name="dating_reports")
    op.drop_index("idx_dating_reports_reported_user_id", table_name="dating_reports")
    op.drop_index("idx_dating_matches_user2_id", table_name="dating_matches")
    op.drop_index("idx_dating_matches_user1_id", table_name="dating_matches")
    op.drop_index("idx_dating_swipes_to_profile_id", table_name="dating_swipes")
    op.drop_index("idx_dating_swipes_from_user_id", table_name="dating_swipes")
    op.drop_index("idx_dating_profiles_status", table_name="dating_profiles")
    op.drop_index("idx_users_status", table_name="users")
    op.drop_index("idx_users_telegram_username", table_name="users")

    for table in reversed(list(LISTING_TABLES)):
        op.drop_index(f"idx_{table}_status", table_name=table)
        op.drop_index(f"idx_{table}_user_id", table_name=table)
        op.drop_table(table)

    op.drop_table("listing_reports")
    op.drop_table("dating_reports")
    op.drop_table("dating_matches")
    op.drop_table("dating_swipes")
    op.drop_table("dating_profiles")
    op.drop_table("users")
