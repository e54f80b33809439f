"""add listing contact purchases and dating profile listings

Revision ID: 8b2e4d6f1a93
Revises: 3c9a1f2b7d40
Create Date: 2026-10-18 14:03:21.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8b2e4d6f1a93"
down_revision: Union[str, Sequence[str], None] = "3c9a1f2b7d40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "listing_contact_purchases",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("buyer_user_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("section", sa.String(20), nullable=False),
        sa.Column("listing_id", sa.String(50), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("buyer_user_id", "section", "listing_id", name="uq_listing_contact_purchases_buyer"),
    )
    op.create_index("idx_listing_contact_purchases_buyer_user_id", "listing_contact_purchases", ["buyer_user_id"])

    op.create_table(
        "dating_profile_listings",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("profile_id", sa.String(50), sa.ForeignKey("dating_profiles.id"), nullable=False),
        sa.Column("section", sa.String(20), nullable=False),
        sa.Column("listing_id", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("profile_id", "section", "listing_id", name="uq_dating_profile_listings_item"),
    )
    op.create_index("idx_dating_profile_listings_profile_id", "dating_profile_listings", ["profile_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_dating_profile_listings_profile_id", table_name="dating_profile_listings")
    op.drop_table("dating_profile_listings")
    op.drop_index("idx_listing_contact_purchases_buyer_user_id", table_name="listing_contact_purchases")
    op.drop_table("listing_contact_purchases")
