"""Vendor addresses, user address link, and address change email queue.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "vendor_addresses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("vendor_token", sa.String(255), nullable=True),
        sa.Column("vendor_id", sa.String(255), nullable=True),
        sa.Column("region", sa.String(50), nullable=False),
        sa.Column("address", sa.Text, nullable=False),
        sa.Column("status", sa.Integer, nullable=False, server_default="1"),
        sa.Column("is_default", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_vendor_addresses_vendor_token", "vendor_addresses", ["vendor_token"])
    op.create_index("ix_vendor_addresses_region", "vendor_addresses", ["region"])
    # Backs the case/whitespace-insensitive lookup used by retirement repair
    op.create_index(
        "ix_vendor_addresses_address_normalized",
        "vendor_addresses",
        [sa.text("lower(trim(address))")],
    )

    # Link users to a vendor address with a privacy tier (2 = premium privacy)
    op.add_column("users", sa.Column("privacy_tier", sa.Integer, nullable=False, server_default="1"))
    op.add_column("users", sa.Column("vendor_address_id", sa.Uuid(), nullable=True))
    op.create_foreign_key(
        "fk_users_vendor_address_id",
        "users",
        "vendor_addresses",
        ["vendor_address_id"],
        ["id"],
        ondelete="SET NULL",
    )
    op.create_index("ix_users_vendor_address_id", "users", ["vendor_address_id"])

    op.create_table(
        "address_change_email_queue",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("vendor_address_id", sa.Uuid(), nullable=False),
        sa.Column("old_vendor_address", sa.Text, nullable=False),
        sa.Column("new_vendor_address", sa.Text, nullable=False),
        sa.Column("old_address_key", sa.Text, nullable=False),
        sa.Column("new_address_key", sa.Text, nullable=False),
        sa.Column("vendor_address_status", sa.Integer, nullable=False),
        sa.Column("is_email_sent", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "user_id",
            "vendor_address_id",
            "old_address_key",
            "new_address_key",
            name="uq_address_change_email_queue_dedup",
        ),
    )
    op.create_index("ix_address_change_email_queue_user_id", "address_change_email_queue", ["user_id"])
    op.create_index(
        "ix_address_change_email_queue_vendor_address_id",
        "address_change_email_queue",
        ["vendor_address_id"],
    )
    op.create_index("ix_address_change_email_queue_created_at", "address_change_email_queue", ["created_at"])


def downgrade() -> None:
    op.drop_table("address_change_email_queue")
    op.drop_index("ix_users_vendor_address_id", table_name="users")
    op.drop_constraint("fk_users_vendor_address_id", "users", type_="foreignkey")
    op.drop_column("users", "vendor_address_id")
    op.drop_column("users", "privacy_tier")
    op.drop_table("vendor_addresses")
