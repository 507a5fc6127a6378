"""vendor_addresses.address_key: stored normalized address text

Revision ID: 003
Revises: 002
Create Date: 2026-10-18

Replaces the lower(trim(address)) functional index. SQL TRIM only removes
spaces, so text padded with tabs or newlines never matched; the key is now
computed by the application and backfilled here with the same function.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from address_sync.lib.vendor_sync import normalize_address_text

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("vendor_addresses", sa.Column("address_key", sa.Text, nullable=True))

    bind = op.get_bind()
    rows = bind.execute(sa.text("SELECT id, address FROM vendor_addresses")).all()
    for row_id, address in rows:
        bind.execute(
            sa.text("UPDATE vendor_addresses SET address_key = :key WHERE id = :id"),
            {"key": normalize_address_text(address), "id": row_id},
        )
    print(f"  -> Backfilled address_key on {len(rows)} vendor_addresses rows")  # noqa: T201

    op.alter_column("vendor_addresses", "address_key", nullable=False)
    op.drop_index("ix_vendor_addresses_address_normalized", table_name="vendor_addresses")
    op.create_index("ix_vendor_addresses_address_key", "vendor_addresses", ["address_key"])


def downgrade() -> None:
    op.drop_index("ix_vendor_addresses_address_key", table_name="vendor_addresses")
    op.create_index(
        "ix_vendor_addresses_address_normalized",
        "vendor_addresses",
        [sa.text("lower(trim(address))")],
    )
    op.drop_column("vendor_addresses", "address_key")
