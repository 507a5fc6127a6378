"""VendorAddress model — local copy of vendor-supplied addresses keyed by a shared vendor token."""

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from address_sync.lib.vendor_sync import normalize_address_text
from address_sync.models.base import Base, TimestampMixin, UUIDMixin


class VendorAddress(Base, UUIDMixin, TimestampMixin):
    """Vendor address record.

    The vendor collapses several regions onto one physical address, so one
    ``vendor_token`` may be shared by several rows (one per region). Updates
    keyed by token never touch ``region``.

    ``address_key`` is the normalized form of ``address``, kept in step on
    every assignment; text lookups compare against it.
    """

    __tablename__ = "vendor_addresses"

    vendor_token: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    vendor_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    region: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    address_key: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    is_default: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # Relationships
    users = relationship("User", back_populates="vendor_address", lazy="raise")

    __table_args__ = (
        Index("ix_vendor_addresses_region", "region"),
        Index("ix_vendor_addresses_address_key", "address_key"),
    )

    @validates("address")
    def _sync_address_key(self, _key: str, value: str) -> str:
        self.address_key = normalize_address_text(value)
        return value
