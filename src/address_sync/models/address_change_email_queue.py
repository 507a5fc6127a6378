"""AddressChangeEmailQueue model — pending address change notifications for the mail sender."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from address_sync.models.base import Base, UUIDMixin


class AddressChangeEmailQueue(Base, UUIDMixin):
    """One queued notification per (user, vendor address, old text, new text).

    Append-only from this service; the external mail sender owns ``is_email_sent``.
    ``old_address_key``/``new_address_key`` hold the normalized texts backing the
    uniqueness constraint.
    """

    __tablename__ = "address_change_email_queue"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    vendor_address_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    old_vendor_address: Mapped[str] = mapped_column(Text, nullable=False)
    new_vendor_address: Mapped[str] = mapped_column(Text, nullable=False)
    old_address_key: Mapped[str] = mapped_column(Text, nullable=False)
    new_address_key: Mapped[str] = mapped_column(Text, nullable=False)
    vendor_address_status: Mapped[int] = mapped_column(Integer, nullable=False)
    is_email_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "vendor_address_id",
            "old_address_key",
            "new_address_key",
            name="uq_address_change_email_queue_dedup",
        ),
    )
