"""User model for authentication, role-based access control, and vendor address linkage."""

import uuid
from datetime import datetime
from enum import IntEnum

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from address_sync.models.base import Base, UUIDMixin


class PrivacyTier(IntEnum):
    """User privacy subscription tier. Only PREMIUM users get address change notifications."""

    STANDARD = 1
    PREMIUM = 2


class User(Base, UUIDMixin):
    """Authenticated user of the system with role-based access control."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    privacy_tier: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=PrivacyTier.STANDARD,
        server_default=str(int(PrivacyTier.STANDARD)),
    )
    vendor_address_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("vendor_addresses.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    vendor_address = relationship("VendorAddress", back_populates="users", lazy="raise")
