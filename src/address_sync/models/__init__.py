"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from address_sync.models.address_change_email_queue import AddressChangeEmailQueue
from address_sync.models.user import PrivacyTier, User
from address_sync.models.vendor_address import VendorAddress

__all__ = [
    "AddressChangeEmailQueue",
    "PrivacyTier",
    "User",
    "VendorAddress",
]
