"""Vendor sync library public API.

Provides address text normalization, dedup keys, change/outcome types,
error types, and pluggable retirement candidate sources.
"""

from address_sync.lib.vendor_sync.errors import (
    AddressPersistenceError,
    AddressSyncError,
    AddressValidationError,
)
from address_sync.lib.vendor_sync.normalize import dedup_key, normalize_address_text
from address_sync.lib.vendor_sync.sources import (
    JsonFileRetirementSource,
    RetirementSource,
    StaticRetirementSource,
)
from address_sync.lib.vendor_sync.types import (
    ChangeDescriptor,
    NotificationIntent,
    NotificationResult,
    RepairOutcome,
    RepairStatus,
    SweepItemOutcome,
    SweepReport,
)

__all__ = [
    "AddressPersistenceError",
    "AddressSyncError",
    "AddressValidationError",
    "ChangeDescriptor",
    "JsonFileRetirementSource",
    "NotificationIntent",
    "NotificationResult",
    "RepairOutcome",
    "RepairStatus",
    "RetirementSource",
    "StaticRetirementSource",
    "SweepItemOutcome",
    "SweepReport",
    "dedup_key",
    "normalize_address_text",
]
