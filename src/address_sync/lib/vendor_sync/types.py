"""Data types for the vendor sync library.

Defines change descriptors flowing from the reconciler and retirement
detector into the notification deduplicator, plus the per-item outcomes
reported by a retirement sweep.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

# Descriptor status values carried into the notification queue
STATUS_CHANGED = 0
STATUS_RETIRED = 1


class RepairStatus(StrEnum):
    """Result of repairing one retired vendor address."""

    REPAIRED = "repaired"
    NO_MATCH = "no_match"
    MISSING_TOKEN = "missing_token"
    TARGET_MISSING = "target_missing"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class ChangeDescriptor:
    """An address change to notify users about.

    Attributes:
        id: Vendor address record the change applies to.
        region: Region of that record (informational).
        old_address: Address text before the change.
        new_address: Address text after the change.
        status: 0 for a changed (synced) address, 1 for a retired one.
    """

    id: uuid.UUID
    old_address: str
    new_address: str
    region: str | None = None
    status: int = STATUS_CHANGED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeDescriptor:
        """Build a descriptor from a JSON-style mapping.

        ``state`` is accepted as an alias of ``region``.

        Raises:
            ValueError: If a required key is missing, ``id`` is not a UUID,
                an address text is blank, or ``status`` is not 0 or 1.
        """
        for required_key in ("id", "old_address", "new_address"):
            if required_key not in data:
                msg = f"Retired address descriptor missing required field: {required_key!r}"
                raise ValueError(msg)
            if required_key != "id" and not str(data[required_key]).strip():
                msg = f"Retired address descriptor field {required_key!r} must not be blank"
                raise ValueError(msg)
        status = int(data.get("status", STATUS_RETIRED))
        if status not in (STATUS_CHANGED, STATUS_RETIRED):
            msg = f"Retired address descriptor status must be 0 or 1, got {status}"
            raise ValueError(msg)
        return cls(
            id=uuid.UUID(str(data["id"])),
            region=data.get("region", data.get("state")),
            old_address=str(data["old_address"]),
            new_address=str(data["new_address"]),
            status=status,
        )


@dataclass(frozen=True)
class NotificationIntent:
    """One queued-notification candidate for a single user."""

    user_id: uuid.UUID
    vendor_address_id: uuid.UUID
    old_address: str
    new_address: str
    status: int


@dataclass
class NotificationResult:
    """Counts produced by one enqueue_notifications call."""

    vendor_address_id: uuid.UUID
    eligible_users: int = 0
    queued: int = 0
    duplicates: int = 0
    failed: int = 0


@dataclass(frozen=True)
class RepairOutcome:
    """Outcome of repairing one retired address record."""

    status: RepairStatus
    matched_address_id: uuid.UUID | None = None
    error: str | None = None

    @property
    def repaired(self) -> bool:
        return self.status == RepairStatus.REPAIRED


@dataclass
class SweepItemOutcome:
    """Repair and notification outcome for one retirement descriptor."""

    descriptor: ChangeDescriptor
    repair: RepairOutcome
    notification: NotificationResult | None = None
    notification_error: str | None = None

    @property
    def failed(self) -> bool:
        if self.repair.status == RepairStatus.FAILED or self.notification_error is not None:
            return True
        return self.notification is not None and self.notification.failed > 0


@dataclass
class SweepReport:
    """Aggregate result of a retirement sweep; one item per descriptor."""

    items: list[SweepItemOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.items)

    @property
    def repaired(self) -> int:
        return sum(1 for item in self.items if item.repair.repaired)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if item.failed)

    @property
    def skipped(self) -> int:
        """Items whose repair was not applied for a lookup gap or blank input (not a fault)."""
        return sum(
            1
            for item in self.items
            if not item.failed and item.repair.status != RepairStatus.REPAIRED
        )

    @property
    def queued(self) -> int:
        return sum(item.notification.queued for item in self.items if item.notification is not None)
