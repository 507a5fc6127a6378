"""Vendor address service — reconciles vendor-pushed addresses with the local store.

Records are matched by the vendor token, not by primary key. The vendor
stores one address per token while this store may hold several rows for
the same token (one per region, when a region without its own vendor
address borrowed another region's). A token-driven update therefore never
writes ``region``; writing it would merge the regions into one.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from address_sync.lib.vendor_sync import (
    AddressPersistenceError,
    AddressValidationError,
    ChangeDescriptor,
    NotificationResult,
    normalize_address_text,
)
from address_sync.lib.vendor_sync.types import STATUS_CHANGED
from address_sync.models.user import PrivacyTier
from address_sync.models.vendor_address import VendorAddress
from address_sync.schemas.vendor_address import SyncAddressRequest
from address_sync.services.notification_queue_service import enqueue_notifications

# Fields a token-driven sync may write, with how each is read from the payload.
# region is deliberately absent.
_SYNC_FIELDS: dict[str, Callable[[SyncAddressRequest], object]] = {
    "address": lambda request: request.address,
    "status": lambda request: int(request.status),
    "is_default": lambda request: int(request.is_default),
}


@dataclass
class SyncResult:
    """Outcome of one reconcile call: a created record or the updated set."""

    created: VendorAddress | None = None
    updated: list[VendorAddress] = field(default_factory=list)
    notifications: list[NotificationResult] = field(default_factory=list)


async def find_by_token(session: AsyncSession, vendor_token: str) -> list[VendorAddress]:
    """Return every vendor address sharing a vendor token, oldest first."""
    result = await session.execute(
        select(VendorAddress).where(VendorAddress.vendor_token == vendor_token).order_by(VendorAddress.created_at)
    )
    return list(result.scalars().all())


async def get_by_id(session: AsyncSession, address_id: uuid.UUID) -> VendorAddress | None:
    """Look up a vendor address by primary key."""
    result = await session.execute(select(VendorAddress).where(VendorAddress.id == address_id))
    return result.scalar_one_or_none()


async def find_by_address_text(session: AsyncSession, address_text: str) -> VendorAddress | None:
    """Find the first tokenized vendor address whose text matches, ignoring case and outer whitespace.

    Args:
        session: Database session.
        address_text: Address text to match.

    Returns:
        The first matching record with a non-null vendor token, or None.
    """
    normalized = normalize_address_text(address_text)
    result = await session.execute(
        select(VendorAddress)
        .where(
            VendorAddress.address_key == normalized,
            VendorAddress.vendor_token.is_not(None),
        )
        .order_by(VendorAddress.created_at)
        .limit(1)
    )
    return result.scalars().first()


def _sync_updates(request: SyncAddressRequest) -> dict[str, object]:
    return {name: read(request) for name, read in _SYNC_FIELDS.items()}


async def reconcile(
    session: AsyncSession,
    request: SyncAddressRequest,
    *,
    premium_tier: int = PrivacyTier.PREMIUM,
) -> SyncResult:
    """Create or update vendor addresses for a vendor sync payload.

    When records already carry the token, each one is updated (address,
    status, is_default) and committed individually, and a change descriptor
    captured before the update is forwarded to the notification queue.
    Otherwise a single record is created with the supplied region.

    Args:
        session: Database session.
        request: Validated sync payload.
        premium_tier: Privacy tier eligible for change notifications.

    Returns:
        SyncResult with the created record or the updated records.

    Raises:
        AddressValidationError: If a new record would be created without a region.
        AddressPersistenceError: If the storage engine fails. Records committed
            before the failure stay updated.
    """
    try:
        records = await find_by_token(session, request.vtoken)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load vendor addresses for token {request.vtoken}: {e}")
        msg = f"Could not load vendor addresses for token {request.vtoken}"
        raise AddressPersistenceError(msg) from e

    if not records:
        return await _create(session, request)

    descriptors = [
        ChangeDescriptor(
            id=record.id,
            region=record.region,
            old_address=record.address,
            new_address=request.address,
            status=STATUS_CHANGED,
        )
        for record in records
    ]

    updates = _sync_updates(request)
    for record, descriptor in zip(records, descriptors, strict=True):
        for name, value in updates.items():
            setattr(record, name, value)
        try:
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(
                f"Failed to update vendor address {descriptor.id} (token {request.vtoken}, "
                f"region {descriptor.region}): {e}"
            )
            msg = f"Could not update vendor address {descriptor.id}"
            raise AddressPersistenceError(msg) from e

    logger.info(
        f"Vendor address updated successfully: token {request.vtoken}, "
        f"{len(records)} record(s) in regions {[d.region for d in descriptors]}"
    )

    result = SyncResult(updated=records)
    try:
        for descriptor in descriptors:
            result.notifications.append(await enqueue_notifications(session, descriptor, premium_tier=premium_tier))
        # Queue inserts may roll back on duplicates, which expires loaded rows.
        for record in records:
            await session.refresh(record)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to queue change notifications for token {request.vtoken}: {e}")
        msg = f"Could not queue change notifications for token {request.vtoken}"
        raise AddressPersistenceError(msg) from e

    return result


async def _create(session: AsyncSession, request: SyncAddressRequest) -> SyncResult:
    if request.state is None:
        raise AddressValidationError("state", "required when creating a new vendor address")

    record = VendorAddress(
        vendor_token=request.vtoken,
        region=request.state,
        address=request.address,
        status=int(request.status),
        is_default=int(request.is_default),
    )
    session.add(record)
    try:
        await session.commit()
        await session.refresh(record)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to create vendor address for token {request.vtoken}: {e}")
        msg = f"Could not create vendor address for token {request.vtoken}"
        raise AddressPersistenceError(msg) from e

    logger.info(f"Vendor address created successfully: {record.id} (token {request.vtoken}, region {record.region})")
    return SyncResult(created=record)
