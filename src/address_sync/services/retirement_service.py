"""Retirement service — repairs retired vendor addresses and queues user notifications.

A retired address has been superseded at the vendor by a new one. The
local record still pointing at the old text is re-pointed onto the address
text and vendor identity (token, vendor id, status, default flag) of the
record already holding the new text. Notification fan-out runs for every
descriptor whether or not the repair succeeded, except descriptors rejected
as invalid (blank address text), which are skipped entirely.

The sweep is best-effort: one descriptor's failure never stops the rest,
and every item's outcome is returned in a SweepReport.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from address_sync.lib.vendor_sync import (
    ChangeDescriptor,
    RepairOutcome,
    RepairStatus,
    RetirementSource,
    SweepItemOutcome,
    SweepReport,
)
from address_sync.models.user import PrivacyTier
from address_sync.services.notification_queue_service import enqueue_notifications
from address_sync.services.vendor_address_service import find_by_address_text, get_by_id


async def detect_and_repair(session: AsyncSession, descriptor: ChangeDescriptor) -> RepairOutcome:
    """Re-point the retired record onto the vendor identity of its new address.

    This bypasses token-based reconciliation because the record moves to a
    different token rather than receiving a same-token update.

    Args:
        session: Database session.
        descriptor: Retired address descriptor (``id`` is the record to repair).

    Returns:
        RepairOutcome; lookup gaps and faults are reported, never raised.
    """
    new_address = descriptor.new_address.strip()
    if not new_address or not descriptor.old_address.strip():
        logger.warning(
            f"Rejected retired address descriptor {descriptor.id} with blank address text "
            f"({descriptor.old_address!r} -> {descriptor.new_address!r})"
        )
        return RepairOutcome(status=RepairStatus.INVALID, error="blank address text")

    try:
        matched = await find_by_address_text(session, new_address)
        if matched is None:
            logger.error(f"No vendor address record found for new address {new_address!r}")
            return RepairOutcome(status=RepairStatus.NO_MATCH)

        matched_id = matched.id
        logger.info(f"Fetched vendor address record {matched_id} for new address {new_address!r}")
        if not matched.vendor_token:
            logger.error(
                f"Vendor address record {matched_id} found but vendor token is missing for new address {new_address!r}"
            )
            return RepairOutcome(status=RepairStatus.MISSING_TOKEN, matched_address_id=matched_id)

        matched_address = matched.address
        vendor_id = matched.vendor_id
        vendor_token = matched.vendor_token
        status = matched.status
        is_default = matched.is_default

        target = await get_by_id(session, descriptor.id)
        if target is None:
            logger.warning(
                f"No vendor address record {descriptor.id} found for old address {descriptor.old_address!r}"
            )
            return RepairOutcome(status=RepairStatus.TARGET_MISSING, matched_address_id=matched_id)

        target.address = matched_address
        target.vendor_id = vendor_id
        target.vendor_token = vendor_token
        target.status = status
        target.is_default = is_default
        await session.commit()

        logger.info(
            f"Vendor address {descriptor.id} repaired onto new address {matched_address!r} "
            f"(record {matched_id}, token {vendor_token})"
        )
        return RepairOutcome(status=RepairStatus.REPAIRED, matched_address_id=matched_id)
    except Exception as e:
        await session.rollback()
        logger.exception(
            f"Exception while repairing vendor address {descriptor.id} "
            f"({descriptor.old_address!r} -> {new_address!r}): {e}"
        )
        return RepairOutcome(status=RepairStatus.FAILED, error=str(e))


async def sweep_retired_addresses(
    session: AsyncSession,
    descriptors: list[ChangeDescriptor],
    *,
    premium_tier: int = PrivacyTier.PREMIUM,
) -> SweepReport:
    """Repair and notify for each retired address, continuing past failures.

    Args:
        session: Database session.
        descriptors: Retired address descriptors to process in order.
        premium_tier: Privacy tier eligible for change notifications.

    Returns:
        SweepReport with one outcome per descriptor.
    """
    report = SweepReport()
    for descriptor in descriptors:
        item = SweepItemOutcome(descriptor=descriptor, repair=await detect_and_repair(session, descriptor))
        if item.repair.status == RepairStatus.INVALID:
            report.items.append(item)
            continue
        try:
            item.notification = await enqueue_notifications(session, descriptor, premium_tier=premium_tier)
        except Exception as e:
            await session.rollback()
            logger.exception(f"Exception while queueing notifications for vendor address {descriptor.id}: {e}")
            item.notification_error = str(e)
        report.items.append(item)

    logger.info(
        f"Retired address sweep complete: processed={report.processed} repaired={report.repaired} "
        f"skipped={report.skipped} failed={report.failed} queued={report.queued}"
    )
    return report


async def run_retirement_sweep(
    session: AsyncSession,
    source: RetirementSource,
    *,
    premium_tier: int = PrivacyTier.PREMIUM,
) -> SweepReport:
    """Fetch retirement descriptors from a source and sweep them.

    Raises:
        ValueError: If the source content is invalid.
        OSError: If the source cannot be read.
    """
    descriptors = source.fetch()
    logger.info(f"Sweeping {len(descriptors)} retired vendor addresses from {source.name}")
    return await sweep_retired_addresses(session, descriptors, premium_tier=premium_tier)
