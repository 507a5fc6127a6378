"""Notification queue service — deduplicated address change notifications.

Finds premium-privacy users linked to a changed vendor address and appends
one ``address_change_email_queue`` row per user unless an identical
(user, address, old text, new text) notification is already queued.
Delivery is owned by the external mail sender.
"""

import uuid

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from address_sync.lib.vendor_sync import (
    ChangeDescriptor,
    NotificationIntent,
    NotificationResult,
    dedup_key,
)
from address_sync.models.address_change_email_queue import AddressChangeEmailQueue
from address_sync.models.user import PrivacyTier, User


async def find_eligible_user_ids(
    session: AsyncSession,
    vendor_address_id: uuid.UUID,
    premium_tier: int = PrivacyTier.PREMIUM,
) -> list[uuid.UUID]:
    """Return ids of users linked to a vendor address with the premium privacy tier.

    Args:
        session: Database session.
        vendor_address_id: Vendor address the users are linked to.
        premium_tier: Privacy tier eligible for notification.

    Returns:
        User ids in query order (may contain duplicates).
    """
    result = await session.execute(
        select(User.id).where(
            User.vendor_address_id == vendor_address_id,
            User.privacy_tier == int(premium_tier),
        )
    )
    return list(result.scalars().all())


def build_intents(descriptor: ChangeDescriptor, user_ids: list[uuid.UUID]) -> list[NotificationIntent]:
    """Build one notification intent per distinct user; the last occurrence wins."""
    intents: dict[uuid.UUID, NotificationIntent] = {}
    for user_id in user_ids:
        intents[user_id] = NotificationIntent(
            user_id=user_id,
            vendor_address_id=descriptor.id,
            old_address=descriptor.old_address,
            new_address=descriptor.new_address,
            status=descriptor.status,
        )
    return list(intents.values())


async def is_already_queued(
    session: AsyncSession,
    key: tuple[uuid.UUID, uuid.UUID, str, str],
) -> bool:
    """Check whether a notification with this dedup key is already queued."""
    user_id, vendor_address_id, old_key, new_key = key
    result = await session.execute(
        select(AddressChangeEmailQueue.id)
        .where(
            AddressChangeEmailQueue.user_id == user_id,
            AddressChangeEmailQueue.vendor_address_id == vendor_address_id,
            AddressChangeEmailQueue.old_address_key == old_key,
            AddressChangeEmailQueue.new_address_key == new_key,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def enqueue_notifications(
    session: AsyncSession,
    descriptor: ChangeDescriptor,
    *,
    premium_tier: int = PrivacyTier.PREMIUM,
) -> NotificationResult:
    """Queue address change notifications for every eligible user of a vendor address.

    Each intent is committed on its own. A concurrent duplicate rejected by
    the unique constraint counts as already queued; any other storage error
    is logged and the remaining intents are still attempted.

    Args:
        session: Database session.
        descriptor: The address change to notify about.
        premium_tier: Privacy tier eligible for notification.

    Returns:
        Counts of eligible users, queued, duplicate, and failed intents.

    Raises:
        SQLAlchemyError: If the eligible-user lookup fails.
    """
    outcome = NotificationResult(vendor_address_id=descriptor.id)

    user_ids = await find_eligible_user_ids(session, descriptor.id, premium_tier)
    if not user_ids:
        logger.info(f"No users found for vendor address {descriptor.id}")
        return outcome

    intents = build_intents(descriptor, user_ids)
    outcome.eligible_users = len(intents)
    logger.info(f"Users found for vendor address {descriptor.id}: {len(intents)}")

    for intent in intents:
        key = dedup_key(intent.user_id, intent.vendor_address_id, intent.old_address, intent.new_address)
        try:
            if await is_already_queued(session, key):
                outcome.duplicates += 1
                continue

            session.add(
                AddressChangeEmailQueue(
                    user_id=intent.user_id,
                    vendor_address_id=intent.vendor_address_id,
                    old_vendor_address=intent.old_address,
                    new_vendor_address=intent.new_address,
                    old_address_key=key[2],
                    new_address_key=key[3],
                    vendor_address_status=intent.status,
                    is_email_sent=False,
                )
            )
            await session.commit()
            outcome.queued += 1
        except IntegrityError:
            await session.rollback()
            outcome.duplicates += 1
            logger.info(
                f"Notification for user {intent.user_id} on vendor address {intent.vendor_address_id} "
                "was queued concurrently, skipping"
            )
        except SQLAlchemyError as e:
            await session.rollback()
            outcome.failed += 1
            logger.error(
                f"Failed to queue notification for user {intent.user_id} on vendor address "
                f"{intent.vendor_address_id} ({intent.old_address!r} -> {intent.new_address!r}): {e}"
            )

    logger.info(
        f"Vendor address {descriptor.id} notifications: queued={outcome.queued} "
        f"duplicates={outcome.duplicates} failed={outcome.failed}"
    )
    return outcome


async def list_queue_entries(
    session: AsyncSession,
    *,
    is_email_sent: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[AddressChangeEmailQueue], int]:
    """List queued notifications, newest first.

    Args:
        session: Database session.
        is_email_sent: Optional filter on the delivery flag.
        page: Page number (1-based).
        page_size: Items per page.

    Returns:
        Tuple of (queue entries, total count).
    """
    query = select(AddressChangeEmailQueue)
    count_query = select(func.count(AddressChangeEmailQueue.id))
    if is_email_sent is not None:
        query = query.where(AddressChangeEmailQueue.is_email_sent.is_(is_email_sent))
        count_query = count_query.where(AddressChangeEmailQueue.is_email_sent.is_(is_email_sent))

    total = (await session.execute(count_query)).scalar_one()

    offset = (page - 1) * page_size
    query = query.order_by(AddressChangeEmailQueue.created_at.desc()).offset(offset).limit(page_size)
    result = await session.execute(query)
    return list(result.scalars().all()), total
