"""Address text normalization shared by matching and notification dedup.

Every comparison runs on keys produced here: ``vendor_addresses.address_key``
and the queue's ``old_address_key``/``new_address_key`` are written with
``normalize_address_text``, and lookups normalize their input the same way.
"""

import uuid


def normalize_address_text(text: str | None) -> str:
    """Normalize free-text address for case/whitespace-insensitive comparison.

    Args:
        text: Raw address text (may be None).

    Returns:
        The text stripped of leading/trailing whitespace and lower-cased.
        None becomes an empty string.
    """
    if text is None:
        return ""
    return text.strip().lower()


def dedup_key(
    user_id: uuid.UUID,
    vendor_address_id: uuid.UUID,
    old_address: str | None,
    new_address: str | None,
) -> tuple[uuid.UUID, uuid.UUID, str, str]:
    """Build the notification dedup key for a queue entry.

    Args:
        user_id: Notified user.
        vendor_address_id: Vendor address the change applies to.
        old_address: Address text before the change.
        new_address: Address text after the change.

    Returns:
        ``(user_id, vendor_address_id, normalized_old, normalized_new)``.
    """
    return (
        user_id,
        vendor_address_id,
        normalize_address_text(old_address),
        normalize_address_text(new_address),
    )
