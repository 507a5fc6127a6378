"""Vendor address API endpoints.

POST /vendor-addresses/sync, POST /vendor-addresses/retired/notify,
GET /vendor-addresses/notifications.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from address_sync.core.config import Settings, get_settings
from address_sync.core.dependencies import get_async_session, get_premium_tier, require_role
from address_sync.lib.vendor_sync import (
    AddressPersistenceError,
    JsonFileRetirementSource,
    RetirementSource,
    StaticRetirementSource,
)
from address_sync.models.user import User
from address_sync.schemas.common import ErrorResponse, PaginationMeta, PaginationParams
from address_sync.schemas.vendor_address import (
    EmailQueueEntryResponse,
    RetiredSweepRequest,
    RetiredSweepResponse,
    SyncAddressData,
    SyncAddressRequest,
    SyncAddressResponse,
    VendorAddressResponse,
)
from address_sync.services.notification_queue_service import list_queue_entries
from address_sync.services.retirement_service import run_retirement_sweep
from address_sync.services.vendor_address_service import reconcile

vendor_addresses_router = APIRouter(
    prefix="/vendor-addresses",
    tags=["vendor-addresses"],
)


@vendor_addresses_router.post("/sync", responses={422: {"model": ErrorResponse}})
async def sync_address(
    body: SyncAddressRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    premium_tier: Annotated[int, Depends(get_premium_tier)],
    _user: Annotated[User, Depends(require_role("admin", "vendor"))],
) -> SyncAddressResponse:
    """Create a vendor address or update every record sharing its vendor token.

    ``state`` is only used when the token is new; updates never change a
    record's region. Requires the admin or vendor role. A new token without
    ``state`` is rejected with 422 by the application error handler.
    """
    try:
        result = await reconcile(session, body, premium_tier=premium_tier)
    except AddressPersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error syncing vendor address.",
        ) from e

    if result.created is not None:
        return SyncAddressResponse(
            message="Vendor address created successfully",
            data=SyncAddressData(created=VendorAddressResponse.model_validate(result.created)),
        )
    return SyncAddressResponse(
        message="Vendor address updated successfully",
        data=SyncAddressData(updated=[VendorAddressResponse.model_validate(r) for r in result.updated]),
    )


@vendor_addresses_router.post("/retired/notify")
async def notify_retired_address_users(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    current_user: Annotated[User, Depends(require_role("admin"))],
    body: Annotated[RetiredSweepRequest | None, Body()] = None,
) -> RetiredSweepResponse:
    """Repair retired vendor addresses and queue notifications for premium-privacy users.

    Uses the retirements in the request body, or the configured retired
    address file when no body is sent. Individual item failures do not fail
    the request; they are visible in the counts and logs. Requires admin.
    """
    source: RetirementSource
    if body is not None:
        source = StaticRetirementSource([r.to_descriptor() for r in body.retirements])
    elif settings.retired_addresses_file:
        source = JsonFileRetirementSource(settings.retired_addresses_file)
    else:
        source = StaticRetirementSource([])

    try:
        report = await run_retirement_sweep(session, source, premium_tier=settings.premium_privacy_tier)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load retired addresses from {source.name}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error loading retired addresses.",
        ) from e

    logger.info(f"Admin {current_user.username} ran retired address sweep over {report.processed} item(s)")
    return RetiredSweepResponse(
        message="All records processed successfully.",
        processed=report.processed,
        repaired=report.repaired,
        skipped=report.skipped,
        failed=report.failed,
        queued=report.queued,
    )


@vendor_addresses_router.get("/notifications")
async def list_notifications(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    pagination: Annotated[PaginationParams, Depends()],
    _user: Annotated[User, Depends(require_role("admin"))],
    is_email_sent: Annotated[bool | None, Query(description="Filter by delivery flag")] = None,
) -> dict:
    """List queued address change notifications (admin only)."""
    entries, total = await list_queue_entries(
        session,
        is_email_sent=is_email_sent,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return {
        "items": [EmailQueueEntryResponse.model_validate(e) for e in entries],
        "pagination": PaginationMeta.for_page(total, pagination),
    }
