"""Vendor address CLI commands: manual sync and the retired address sweep.

The sweep is meant to be triggered by cron or an operator; it is never
self-scheduled.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError

from address_sync.lib.vendor_sync import SweepReport

if TYPE_CHECKING:
    from address_sync.schemas.vendor_address import SyncAddressRequest

vendor_app = typer.Typer()


@vendor_app.command("sync")
def sync(
    vtoken: str = typer.Option(..., "--vtoken", help="Vendor token"),
    address: str = typer.Option(..., "--address", help="Address line"),
    status: int = typer.Option(..., "--status", help="1 = active, 0 = inactive"),
    is_default: int = typer.Option(..., "--is-default", help="1 if default address"),
    state: str | None = typer.Option(None, "--state", help="Region code (required for a new token)"),
) -> None:
    """Apply one vendor address payload, as the vendor's sync call would."""
    from address_sync.schemas.vendor_address import SyncAddressRequest

    try:
        request = SyncAddressRequest(
            vtoken=vtoken,
            state=state,
            address=address,
            status=status,
            is_default=is_default,
        )
    except ValidationError as e:
        typer.echo(f"Validation error: {e}", err=True)
        raise typer.Exit(code=2) from e

    asyncio.run(_sync(request))


async def _sync(request: SyncAddressRequest) -> None:
    from address_sync.core.config import get_settings
    from address_sync.core.database import session_scope
    from address_sync.lib.vendor_sync import AddressSyncError
    from address_sync.services.vendor_address_service import reconcile

    settings = get_settings()
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        try:
            result = await reconcile(session, request, premium_tier=settings.premium_privacy_tier)
        except AddressSyncError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

        if result.created is not None:
            typer.echo(f"Created vendor address {result.created.id} ({result.created.region})")
            return
        for record in result.updated:
            typer.echo(f"Updated vendor address {record.id} ({record.region})")
        queued = sum(n.queued for n in result.notifications)
        typer.echo(f"Queued {queued} notification(s)")


@vendor_app.command("sweep-retired")
def sweep_retired(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="JSON array of retirements"),
) -> None:
    """Repair retired vendor addresses listed in FILE and queue user notifications.

    Item failures do not change the exit code; they are listed in the output.
    """
    report = asyncio.run(_sweep(file))
    _print_report(report)


async def _sweep(file: Path) -> SweepReport:
    from address_sync.core.config import get_settings
    from address_sync.core.database import session_scope
    from address_sync.lib.vendor_sync import JsonFileRetirementSource
    from address_sync.services.retirement_service import run_retirement_sweep

    settings = get_settings()
    source = JsonFileRetirementSource(file)
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        try:
            return await run_retirement_sweep(session, source, premium_tier=settings.premium_privacy_tier)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e


def _print_report(report: SweepReport) -> None:
    typer.echo(f"{'Vendor address':<38} {'Repair':<15} {'Queued':>6} {'Dupes':>6}  Error")
    typer.echo("-" * 80)
    for item in report.items:
        queued = item.notification.queued if item.notification else 0
        duplicates = item.notification.duplicates if item.notification else 0
        error = item.repair.error or item.notification_error or ""
        typer.echo(f"{item.descriptor.id!s:<38} {item.repair.status.value:<15} {queued:>6} {duplicates:>6}  {error}")
    typer.echo(
        f"\nProcessed: {report.processed}  Repaired: {report.repaired}  "
        f"Skipped: {report.skipped}  Failed: {report.failed}  Queued: {report.queued}"
    )
