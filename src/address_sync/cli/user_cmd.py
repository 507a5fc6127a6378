"""User management CLI commands."""

import asyncio
import uuid

import typer

from address_sync.models.user import PrivacyTier

user_app = typer.Typer()


@user_app.command("create")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Username"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    role: str = typer.Option("viewer", prompt=True, help="User role (admin/vendor/viewer)"),
    privacy_tier: int = typer.Option(int(PrivacyTier.STANDARD), help="Privacy tier (1=standard, 2=premium)"),
    vendor_address_id: str | None = typer.Option(None, help="Vendor address id to link the user to"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if user already exists (idempotent mode)",
    ),
) -> None:
    """Create a new user interactively."""
    address_id = _parse_uuid(vendor_address_id)
    asyncio.run(
        _create_user(
            username,
            email,
            password,
            role,
            privacy_tier=privacy_tier,
            vendor_address_id=address_id,
            if_not_exists=if_not_exists,
        )
    )


async def _create_user(
    username: str,
    email: str,
    password: str,
    role: str,
    *,
    privacy_tier: int,
    vendor_address_id: uuid.UUID | None,
    if_not_exists: bool = False,
) -> None:
    """Async implementation of user creation."""
    from address_sync.core.config import get_settings
    from address_sync.core.database import session_scope
    from address_sync.schemas.auth import UserCreateRequest
    from address_sync.services.auth_service import DuplicateUserError, create_user

    settings = get_settings()
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        try:
            request = UserCreateRequest(
                username=username,
                email=email,
                password=password,
                role=role,
                privacy_tier=privacy_tier,
                vendor_address_id=vendor_address_id,
            )
            user = await create_user(session, request)
        except DuplicateUserError as e:
            if if_not_exists:
                typer.echo(f"User '{username}' already exists, skipping (--if-not-exists)")
                return
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e
        typer.echo(f"User '{user.username}' created with role '{user.role}'")


@user_app.command("link")
def link_user(
    username: str = typer.Argument(..., help="Username"),
    vendor_address_id: str | None = typer.Option(None, help="Vendor address id (omit to unlink)"),
    privacy_tier: int = typer.Option(int(PrivacyTier.STANDARD), help="Privacy tier (1=standard, 2=premium)"),
) -> None:
    """Link a user to a vendor address and set their privacy tier."""
    asyncio.run(_link_user(username, _parse_uuid(vendor_address_id), privacy_tier))


async def _link_user(username: str, vendor_address_id: uuid.UUID | None, privacy_tier: int) -> None:
    from address_sync.core.config import get_settings
    from address_sync.core.database import session_scope
    from address_sync.services.auth_service import link_vendor_address

    settings = get_settings()
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        try:
            user = await link_vendor_address(session, username, vendor_address_id, privacy_tier)
        except (LookupError, ValueError) as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e
        typer.echo(f"User '{user.username}' linked to {user.vendor_address_id} (privacy tier {user.privacy_tier})")


@user_app.command("list")
def list_users() -> None:
    """List all users."""
    asyncio.run(_list_users())


async def _list_users() -> None:
    """Async implementation of user listing."""
    from address_sync.core.config import get_settings
    from address_sync.core.database import session_scope
    from address_sync.services.auth_service import list_users

    settings = get_settings()
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        users, total = await list_users(session)
        typer.echo(f"{'Username':<20} {'Email':<30} {'Role':<8} {'Tier':<5} {'Vendor address':<36}")
        typer.echo("-" * 102)
        for user in users:
            typer.echo(
                f"{user.username:<20} {user.email:<30} {user.role:<8} {user.privacy_tier:<5} "
                f"{user.vendor_address_id or '-'!s:<36}"
            )
        typer.echo(f"\nTotal: {total}")


def _parse_uuid(value: str | None) -> uuid.UUID | None:
    if value is None:
        return None
    try:
        return uuid.UUID(value)
    except ValueError as e:
        typer.echo(f"Error: invalid vendor address id {value!r}", err=True)
        raise typer.Exit(code=1) from e
