"""Typer CLI root application with serve command."""

import typer

from address_sync.core.config import get_settings
from address_sync.core.logging import setup_logging

app = typer.Typer(name="address-sync", help="Vendor address sync and retired-address notification CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "address_sync.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from address_sync.cli.db_cmd import db_app
    from address_sync.cli.user_cmd import user_app
    from address_sync.cli.vendor_cmd import vendor_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(user_app, name="user", help="User management commands")
    app.add_typer(vendor_app, name="vendor", help="Vendor address sync and retirement sweep commands")


_register_subcommands()
