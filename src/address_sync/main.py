"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from address_sync import __version__
from address_sync.core.config import get_settings
from address_sync.core.database import dispose_engine, init_engine
from address_sync.core.logging import setup_logging
from address_sync.lib.vendor_sync import AddressValidationError
from address_sync.schemas.common import ErrorResponse, FieldError


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: init engine on startup, dispose on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)
    logger.info(f"Address sync API started ({settings.environment})")

    yield

    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Address Sync API",
        description="Vendor address reconciliation and retired-address notification queueing",
        version=__version__,
        lifespan=lifespan,
    )

    # Register exception handlers
    @app.exception_handler(AddressValidationError)
    async def address_validation_error_handler(request: Request, exc: AddressValidationError) -> JSONResponse:
        logger.warning(f"Rejected vendor address input on {request.url.path}: {exc}")
        body = ErrorResponse(detail=exc.message, errors=[FieldError(field=exc.field, message=exc.message)])
        return JSONResponse(status_code=422, content=body.model_dump())

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    # Register middleware and routers
    from address_sync.api.router import create_router, setup_middleware

    setup_middleware(app, settings)
    app.include_router(create_router(settings))

    return app
