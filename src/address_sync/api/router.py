"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from address_sync.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    setup_cors,
)
from address_sync.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from address_sync.api.v1.auth import router as auth_router
    from address_sync.api.v1.vendor_addresses import vendor_addresses_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(auth_router)
    root_router.include_router(vendor_addresses_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
    app.add_middleware(RequestLoggingMiddleware, trusted_proxy_headers=settings.trusted_proxy_header_list)
