"""CORS, security headers, rate limiting, and request logging middleware."""

import time
from collections import defaultdict
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from address_sync.core.config import Settings

_DEFAULT_TRUSTED_HEADERS = ["CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP"]
_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


def get_client_ip(request: Request, trusted_headers: list[str] | None = None) -> str:
    """Extract the real client IP from proxy headers or the direct connection.

    For X-Forwarded-For the leftmost (client) address is used.

    Args:
        request: The incoming Starlette request.
        trusted_headers: Ordered header names to check; defaults to
            CF-Connecting-IP, X-Forwarded-For, X-Real-IP.

    Returns:
        The client IP address string, or "unknown" if not determinable.
    """
    headers = trusted_headers if trusted_headers is not None else _DEFAULT_TRUSTED_HEADERS

    for header in headers:
        value = request.headers.get(header, "").strip()
        if not value:
            continue
        if header.lower() == "x-forwarded-for":
            return value.split(",")[0].strip()
        return value

    return request.client.host if request.client else "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware from the configured origins and origin regex."""
    kwargs: dict[str, Any] = {
        "allow_credentials": True,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }
    if settings.cors_origin_list:
        kwargs["allow_origins"] = settings.cors_origin_list
    if settings.cors_origin_regex.strip():
        kwargs["allow_origin_regex"] = settings.cors_origin_regex.strip()
    app.add_middleware(CORSMiddleware, **kwargs)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.update(_SECURITY_HEADERS)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory per-IP rate limiting over a sliding 60 second window.

    Vendor sync traffic arrives in bursts from a small set of addresses, so
    clients are identified through the trusted proxy headers.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 60,
        trusted_proxy_headers: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.trusted_proxy_headers = trusted_proxy_headers
        self._request_times: dict[str, list[float]] = defaultdict(list)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client_ip = get_client_ip(request, self.trusted_proxy_headers)
        now = time.time()
        window_start = now - 60.0

        recent = [t for t in self._request_times[client_ip] if t > window_start]
        if len(recent) >= self.requests_per_minute:
            self._request_times[client_ip] = recent
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            return Response(
                content='{"detail":"Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
            )

        recent.append(now)
        self._request_times[client_ip] = recent
        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured (JSON sink) log record per request."""

    def __init__(self, app: ASGIApp, trusted_proxy_headers: list[str] | None = None) -> None:
        super().__init__(app)
        self.trusted_proxy_headers = trusted_proxy_headers

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        logger.bind(
            json_output=True,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            client_ip=get_client_ip(request, self.trusted_proxy_headers),
        ).info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response
