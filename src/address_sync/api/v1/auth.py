"""Authentication API endpoints.

GET /health, GET /info, POST /auth/login, POST /auth/refresh, GET /auth/me,
GET /users, POST /users, PUT /users/{username}/vendor-address.

User management carries the vendor address link and privacy tier that decide
who receives address change notifications. An unknown ``vendor_address_id``
raises AddressValidationError, which the app maps to 422.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from address_sync import __version__
from address_sync.core.config import Settings, get_settings
from address_sync.core.dependencies import get_async_session, get_current_user, require_role
from address_sync.models.user import User
from address_sync.schemas.auth import (
    RefreshRequest,
    TokenResponse,
    UserCreateRequest,
    UserResponse,
    UserVendorLinkRequest,
)
from address_sync.schemas.common import ErrorResponse, PaginationMeta, PaginationParams
from address_sync.services import auth_service

router = APIRouter(tags=["auth"])


@router.get("/health", status_code=200)
async def health_check() -> dict:
    """Health check endpoint (no authentication required)."""
    return {"status": "healthy"}


@router.get("/info", status_code=200)
async def info(
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    """Return application version and environment."""
    return {"version": __version__, "environment": settings.environment}


@router.post("/auth/login", response_model=TokenResponse)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Authenticate a user (admin or vendor integration account) and return JWT tokens."""
    user = await auth_service.authenticate_user(session, form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_service.generate_tokens(user, settings)


@router.post("/auth/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    try:
        return await auth_service.refresh_access_token(session, request.refresh_token, settings)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e


@router.get("/auth/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get the currently authenticated user's profile."""
    return current_user


@router.get("/users", response_model=dict)
async def list_users(
    _current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    pagination: Annotated[PaginationParams, Depends()],
    vendor_address_id: Annotated[uuid.UUID | None, Query(description="Only users linked to this address")] = None,
) -> dict:
    """List users with their vendor address link and privacy tier (admin only)."""
    users, total = await auth_service.list_users(
        session, pagination.page, pagination.page_size, vendor_address_id=vendor_address_id
    )
    return {
        "items": [UserResponse.model_validate(u) for u in users],
        "pagination": PaginationMeta.for_page(total, pagination),
    }


@router.post("/users", response_model=UserResponse, status_code=201, responses={422: {"model": ErrorResponse}})
async def create_user(
    request: UserCreateRequest,
    _current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> User:
    """Create a user, optionally linked to a vendor address (admin only)."""
    try:
        return await auth_service.create_user(session, request)
    except auth_service.DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.put(
    "/users/{username}/vendor-address",
    response_model=UserResponse,
    responses={422: {"model": ErrorResponse}},
)
async def link_user_vendor_address(
    username: str,
    request: UserVendorLinkRequest,
    _current_user: Annotated[User, Depends(require_role("admin"))],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> User:
    """Set which vendor address a user lives at and their privacy tier (admin only)."""
    try:
        return await auth_service.link_vendor_address(
            session, username, request.vendor_address_id, request.privacy_tier
        )
    except auth_service.UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
