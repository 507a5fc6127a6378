"""User accounts for the address sync API.

Two kinds of accounts use this service: operators and vendor integrations
that log in to drive syncs and sweeps, and residents linked to a vendor
address whose privacy tier decides whether they receive change notifications.
"""

import uuid
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from address_sync.core.config import Settings
from address_sync.core.security import (
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from address_sync.lib.vendor_sync import AddressValidationError
from address_sync.models.user import User
from address_sync.models.vendor_address import VendorAddress
from address_sync.schemas.auth import TokenResponse, UserCreateRequest


class DuplicateUserError(ValueError):
    """Raised when a username or email is already taken."""


class UserNotFoundError(LookupError):
    """Raised when no user has the given username."""


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def _require_vendor_address(session: AsyncSession, vendor_address_id: uuid.UUID | None) -> None:
    if vendor_address_id is None:
        return
    if await session.get(VendorAddress, vendor_address_id) is None:
        raise AddressValidationError("vendor_address_id", f"no vendor address with id {vendor_address_id}")


async def authenticate_user(session: AsyncSession, username: str, password: str) -> User | None:
    """Check credentials and stamp the login time.

    Returns:
        The active user on success; None for an unknown user, a wrong
        password, or a deactivated account.
    """
    user = await get_user_by_username(session, username)
    if user is None or not user.is_active or not verify_password(password, user.hashed_password):
        return None
    user.last_login_at = datetime.now(UTC)
    await session.commit()
    return user


async def create_user(session: AsyncSession, request: UserCreateRequest) -> User:
    """Create an account, optionally linked to a vendor address.

    Raises:
        DuplicateUserError: If the username or email is taken.
        AddressValidationError: If ``vendor_address_id`` names no record.
    """
    taken = await session.execute(
        select(User.id).where((User.username == request.username) | (User.email == request.email))
    )
    if taken.scalar_one_or_none() is not None:
        msg = "Username or email already exists"
        raise DuplicateUserError(msg)
    await _require_vendor_address(session, request.vendor_address_id)

    user = User(
        username=request.username,
        email=request.email,
        hashed_password=hash_password(request.password),
        role=request.role,
        privacy_tier=int(request.privacy_tier),
        vendor_address_id=request.vendor_address_id,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(
        f"User {user.username} created (role {user.role}, privacy tier {user.privacy_tier}, "
        f"vendor address {user.vendor_address_id})"
    )
    return user


async def list_users(
    session: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    *,
    vendor_address_id: uuid.UUID | None = None,
) -> tuple[list[User], int]:
    """Page through users, oldest first, optionally only those linked to one vendor address.

    Returns:
        Tuple of (users on the page, total matching users).
    """
    query = select(User)
    count_query = select(func.count(User.id))
    if vendor_address_id is not None:
        query = query.where(User.vendor_address_id == vendor_address_id)
        count_query = count_query.where(User.vendor_address_id == vendor_address_id)

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(query.order_by(User.created_at).offset((page - 1) * page_size).limit(page_size))
    return list(result.scalars().all()), total


def generate_tokens(user: User, settings: Settings) -> TokenResponse:
    """Issue an access/refresh pair for ``user``."""
    return TokenResponse(
        access_token=create_access_token(
            subject=user.username,
            role=user.role,
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.jwt_access_token_expire_minutes,
        ),
        refresh_token=create_refresh_token(
            subject=user.username,
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expires_days=settings.jwt_refresh_token_expire_days,
        ),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


async def refresh_access_token(session: AsyncSession, refresh_token_str: str, settings: Settings) -> TokenResponse:
    """Trade a refresh token for a new pair.

    Raises:
        ValueError: If the token is malformed, expired, not a refresh token,
            or its user is gone or deactivated.
    """
    try:
        payload = decode_token(refresh_token_str, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as e:
        msg = "Invalid refresh token"
        raise ValueError(msg) from e

    if payload.get("type") != TokenType.REFRESH:
        msg = "Token is not a refresh token"
        raise ValueError(msg)
    username = payload.get("sub")
    if username is None:
        msg = "Invalid token payload"
        raise ValueError(msg)

    user = await get_user_by_username(session, username)
    if user is None or not user.is_active:
        msg = "User not found or inactive"
        raise ValueError(msg)
    return generate_tokens(user, settings)


async def link_vendor_address(
    session: AsyncSession,
    username: str,
    vendor_address_id: uuid.UUID | None,
    privacy_tier: int,
) -> User:
    """Point a user at a vendor address (None unlinks) and set their privacy tier.

    Raises:
        UserNotFoundError: If the user does not exist.
        AddressValidationError: If ``vendor_address_id`` names no record.
    """
    user = await get_user_by_username(session, username)
    if user is None:
        msg = f"User '{username}' not found"
        raise UserNotFoundError(msg)
    await _require_vendor_address(session, vendor_address_id)

    user.vendor_address_id = vendor_address_id
    user.privacy_tier = int(privacy_tier)
    await session.commit()
    await session.refresh(user)
    logger.info(f"User {username} linked to vendor address {vendor_address_id} (privacy tier {user.privacy_tier})")
    return user
