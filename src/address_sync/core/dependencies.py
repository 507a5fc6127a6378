"""FastAPI dependency injection for database sessions, settings-derived values, auth, and roles.

Authorization happens here at the API boundary; the sync and sweep
services assume their caller was already authorized.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from address_sync.core.config import Settings, get_settings
from address_sync.core.database import get_session_factory
from address_sync.core.security import TokenType, decode_token
from address_sync.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Decode an access JWT and return the authenticated user.

    Raises:
        HTTPException: 401 if the token is invalid, not an access token,
            or the user is unknown or inactive.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as exc:
        raise credentials_exception from exc
    username: str | None = payload.get("sub")
    if username is None or payload.get("type") != TokenType.ACCESS:
        raise credentials_exception

    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def require_role(*roles: str) -> Callable[..., Any]:
    """Factory that creates a dependency requiring specific user roles.

    Args:
        *roles: Allowed role names (e.g., "admin", "vendor", "viewer").

    Returns:
        A FastAPI dependency function that validates the user's role.
    """

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_user.role}' does not have access to this resource",
            )
        return current_user

    return role_checker


def get_premium_tier(settings: Annotated[Settings, Depends(get_settings)]) -> int:
    """Privacy tier eligible for address change notifications."""
    return settings.premium_privacy_tier
