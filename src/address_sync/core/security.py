"""JWT token creation/validation and password hashing.

Uses PyJWT for JWT operations and passlib with bcrypt for password hashing.
"""

from datetime import UTC, datetime, timedelta
from enum import StrEnum

import jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenType(StrEnum):
    """Value of the ``type`` claim distinguishing access from refresh tokens."""

    ACCESS = "access"
    REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def _encode(claims: dict, lifetime: timedelta, secret_key: str, algorithm: str) -> str:
    payload = {**claims, "exp": datetime.now(UTC) + lifetime}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def create_access_token(
    subject: str,
    role: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 30,
) -> str:
    """Create a JWT access token carrying the user's role.

    Args:
        subject: The token subject (username).
        role: The user's role.
        secret_key: Secret key for signing.
        algorithm: JWT signing algorithm.
        expires_minutes: Token expiration in minutes.

    Returns:
        The encoded JWT string.
    """
    claims = {"sub": subject, "role": role, "type": TokenType.ACCESS.value}
    return _encode(claims, timedelta(minutes=expires_minutes), secret_key, algorithm)


def create_refresh_token(
    subject: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_days: int = 7,
) -> str:
    """Create a JWT refresh token."""
    claims = {"sub": subject, "type": TokenType.REFRESH.value}
    return _encode(claims, timedelta(days=expires_days), secret_key, algorithm)


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> dict:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is invalid.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])
