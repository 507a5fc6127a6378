"""Authentication and user Pydantic v2 schemas.

Defines request/response schemas for login, token refresh, and user management.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from address_sync.models.user import PrivacyTier


class RefreshRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str


class TokenResponse(BaseModel):
    """JWT token pair response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiration in seconds")


class UserCreateRequest(BaseModel):
    """Request to create a new user."""

    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    role: str = Field(pattern="^(admin|vendor|viewer)$")
    privacy_tier: PrivacyTier = PrivacyTier.STANDARD
    vendor_address_id: UUID | None = None


class UserResponse(BaseModel):
    """User information response."""

    id: UUID
    username: str
    email: str
    role: str
    is_active: bool
    privacy_tier: int
    vendor_address_id: UUID | None = None
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserVendorLinkRequest(BaseModel):
    """Link a user to a vendor address (null unlinks) and set their privacy tier."""

    vendor_address_id: UUID | None = None
    privacy_tier: PrivacyTier = PrivacyTier.STANDARD
