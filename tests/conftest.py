"""Shared test fixtures for async database, sessions, seeded rows, and auth tokens."""

import uuid
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from address_sync.core.config import Settings
from address_sync.core.security import create_access_token, hash_password
from address_sync.models.base import Base
from address_sync.models.user import PrivacyTier, User
from address_sync.models.vendor_address import VendorAddress


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        jwt_refresh_token_expire_days=7,
    )


@pytest.fixture
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def sample_user(async_session: AsyncSession) -> User:
    """Create a sample admin user in the test database."""
    user = User(
        id=uuid.uuid4(),
        username="testadmin",
        email="admin@test.com",
        hashed_password=hash_password("testpassword123"),
        role="admin",
    )
    async_session.add(user)
    await async_session.commit()
    await async_session.refresh(user)
    return user


@pytest.fixture
async def make_address(async_session: AsyncSession):
    """Factory inserting a vendor address row."""

    async def _make(
        address: str,
        *,
        vendor_token: str | None = "tok-1",
        region: str = "GA",
        status: int = 1,
        is_default: int = 0,
        vendor_id: str | None = None,
    ) -> VendorAddress:
        record = VendorAddress(
            vendor_token=vendor_token,
            vendor_id=vendor_id,
            region=region,
            address=address,
            status=status,
            is_default=is_default,
        )
        async_session.add(record)
        await async_session.commit()
        await async_session.refresh(record)
        return record

    return _make


@pytest.fixture
async def make_user(async_session: AsyncSession):
    """Factory inserting a user linked to a vendor address."""

    async def _make(
        username: str,
        vendor_address_id: uuid.UUID | None,
        *,
        privacy_tier: PrivacyTier = PrivacyTier.PREMIUM,
        role: str = "viewer",
    ) -> User:
        user = User(
            username=username,
            email=f"{username}@test.com",
            hashed_password="not-a-real-hash",
            role=role,
            privacy_tier=privacy_tier,
            vendor_address_id=vendor_address_id,
        )
        async_session.add(user)
        await async_session.commit()
        await async_session.refresh(user)
        return user

    return _make


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """Generate a JWT access token for an admin user."""
    return create_access_token(
        subject="testadmin",
        role="admin",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def vendor_token(settings: Settings) -> str:
    """Generate a JWT access token for a vendor integration user."""
    return create_access_token(
        subject="testvendor",
        role="vendor",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def viewer_token(settings: Settings) -> str:
    """Generate a JWT access token for a viewer user."""
    return create_access_token(
        subject="testviewer",
        role="viewer",
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
