"""Tests for the database engine and session management module."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text

import address_sync.core.database as db_module
from address_sync.core.database import (
    dispose_engine,
    get_engine,
    get_session_factory,
    init_engine,
    session_scope,
)


class TestGetEngine:
    """Tests for get_engine."""

    def test_raises_when_not_initialized(self) -> None:
        original_engine = db_module._engine
        db_module._engine = None
        try:
            with pytest.raises(RuntimeError, match="Database engine not initialized"):
                get_engine()
        finally:
            db_module._engine = original_engine

    @pytest.mark.asyncio
    async def test_returns_engine_when_initialized(self) -> None:
        engine = init_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert get_engine() is engine
        finally:
            await dispose_engine()


class TestGetSessionFactory:
    """Tests for get_session_factory."""

    def test_raises_when_not_initialized(self) -> None:
        original_factory = db_module._session_factory
        db_module._session_factory = None
        try:
            with pytest.raises(RuntimeError, match="Session factory not initialized"):
                get_session_factory()
        finally:
            db_module._session_factory = original_factory

    @pytest.mark.asyncio
    async def test_sessions_keep_objects_after_commit(self) -> None:
        init_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert get_session_factory().kw["expire_on_commit"] is False
        finally:
            await dispose_engine()


class TestInitEngine:
    """Tests for init_engine."""

    def test_postgres_engine_gets_pool_sizing(self) -> None:
        with patch("address_sync.core.database.create_async_engine", return_value=MagicMock()) as mock_create:
            init_engine("postgresql+asyncpg://localhost/db", echo=False)
            mock_create.assert_called_once_with(
                "postgresql+asyncpg://localhost/db",
                echo=False,
                pool_size=10,
                max_overflow=5,
            )

    def test_sqlite_engine_skips_pool_sizing(self) -> None:
        with patch("address_sync.core.database.create_async_engine", return_value=MagicMock()) as mock_create:
            init_engine("sqlite+aiosqlite:///:memory:")
            mock_create.assert_called_once_with("sqlite+aiosqlite:///:memory:")

    def test_init_engine_with_schema(self) -> None:
        """init_engine with schema injects connect_args with search_path."""
        with patch("address_sync.core.database.create_async_engine", return_value=MagicMock()) as mock_create:
            init_engine("postgresql+asyncpg://localhost/db", schema="pr_42", echo=False)
            mock_create.assert_called_once_with(
                "postgresql+asyncpg://localhost/db",
                echo=False,
                connect_args={"options": "-c search_path=pr_42,public"},
                pool_size=10,
                max_overflow=5,
            )

    def test_rejects_non_dict_connect_args(self) -> None:
        with pytest.raises(TypeError, match="connect_args must be a dict"):
            init_engine("postgresql+asyncpg://localhost/db", schema="pr_42", connect_args=["bad"])


class TestDisposeEngine:
    """Tests for dispose_engine."""

    @pytest.mark.asyncio
    async def test_disposes_engine(self) -> None:
        init_engine("sqlite+aiosqlite:///:memory:")
        await dispose_engine()
        assert db_module._engine is None
        assert db_module._session_factory is None

    @pytest.mark.asyncio
    async def test_dispose_when_no_engine(self) -> None:
        original = db_module._engine
        db_module._engine = None
        try:
            await dispose_engine()
        finally:
            db_module._engine = original


class TestSessionScope:
    """Tests for the CLI session_scope helper."""

    @pytest.mark.asyncio
    async def test_yields_working_session_and_disposes(self) -> None:
        async with session_scope("sqlite+aiosqlite:///:memory:") as session:
            result = await session.execute(text("SELECT 1"))
            assert result.scalar_one() == 1
        assert db_module._engine is None

    @pytest.mark.asyncio
    async def test_disposes_engine_on_error(self) -> None:
        with pytest.raises(RuntimeError, match="boom"):
            async with session_scope("sqlite+aiosqlite:///:memory:"):
                raise RuntimeError("boom")
        assert db_module._engine is None
