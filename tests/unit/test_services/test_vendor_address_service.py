"""Unit tests for the vendor address reconcile service."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from address_sync.lib.vendor_sync import (
    AddressPersistenceError,
    AddressValidationError,
    ChangeDescriptor,
    NotificationResult,
)
from address_sync.lib.vendor_sync.types import STATUS_CHANGED
from address_sync.schemas.vendor_address import SyncAddressRequest
from address_sync.services.vendor_address_service import _sync_updates, reconcile

_MODULE = "address_sync.services.vendor_address_service"


def _mock_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


def _mock_record(region: str, address: str = "1 Old St") -> MagicMock:
    record = MagicMock()
    record.id = uuid.uuid4()
    record.region = region
    record.address = address
    record.status = 1
    record.is_default = 0
    return record


def _request(**overrides: object) -> SyncAddressRequest:
    data = {"vtoken": "tok-1", "state": "GA", "address": "2 New St", "status": 0, "is_default": 1}
    data.update(overrides)
    return SyncAddressRequest(**data)


def _notification(_session: object, descriptor: ChangeDescriptor, **_: object) -> NotificationResult:
    return NotificationResult(vendor_address_id=descriptor.id)


class TestSyncUpdates:
    def test_region_is_never_written(self) -> None:
        updates = _sync_updates(_request(state="FL"))
        assert updates == {"address": "2 New St", "status": 0, "is_default": 1}


class TestReconcileCreate:
    """Tests for the create path (token not seen before)."""

    @pytest.mark.asyncio
    async def test_creates_record_with_region(self) -> None:
        session = _mock_session()
        with (
            patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, return_value=[]),
            patch(f"{_MODULE}.enqueue_notifications", new_callable=AsyncMock) as mock_enqueue,
        ):
            result = await reconcile(session, _request())

        created = session.add.call_args[0][0]
        assert result.created is created
        assert result.updated == []
        assert created.vendor_token == "tok-1"
        assert created.region == "GA"
        assert created.address == "2 New St"
        assert (created.status, created.is_default) == (0, 1)
        session.commit.assert_awaited_once()
        mock_enqueue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_state_raises_and_writes_nothing(self) -> None:
        session = _mock_session()
        with patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, return_value=[]):
            with pytest.raises(AddressValidationError) as exc_info:
                await reconcile(session, _request(state=None))

        assert exc_info.value.field == "state"
        session.add.assert_not_called()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_commit_failure_raises_persistence_error(self) -> None:
        session = _mock_session()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
        with patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, return_value=[]):
            with pytest.raises(AddressPersistenceError):
                await reconcile(session, _request())
        session.rollback.assert_awaited_once()


class TestReconcileUpdate:
    """Tests for the update path (token already stored)."""

    @pytest.mark.asyncio
    async def test_updates_every_record_and_keeps_regions(self) -> None:
        records = [_mock_record("GA"), _mock_record("FL")]
        session = _mock_session()
        with (
            patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, return_value=records),
            patch(f"{_MODULE}.enqueue_notifications", new_callable=AsyncMock, side_effect=_notification),
        ):
            result = await reconcile(session, _request(state="TX"))

        assert result.created is None
        assert result.updated == records
        assert [r.region for r in records] == ["GA", "FL"]
        for record in records:
            assert record.address == "2 New St"
            assert record.status == 0
            assert record.is_default == 1
        assert session.commit.await_count == 2

    @pytest.mark.asyncio
    async def test_one_descriptor_per_record_with_old_text(self) -> None:
        records = [_mock_record("GA", "1 Old St"), _mock_record("FL", "1 OLD ST ")]
        session = _mock_session()
        with (
            patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, return_value=records),
            patch(
                f"{_MODULE}.enqueue_notifications", new_callable=AsyncMock, side_effect=_notification
            ) as mock_enqueue,
        ):
            result = await reconcile(session, _request(), premium_tier=3)

        descriptors = [c.args[1] for c in mock_enqueue.await_args_list]
        assert descriptors == [
            ChangeDescriptor(
                id=records[0].id, region="GA", old_address="1 Old St", new_address="2 New St", status=STATUS_CHANGED
            ),
            ChangeDescriptor(
                id=records[1].id, region="FL", old_address="1 OLD ST ", new_address="2 New St", status=STATUS_CHANGED
            ),
        ]
        assert all(c.kwargs["premium_tier"] == 3 for c in mock_enqueue.await_args_list)
        assert [n.vendor_address_id for n in result.notifications] == [records[0].id, records[1].id]

    @pytest.mark.asyncio
    async def test_commit_failure_keeps_earlier_updates(self) -> None:
        records = [_mock_record("GA"), _mock_record("FL")]
        session = _mock_session()
        session.commit.side_effect = [None, OperationalError("UPDATE", {}, Exception("lock timeout"))]
        with (
            patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, return_value=records),
            patch(f"{_MODULE}.enqueue_notifications", new_callable=AsyncMock) as mock_enqueue,
        ):
            with pytest.raises(AddressPersistenceError, match=str(records[1].id)):
                await reconcile(session, _request())

        session.rollback.assert_awaited_once()
        assert records[0].address == "2 New St"
        mock_enqueue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_failure_raises_persistence_error(self) -> None:
        session = _mock_session()
        with patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, side_effect=SQLAlchemyError("down")):
            with pytest.raises(AddressPersistenceError, match="tok-1"):
                await reconcile(session, _request())

    @pytest.mark.asyncio
    async def test_enqueue_failure_raises_persistence_error(self) -> None:
        records = [_mock_record("GA")]
        session = _mock_session()
        with (
            patch(f"{_MODULE}.find_by_token", new_callable=AsyncMock, return_value=records),
            patch(f"{_MODULE}.enqueue_notifications", new_callable=AsyncMock, side_effect=SQLAlchemyError("down")),
        ):
            with pytest.raises(AddressPersistenceError, match="notifications"):
                await reconcile(session, _request())

        session.rollback.assert_awaited_once()
        assert records[0].address == "2 New St"
