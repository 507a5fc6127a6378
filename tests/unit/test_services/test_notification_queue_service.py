"""Unit tests for the notification queue (dedup) service."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from address_sync.lib.vendor_sync import ChangeDescriptor
from address_sync.lib.vendor_sync.types import STATUS_RETIRED
from address_sync.models.user import PrivacyTier
from address_sync.services.notification_queue_service import (
    build_intents,
    enqueue_notifications,
    list_queue_entries,
)

_MODULE = "address_sync.services.notification_queue_service"


def _mock_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


def _descriptor(**overrides: object) -> ChangeDescriptor:
    data = {"id": uuid.uuid4(), "old_address": "  Old St ", "new_address": "New Ave", "status": STATUS_RETIRED}
    data.update(overrides)
    return ChangeDescriptor(**data)


class TestBuildIntents:
    def test_one_intent_per_distinct_user(self) -> None:
        first, second = uuid.uuid4(), uuid.uuid4()
        intents = build_intents(_descriptor(), [first, second, first])
        assert [i.user_id for i in intents] == [first, second]

    def test_intent_copies_descriptor(self) -> None:
        descriptor = _descriptor()
        user_id = uuid.uuid4()
        (intent,) = build_intents(descriptor, [user_id])
        assert intent.vendor_address_id == descriptor.id
        assert intent.old_address == "  Old St "
        assert intent.new_address == "New Ave"
        assert intent.status == STATUS_RETIRED


class TestEnqueueNotifications:
    """Tests for enqueue_notifications."""

    @pytest.mark.asyncio
    async def test_no_users_returns_empty_result(self) -> None:
        session = _mock_session()
        descriptor = _descriptor()
        with patch(f"{_MODULE}.find_eligible_user_ids", new_callable=AsyncMock, return_value=[]):
            result = await enqueue_notifications(session, descriptor)

        assert result.vendor_address_id == descriptor.id
        assert (result.eligible_users, result.queued, result.duplicates, result.failed) == (0, 0, 0, 0)
        session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_passes_premium_tier_to_lookup(self) -> None:
        session = _mock_session()
        descriptor = _descriptor()
        with patch(f"{_MODULE}.find_eligible_user_ids", new_callable=AsyncMock, return_value=[]) as mock_find:
            await enqueue_notifications(session, descriptor, premium_tier=PrivacyTier.PREMIUM)
        mock_find.assert_awaited_once_with(session, descriptor.id, PrivacyTier.PREMIUM)

    @pytest.mark.asyncio
    async def test_queues_row_with_normalized_keys(self) -> None:
        session = _mock_session()
        user_id = uuid.uuid4()
        descriptor = _descriptor()
        with (
            patch(f"{_MODULE}.find_eligible_user_ids", new_callable=AsyncMock, return_value=[user_id]),
            patch(f"{_MODULE}.is_already_queued", new_callable=AsyncMock, return_value=False) as mock_check,
        ):
            result = await enqueue_notifications(session, descriptor)

        assert result.queued == 1
        mock_check.assert_awaited_once_with(session, (user_id, descriptor.id, "old st", "new ave"))
        row = session.add.call_args[0][0]
        assert row.user_id == user_id
        assert row.vendor_address_id == descriptor.id
        assert row.old_vendor_address == "  Old St "
        assert row.new_vendor_address == "New Ave"
        assert (row.old_address_key, row.new_address_key) == ("old st", "new ave")
        assert row.vendor_address_status == STATUS_RETIRED
        assert row.is_email_sent is False
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_entry_counts_as_duplicate(self) -> None:
        session = _mock_session()
        with (
            patch(f"{_MODULE}.find_eligible_user_ids", new_callable=AsyncMock, return_value=[uuid.uuid4()]),
            patch(f"{_MODULE}.is_already_queued", new_callable=AsyncMock, return_value=True),
        ):
            result = await enqueue_notifications(session, _descriptor())

        assert (result.queued, result.duplicates) == (0, 1)
        session.add.assert_not_called()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unique_violation_counts_as_duplicate(self) -> None:
        session = _mock_session()
        session.commit.side_effect = IntegrityError("INSERT", {}, Exception("uq_address_change_email_queue_dedup"))
        with (
            patch(f"{_MODULE}.find_eligible_user_ids", new_callable=AsyncMock, return_value=[uuid.uuid4()]),
            patch(f"{_MODULE}.is_already_queued", new_callable=AsyncMock, return_value=False),
        ):
            result = await enqueue_notifications(session, _descriptor())

        assert (result.queued, result.duplicates, result.failed) == (0, 1, 0)
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_storage_error_continues_with_remaining_users(self) -> None:
        session = _mock_session()
        session.commit.side_effect = [OperationalError("INSERT", {}, Exception("timeout")), None]
        with (
            patch(
                f"{_MODULE}.find_eligible_user_ids",
                new_callable=AsyncMock,
                return_value=[uuid.uuid4(), uuid.uuid4()],
            ),
            patch(f"{_MODULE}.is_already_queued", new_callable=AsyncMock, return_value=False),
        ):
            result = await enqueue_notifications(session, _descriptor())

        assert (result.eligible_users, result.queued, result.failed) == (2, 1, 1)
        session.rollback.assert_awaited_once()


class TestListQueueEntries:
    @pytest.mark.asyncio
    async def test_returns_entries_and_count(self) -> None:
        session = AsyncMock()
        entries = [MagicMock(), MagicMock()]
        count_result = MagicMock()
        count_result.scalar_one.return_value = 2
        select_result = MagicMock()
        select_result.scalars.return_value.all.return_value = entries
        session.execute.side_effect = [count_result, select_result]

        result, total = await list_queue_entries(session, is_email_sent=False, page=1, page_size=20)

        assert total == 2
        assert result == entries
        assert session.execute.await_count == 2
