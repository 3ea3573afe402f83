"""Unit tests for the optimistic mutation coordinator."""

from unittest.mock import AsyncMock

import pytest

from ailment_tracker.data_sources.base_client import DataSourceError
from ailment_tracker.models.ailment import Ailment, AilmentDetails, DeleteResponse
from ailment_tracker.models.inputs import CreateAilmentInput, UpdateAilmentInput
from ailment_tracker.sync.coordinator import MutationCoordinator
from ailment_tracker.sync.state import AilmentCollection, PendingChanges
from ailment_tracker.sync.transport import AilmentApi


@pytest.fixture
def api():
    return AsyncMock(spec=AilmentApi)


@pytest.fixture
def notices():
    return []


@pytest.fixture
def coordinator(api, ailments, notices):
    return MutationCoordinator(
        AilmentCollection(ailments),
        api,
        PendingChanges(),
        lambda message, level: notices.append((level, message)),
    )


def _failure() -> DataSourceError:
    return DataSourceError("ailment_api", "HTTP 500: boom", status_code=500)


@pytest.mark.asyncio
class TestCreate:
    async def test_applied_locally_before_write_resolves(self, coordinator, api, notices):
        flu = Ailment(id="3", ailment=AilmentDetails(name="Flu"))

        task = coordinator.save(flu)

        assert coordinator.collection.get("3") == flu
        assert "3" in coordinator.pending
        api.create_ailment.assert_not_called()

        await task

        api.create_ailment.assert_awaited_once()
        sent = api.create_ailment.await_args.args[0]
        assert isinstance(sent, CreateAilmentInput)
        assert sent.id == "3"
        assert sent.ailment["name"] == "Flu"
        assert "3" not in coordinator.pending
        assert notices == [("success", "Ailment created successfully")]

    async def test_failed_create_removes_aggregate(self, coordinator, api, notices):
        api.create_ailment.side_effect = _failure()

        await coordinator.save(Ailment(id="3"))

        assert "3" not in coordinator.collection
        assert len(coordinator.collection) == 2
        assert len(coordinator.pending) == 0
        assert notices[0][0] == "error"
        assert "Error creating ailment" in notices[0][1]


@pytest.mark.asyncio
class TestUpdate:
    async def test_update_sends_whole_aggregate(self, coordinator, api, migraine, notices):
        edited = migraine.model_copy(deep=True)
        edited.treatments[0].efficacy = 10
        api.update_ailment.return_value = edited

        await coordinator.save(edited)

        ailment_id, data = api.update_ailment.await_args.args
        assert ailment_id == "1"
        assert isinstance(data, UpdateAilmentInput)
        assert data.treatments[0]["efficacy"] == 10
        assert len(data.treatments) == 2
        assert data.diagnostics[0]["id"] == "d1"
        assert coordinator.collection.get("1").treatments[0].efficacy == 10
        assert notices == [("success", "Ailment updated successfully")]
        api.list_ailments.assert_not_called()

    async def test_failed_update_refetches(self, coordinator, api, migraine, ailments, notices):
        api.update_ailment.side_effect = _failure()
        api.list_ailments.return_value = ailments
        edited = migraine.model_copy(update={"version": 99})

        task = coordinator.save(edited)
        assert coordinator.collection.get("1").version == 99
        await task

        api.list_ailments.assert_awaited_once()
        assert coordinator.collection.get("1").version == 0
        assert notices[0][0] == "error"
        assert len(coordinator.pending) == 0

    async def test_update_of_remotely_deleted_aggregate_refetches(
        self, coordinator, api, migraine, ailments
    ):
        api.update_ailment.return_value = None
        api.list_ailments.return_value = ailments[1:]

        await coordinator.save(migraine)

        assert "1" not in coordinator.collection

    async def test_second_edit_overwrites_first(self, coordinator, api, migraine):
        first = migraine.model_copy(update={"version": 1})
        second = migraine.model_copy(update={"version": 2})
        api.update_ailment.return_value = second

        coordinator.save(first)
        coordinator.save(second)
        assert coordinator.collection.get("1").version == 2
        assert "1" in coordinator.pending

        await coordinator.drain()

        assert api.update_ailment.await_count == 2
        assert coordinator.collection.get("1").version == 2
        assert len(coordinator.pending) == 0


@pytest.mark.asyncio
class TestDelete:
    async def test_delete_removes_locally_then_confirms(self, coordinator, api, notices):
        api.delete_ailment.return_value = DeleteResponse(id="1", success=True)

        task = coordinator.delete("1")

        assert "1" not in coordinator.collection
        await task
        api.delete_ailment.assert_awaited_once_with("1")
        assert notices == [("success", "Ailment deleted successfully")]

    async def test_failed_delete_reinstates_at_old_position(self, coordinator, api, notices):
        api.delete_ailment.side_effect = _failure()

        await coordinator.delete("1")

        assert [a.id for a in coordinator.collection.ailments] == ["1", "2"]
        assert notices[0][0] == "error"

    async def test_delete_of_unknown_id_is_noop(self, coordinator, api):
        assert coordinator.delete("missing") is None
        api.delete_ailment.assert_not_called()


@pytest.mark.asyncio
class TestRefetch:
    async def test_refetch_replaces_collection(self, coordinator, api, ailments):
        api.list_ailments.return_value = ailments[:1]
        assert await coordinator.refetch() is True
        assert [a.id for a in coordinator.collection.ailments] == ["1"]

    async def test_refetch_failure_keeps_state(self, coordinator, api, notices):
        api.list_ailments.side_effect = _failure()

        assert await coordinator.refetch() is False
        assert len(coordinator.collection) == 2
        assert "Error loading data" in notices[0][1]
