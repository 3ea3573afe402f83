"""Unit tests for merging push events into local state."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from ailment_tracker.models.ailment import Ailment, AilmentDetails
from ailment_tracker.models.events import AilmentChangeEvent, ChangeType
from ailment_tracker.sync.coordinator import MutationCoordinator
from ailment_tracker.sync.reconciler import RemoteChangeReconciler
from ailment_tracker.sync.state import AilmentCollection
from ailment_tracker.sync.transport import AilmentApi


@pytest.fixture
def notices():
    return []


@pytest.fixture
def collection(ailments):
    return AilmentCollection(ailments)


@pytest.fixture
def reconciler(collection, notices):
    return RemoteChangeReconciler(
        collection, notify=lambda message, level: notices.append((level, message))
    )


def _event(change: ChangeType, ailment: Ailment) -> AilmentChangeEvent:
    return AilmentChangeEvent(type=change, ailment_id=ailment.id, ailment=ailment)


def _delete(ailment_id: str, success: bool = True) -> AilmentChangeEvent:
    return AilmentChangeEvent(
        type=ChangeType.DELETE, ailment_id=ailment_id, success=success
    )


# --- CREATE ---


def test_create_appends_unknown_aggregate(reconciler, collection, notices):
    flu = Ailment(id="3", ailment=AilmentDetails(name="Flu"))

    assert reconciler.apply(_event(ChangeType.CREATE, flu)) is True

    assert [a.id for a in collection.ailments] == ["1", "2", "3"]
    assert notices == [("info", "New ailment added: Flu")]


def test_create_is_idempotent(reconciler, collection):
    flu = Ailment(id="3")
    reconciler.apply(_event(ChangeType.CREATE, flu))
    assert reconciler.apply(_event(ChangeType.CREATE, flu)) is False
    assert len(collection) == 3


async def test_self_echo_suppression(collection, reconciler):
    api = AsyncMock(spec=AilmentApi)
    coordinator = MutationCoordinator(collection, api, notify=lambda *_: None)
    flu = Ailment(id="3", ailment=AilmentDetails(name="Flu"))

    await coordinator.save(flu)
    reconciler.apply(_event(ChangeType.CREATE, flu.model_copy(update={"version": 1})))

    assert [a.id for a in collection.ailments].count("3") == 1


# --- UPDATE ---


def test_update_replaces_held_aggregate(reconciler, collection, migraine):
    pushed = migraine.model_copy(deep=True, update={"version": 1})
    pushed.ailment.intensity = 10

    assert reconciler.apply(_event(ChangeType.UPDATE, pushed)) is True
    assert collection.get("1").ailment.intensity == 10
    assert collection.index("1") == 0


def test_update_for_unknown_id_is_ignored(reconciler, collection):
    assert reconciler.apply(_event(ChangeType.UPDATE, Ailment(id="9"))) is False
    assert "9" not in collection


def test_update_with_older_version_is_ignored(reconciler, collection, migraine):
    collection.upsert(migraine.model_copy(update={"version": 5}))
    stale = migraine.model_copy(update={"version": 4})

    assert reconciler.apply(_event(ChangeType.UPDATE, stale)) is False
    assert collection.get("1").version == 5


def test_update_with_equal_version_is_applied(reconciler, collection, migraine):
    collection.upsert(migraine.model_copy(update={"version": 5}))
    same = migraine.model_copy(deep=True, update={"version": 5})
    same.ailment.name = "Renamed"

    assert reconciler.apply(_event(ChangeType.UPDATE, same)) is True
    assert collection.get("1").name == "Renamed"


def test_update_without_version_check_always_wins(collection, migraine):
    reconciler = RemoteChangeReconciler(collection, version_check=False)
    collection.upsert(migraine.model_copy(update={"version": 5}))

    reconciler.apply(_event(ChangeType.UPDATE, migraine.model_copy(update={"version": 1})))

    assert collection.get("1").version == 1


# --- DELETE ---


def test_delete_removes_aggregate(reconciler, collection, notices):
    assert reconciler.apply(_delete("1")) is True
    assert "1" not in collection
    assert notices == [("info", "Ailment deleted by another user")]


def test_delete_of_absent_id_is_not_an_error(reconciler, collection):
    reconciler.apply(_delete("1"))
    assert reconciler.apply(_delete("1")) is False
    assert len(collection) == 1


def test_unsuccessful_delete_is_ignored(reconciler, collection):
    assert reconciler.apply(_delete("1", success=False)) is False
    assert "1" in collection


# --- raw messages ---


def test_handle_parses_channel_payloads(reconciler, collection):
    assert reconciler.handle("ailmentCreated", Ailment(id="3").to_document()) is True
    assert reconciler.handle("ailmentDeleted", {"id": "3", "success": True}) is True
    assert "3" not in collection


def test_handle_drops_malformed_messages(reconciler, collection):
    assert reconciler.handle("ailmentUpdated", {"id": "1", "treatments": "x"}) is False
    assert reconciler.handle("ailmentDeleted", {"success": True}) is False
    assert reconciler.handle("ailmentRenamed", {"id": "1"}) is False
    assert len(collection) == 2


def test_callback_is_bound_to_channel(reconciler, collection):
    reconciler.callback("ailmentDeleted")({"id": "2", "success": True})
    assert "2" not in collection


# --- last write wins ---


async def test_push_update_during_pending_local_write_wins(collection, reconciler):
    """Resolution order, with stored version 1 and intensity 75 at t=0:

    t=0ms   local edit: intensity 75 -> 80, PUT issued, local state shows 80
    t=10ms  push UPDATE from another user: version 2, intensity 50
            local state shows 50 (the local write is still pending)
    t=20ms  local PUT resolves OK, stored as version 3, intensity 80
            nothing changes locally: the view still shows 50
    t=30ms  push UPDATE echo of the local write: version 3, intensity 80
            local state shows 80, matching the store
    """
    stored = collection.get("1").model_copy(update={"version": 1})
    collection.upsert(stored)

    release = asyncio.Event()
    local = stored.model_copy(deep=True)
    local.ailment.intensity = 80
    ours = local.model_copy(update={"version": 3})

    async def slow_update(ailment_id, data):
        await release.wait()
        return ours

    api = AsyncMock(spec=AilmentApi)
    api.update_ailment.side_effect = slow_update
    coordinator = MutationCoordinator(collection, api, notify=lambda *_: None)

    # t=0ms
    task = coordinator.save(local)
    assert collection.get("1").ailment.intensity == 80

    # t=10ms
    theirs = stored.model_copy(deep=True, update={"version": 2})
    theirs.ailment.intensity = 50
    reconciler.handle("ailmentUpdated", theirs.to_document())
    assert collection.get("1").ailment.intensity == 50

    # t=20ms
    release.set()
    await task
    assert collection.get("1").ailment.intensity == 50
    assert collection.get("1").version == 2
    api.list_ailments.assert_not_called()

    # t=30ms
    reconciler.handle("ailmentUpdated", ours.to_document())
    assert collection.get("1").ailment.intensity == 80
    assert collection.get("1").version == 3
