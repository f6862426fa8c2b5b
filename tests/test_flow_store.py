"""Tests for database/flow_store.py and database/json_file_storage.py"""

import json
from datetime import datetime

import pytest

from database.flow_store import FlowStore
from database.json_file_storage import JsonFileStorage
from exceptions.flow_exception import FlowStoreException
from models.flow_record import FlowStage, EntryType


@pytest.mark.asyncio
async def test_missing_snapshot_starts_empty(flow_store, store_path):
    loaded = await flow_store.load()

    assert loaded == 0
    assert flow_store.all() == []
    assert not store_path.exists()


@pytest.mark.asyncio
async def test_put_writes_through_to_disk(flow_store, store_path, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1"))

    document = json.loads(store_path.read_text())
    assert document["version"] == 1
    assert document["flows"]["u1"]["stage"] == "waiting_initial_reply"


@pytest.mark.asyncio
async def test_round_trip_preserves_every_field(log_util, flow_store, lifecycle, store_path):
    await lifecycle.initialize("u1", EntryType.EVENT_ATTENDEE, "Amy", {"topic": "launching"})
    await lifecycle.transition("u1", FlowStage.WAITING_INITIAL_REPLY, "Sent initial DM")
    await lifecycle.transition("u1", FlowStage.WAITING_INITIAL_REPLY, "Initial follow-up 1",
                               reset_follow_up_counter=False, follow_up_count=1)
    await lifecycle.initialize("u2", EntryType.PROFILE_ENGAGER, "Ben")

    reloaded = FlowStore(log_util=log_util, storage=JsonFileStorage(log_util=log_util, file_path=str(store_path)))
    assert await reloaded.load() == 2

    for user_id in ("u1", "u2"):
        assert reloaded.get(user_id) == flow_store.get(user_id)
    assert [entry.notes for entry in reloaded.get("u1").history] == [
        "Flow created (event_attendee)",
        "Sent initial DM",
        "Initial follow-up 1",
    ]


@pytest.mark.asyncio
async def test_legacy_snapshot_without_version_marker(log_util, store_path, flow_factory):
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps({"u1": flow_factory(user_id="u1").model_dump(mode="json")}))

    store = FlowStore(log_util=log_util, storage=JsonFileStorage(log_util=log_util, file_path=str(store_path)))

    assert await store.load() == 1
    assert store.get("u1").display_name == "Amy"


@pytest.mark.asyncio
async def test_malformed_json_is_reported(flow_store, store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{not json")

    with pytest.raises(FlowStoreException):
        await flow_store.load()


@pytest.mark.asyncio
async def test_invalid_record_is_reported(flow_store, store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps({"version": 1, "flows": {"u1": {"user_id": "u1", "stage": "nowhere"}}}))

    with pytest.raises(FlowStoreException):
        await flow_store.load()


@pytest.mark.asyncio
async def test_persist_failure_keeps_memory_state(log_util, tmp_path, flow_factory):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where the data directory should be")
    store = FlowStore(log_util=log_util, storage=JsonFileStorage(log_util=log_util, file_path=str(blocker / "flows.json")))

    with pytest.raises(FlowStoreException):
        await store.put("u1", flow_factory(user_id="u1"))

    assert store.get("u1") is not None


@pytest.mark.asyncio
async def test_next_mutation_retries_persistence(log_util, tmp_path, flow_factory):
    blocker = tmp_path / "data"
    blocker.write_text("temporarily a file")
    store = FlowStore(log_util=log_util, storage=JsonFileStorage(log_util=log_util, file_path=str(blocker / "flows.json")))

    with pytest.raises(FlowStoreException):
        await store.put("u1", flow_factory(user_id="u1"))

    blocker.unlink()
    await store.put("u2", flow_factory(user_id="u2"))

    document = json.loads((blocker / "flows.json").read_text())
    assert set(document["flows"]) == {"u1", "u2"}


@pytest.mark.asyncio
async def test_purge_removes_and_persists(flow_store, store_path, flow_factory):
    await flow_store.put("u1", flow_factory(user_id="u1"))
    await flow_store.put("u2", flow_factory(user_id="u2"))

    removed = await flow_store.purge(["u1", "missing"])

    assert removed == 1
    assert flow_store.get("u1") is None
    assert set(json.loads(store_path.read_text())["flows"]) == {"u2"}


def test_user_lock_is_stable_per_user(flow_store):
    assert flow_store.user_lock("u1") is flow_store.user_lock("u1")
    assert flow_store.user_lock("u1") is not flow_store.user_lock("u2")


@pytest.mark.asyncio
async def test_node_service_snapshot_is_accepted(log_util, store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps({
        "123": {
            "senderId": "123",
            "firstName": "Amy",
            "entryType": "event_attendee",
            "stage": "waiting_doc_reply",
            "metadata": {"topic": "getting clients"},
            "history": [{"stage": "waiting_doc_reply", "timestamp": "2024-05-01T10:00:00.000Z", "notes": ""}],
            "createdAt": "2024-05-01T09:00:00.000Z",
            "updatedAt": "2024-05-01T10:00:00.000Z"
        }
    }))
    store = FlowStore(log_util=log_util, storage=JsonFileStorage(log_util=log_util, file_path=str(store_path)))

    assert await store.load() == 1

    flow = store.get("123")
    assert flow.display_name == "Amy"
    assert flow.entry_type == EntryType.EVENT_ATTENDEE
    assert flow.follow_up_count == 0
    assert flow.updated_at == datetime(2024, 5, 1, 10, 0)
    assert flow.updated_at.tzinfo is None
    assert flow.idle_hours(datetime(2024, 5, 2, 10, 0)) == pytest.approx(24)

    # Rewritten in the current shape
    await store.persist()
    document = json.loads(store_path.read_text())
    assert document["version"] == 1
    assert document["flows"]["123"]["user_id"] == "123"
    assert "senderId" not in document["flows"]["123"]
