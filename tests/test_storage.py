"""Tests for LocalStorage and the persistence bridge."""

import json
import logging
import os
import stat

import pytest

from tasklist.storage import LocalStorage, PersistenceBridge, deserialize, serialize
from tasklist.store import TaskStore
from tasklist.todo import Task


@pytest.fixture
def storage_path(tmp_path):
    return tmp_path / "storage.json"


def test_local_storage_set_and_get(storage_path):
    """Test that items survive a new LocalStorage instance."""
    storage = LocalStorage(str(storage_path))
    storage.set_item("todos", "[]")
    storage.set_item("other", "value")

    reopened = LocalStorage(str(storage_path))
    assert reopened.get_item("todos") == "[]"
    assert reopened.get_item("other") == "value"
    assert reopened.get_item("missing") is None
    assert sorted(reopened.keys()) == ["other", "todos"]


def test_local_storage_remove_item(storage_path):
    storage = LocalStorage(str(storage_path))
    storage.set_item("todos", "[]")

    storage.remove_item("todos")
    storage.remove_item("todos")

    assert LocalStorage(str(storage_path)).get_item("todos") is None


def test_local_storage_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "storage.json"
    LocalStorage(str(path)).set_item("k", "v")

    assert path.exists()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_local_storage_file_permissions(storage_path):
    LocalStorage(str(storage_path)).set_item("k", "v")

    assert stat.S_IMODE(storage_path.stat().st_mode) == 0o600


def test_local_storage_leaves_no_temp_files(storage_path):
    storage = LocalStorage(str(storage_path))
    for i in range(5):
        storage.set_item("k", str(i))

    assert [p.name for p in storage_path.parent.iterdir()] == ["storage.json"]


def test_local_storage_recovers_from_corrupt_file(storage_path, caplog):
    """Test that invalid JSON is backed up and treated as empty."""
    storage_path.write_text("{invalid json content")

    with caplog.at_level(logging.ERROR):
        storage = LocalStorage(str(storage_path))

    assert storage.keys() == []
    backup = storage_path.with_name("storage.json.backup")
    assert backup.read_text() == "{invalid json content"
    assert "Invalid JSON" in caplog.text


def test_local_storage_rejects_non_object_file(storage_path, caplog):
    storage_path.write_text("[1, 2, 3]")

    with caplog.at_level(logging.ERROR):
        storage = LocalStorage(str(storage_path))

    assert storage.keys() == []
    assert "expected object" in caplog.text


def test_local_storage_skips_non_string_values(storage_path):
    storage_path.write_text(json.dumps({"good": "yes", "bad": 3}))

    storage = LocalStorage(str(storage_path))

    assert storage.keys() == ["good"]


def test_serialize_round_trip():
    """Test deserialize(serialize(x)) == x, including the empty list."""
    tasks = (
        Task(id="a", text="Buy milk"),
        Task(id="b", text="Walk the dog", completed=True),
    )

    assert deserialize(serialize(tasks)) == tasks
    assert deserialize(serialize(())) == ()


def test_serialize_format():
    tasks = (Task(id="a", text="Buy milk"),)

    assert json.loads(serialize(tasks)) == [{"id": "a", "text": "Buy milk", "completed": False}]


def test_deserialize_rejects_duplicate_ids():
    raw = json.dumps([{"id": "a", "text": "x"}, {"id": "a", "text": "y"}])

    with pytest.raises(ValueError, match="duplicate"):
        deserialize(raw)


def test_bridge_load_missing_entry(storage_path):
    bridge = PersistenceBridge(LocalStorage(str(storage_path)))

    assert bridge.load() == ()


@pytest.mark.parametrize("raw", ["undefined", "null", "{not json", '{"a": 1}', '[{"id": 1}]', '"text"'])
def test_bridge_load_bad_entry_resets(storage_path, raw, caplog):
    """Test that unusable stored data is cleared and an empty list returned."""
    storage = LocalStorage(str(storage_path))
    storage.set_item("todos", raw)
    bridge = PersistenceBridge(LocalStorage(str(storage_path)))

    with caplog.at_level(logging.DEBUG, logger="tasklist.storage"):
        assert bridge.load() == ()

    assert LocalStorage(str(storage_path)).get_item("todos") is None


def test_bridge_load_malformed_entry_logs_warning(storage_path, caplog):
    storage = LocalStorage(str(storage_path))
    storage.set_item("todos", "{not json")

    with caplog.at_level(logging.WARNING, logger="tasklist.storage"):
        PersistenceBridge(storage).load()

    assert "Failed to parse tasks" in caplog.text


def test_bridge_save_and_load(storage_path):
    tasks = (Task(id="a", text="Buy milk", completed=True),)
    PersistenceBridge(LocalStorage(str(storage_path))).save(tasks)

    assert PersistenceBridge(LocalStorage(str(storage_path))).load() == tasks


def test_bridge_uses_configured_key(storage_path):
    storage = LocalStorage(str(storage_path))
    PersistenceBridge(storage, key="work").save((Task(id="a", text="x"),))

    assert storage.get_item("todos") is None
    assert storage.get_item("work") is not None


def test_bridge_saves_empty_list(storage_path):
    """Test that an empty list is written rather than skipped."""
    storage = LocalStorage(str(storage_path))
    bridge = PersistenceBridge(storage)
    bridge.save((Task(id="a", text="x"),))

    bridge.save(())

    assert LocalStorage(str(storage_path)).get_item("todos") == "[]"


def test_deleting_last_task_updates_storage(storage_path):
    """Test that removing the only task leaves an empty stored list."""
    storage = LocalStorage(str(storage_path))
    bridge = PersistenceBridge(storage)
    task_store = TaskStore(bridge.load())
    bridge.attach(task_store)

    task_store.create("Buy milk")
    assert len(PersistenceBridge(LocalStorage(str(storage_path))).load()) == 1

    task_store.delete(task_store.tasks[0].id)

    assert LocalStorage(str(storage_path)).get_item("todos") == "[]"
    assert PersistenceBridge(LocalStorage(str(storage_path))).load() == ()


def test_bridge_save_failure_is_logged(storage_path, monkeypatch, caplog):
    storage = LocalStorage(str(storage_path))

    def fail(key, value):
        raise OSError("disk full")

    monkeypatch.setattr(storage, "set_item", fail)

    with caplog.at_level(logging.ERROR, logger="tasklist.storage"):
        PersistenceBridge(storage).save((Task(id="a", text="x"),))

    assert "disk full" in caplog.text


def test_bridge_load_deeply_nested_entry_resets(storage_path, caplog):
    """Test that a value nested past the recursion limit falls back to empty."""
    storage_path.write_text(json.dumps({"todos": "[" * 100000}))

    with caplog.at_level(logging.WARNING, logger="tasklist.storage"):
        tasks = PersistenceBridge(LocalStorage(str(storage_path))).load()

    assert tasks == ()
    assert "Failed to parse tasks" in caplog.text
    assert LocalStorage(str(storage_path)).get_item("todos") is None


def test_local_storage_recovers_from_deeply_nested_file(storage_path, caplog):
    """Test that a backing file nested past the recursion limit is backed up."""
    storage_path.write_text("[" * 100000)

    with caplog.at_level(logging.ERROR):
        storage = LocalStorage(str(storage_path))

    assert storage.keys() == []
    assert storage_path.with_name("storage.json.backup").exists()
    assert "Invalid JSON" in caplog.text
    assert PersistenceBridge(storage).load() == ()
