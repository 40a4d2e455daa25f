"""Tests for blob storage backends and the persistence manager."""

import json
import os

import pytest

from matchledger.services import FileStorage, InMemoryStorage, PersistenceManager, StorageError

DEFAULTS = {"a": 0, "b": [], "nested": {"x": 0, "y": 0}}


def test_in_memory_storage_round_trip():
    storage = InMemoryStorage({"k1": "v1"})
    storage.set("k2", "v2")
    storage.remove("k1")
    storage.remove("missing")

    assert storage.get("k1") is None
    assert storage.get("k2") == "v2"
    assert storage.keys() == ["k2"]


def test_file_storage_creates_directory_and_sanitizes_keys(tmp_path):
    directory = tmp_path / "nested" / "store"
    storage = FileStorage(str(directory))

    assert storage.get("team/1") is None
    storage.set("team/1", '{"ok": true}')

    assert os.path.exists(directory / "team_1.json")
    assert storage.get("team/1") == '{"ok": true}'

    storage.remove("team/1")
    assert storage.get("team/1") is None


def test_file_storage_lists_recent_keys(tmp_path):
    storage = FileStorage(str(tmp_path))
    storage.set("first", "1")
    storage.set("second", "2")
    os.utime(tmp_path / "first.json", (1_000, 1_000))
    os.utime(tmp_path / "second.json", (2_000, 2_000))

    assert storage.get_recent_keys() == ["second", "first"]
    assert storage.get_recent_keys(limit=1) == ["second"]
    assert FileStorage(str(tmp_path / "absent")).get_recent_keys() == []


def test_file_storage_wraps_read_errors(tmp_path):
    (tmp_path / "broken.json").mkdir()
    storage = FileStorage(str(tmp_path))

    with pytest.raises(StorageError):
        storage.get("broken")


class TestPersistenceManager:
    def setup_method(self):
        self.storage = InMemoryStorage()
        self.manager = PersistenceManager(self.storage, "state", DEFAULTS)

    def test_missing_state_loads_defaults(self):
        assert self.manager.load_state() == DEFAULTS
        assert self.manager.has_stored_state() is False

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]", "42"])
    def test_unusable_blob_loads_defaults(self, raw):
        self.storage.set("state", raw)
        assert self.manager.load_state() == DEFAULTS

    def test_stored_state_is_merged_with_defaults(self):
        self.storage.set("state", json.dumps({"a": 1, "unknown": 2, "nested": {"x": 5}}))

        assert self.manager.load_state() == {"a": 1, "b": [], "nested": {"x": 5, "y": 0}}

    def test_defaults_are_not_shared(self):
        state = self.manager.load_state()
        state["b"].append("leak")
        assert self.manager.load_state()["b"] == []

    def test_save_and_clear(self):
        assert self.manager.save_state({"a": 3}) is True
        assert self.manager.has_stored_state() is True
        assert self.manager.load_state()["a"] == 3

        assert self.manager.clear_state() is True
        assert self.manager.has_stored_state() is False

    def test_save_rejects_invalid_state(self):
        assert self.manager.save_state(["not", "a", "dict"]) is False
        assert self.manager.save_state({"a": {1, 2}}) is False
        assert self.manager.has_stored_state() is False

    def test_storage_errors_degrade_gracefully(self, tmp_path):
        (tmp_path / "state.json").mkdir()
        manager = PersistenceManager(FileStorage(str(tmp_path)), "state", DEFAULTS)

        assert manager.load_state() == DEFAULTS
        assert manager.save_state({"a": 1}) is False
