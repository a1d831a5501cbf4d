"""
Tests for storage backends.
"""

import json
import os
import threading

import pytest

from royalty_splitter.storage import StorageError, get_storage_backend
from royalty_splitter.storage.base import StorageReadError
from royalty_splitter.storage.json_file import JSONFileStorage
from royalty_splitter.storage.memory import MemoryStorage

# Sample splitter state for testing
SAMPLE_STATE = {
    "version": 1,
    "config": {
        "basis_points": 10000,
        "min_share": 1,
        "max_share": 10000,
        "max_splits_per_work": 10,
        "paused": False,
        "admin": "ST1ADMIN",
    },
    "registry": {
        "splits": {
            "1": [
                {"recipient": "ST2ARTIST", "share": 6000},
                {"recipient": "ST3ARTIST", "share": 4000},
            ]
        },
        "owners": {"1": "ST1CALLER"},
        "share_index": [[1, "ST2ARTIST", 6000], [1, "ST3ARTIST", 4000]],
    },
    "audit": {"update_records": {}, "events": []},
    "next_work_id": 1,
}


class TestMemoryStorage:
    """Tests for MemoryStorage backend."""

    def test_init_empty(self):
        """Test that new memory storage is empty."""
        storage = MemoryStorage()
        assert storage.load_state() is None
        assert storage.is_available() is True

    def test_save_and_load(self):
        """Test saving and loading state."""
        storage = MemoryStorage()
        storage.save_state(SAMPLE_STATE)

        loaded = storage.load_state()
        assert loaded == SAMPLE_STATE
        assert storage.save_count == 1

    def test_deep_copy_isolation(self):
        """Test that modifications don't affect stored data."""
        storage = MemoryStorage()
        storage.save_state(SAMPLE_STATE)

        loaded = storage.load_state()
        loaded["registry"]["owners"]["2"] = "ST4FAKE"

        assert "2" not in storage.load_state()["registry"]["owners"]

    def test_clear(self):
        """Test clearing stored data."""
        storage = MemoryStorage()
        storage.save_state(SAMPLE_STATE)

        storage.clear()
        assert storage.load_state() is None

    def test_get_info(self):
        """Test getting storage info."""
        storage = MemoryStorage()
        info = storage.get_info()

        assert info["backend_type"] == "MemoryStorage"
        assert info["available"] is True
        assert info["has_data"] is False

        storage.save_state(SAMPLE_STATE)
        assert storage.get_info()["has_data"] is True

    def test_concurrent_saves(self):
        """Test that concurrent saves are all counted."""
        storage = MemoryStorage()

        threads = [
            threading.Thread(target=storage.save_state, args=(SAMPLE_STATE,))
            for _ in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert storage.save_count == 20


class TestJSONFileStorage:
    """Tests for JSONFileStorage backend."""

    def test_load_missing_file(self, tmp_path):
        """Test that a missing file means no state."""
        storage = JSONFileStorage(str(tmp_path / "missing.json"))
        assert storage.load_state() is None

    def test_save_and_load(self, tmp_path):
        """Test saving and loading state."""
        path = tmp_path / "state.json"
        storage = JSONFileStorage(str(path))

        storage.save_state(SAMPLE_STATE)

        assert path.exists()
        assert not (tmp_path / "state.json.tmp").exists()
        assert storage.load_state() == SAMPLE_STATE

    def test_empty_file(self, tmp_path):
        """Test that an empty file means no state."""
        path = tmp_path / "state.json"
        path.write_text("   \n")

        assert JSONFileStorage(str(path)).load_state() is None

    def test_invalid_json(self, tmp_path):
        """Test that corrupt files raise StorageReadError."""
        path = tmp_path / "state.json"
        path.write_text("{not json")

        with pytest.raises(StorageReadError):
            JSONFileStorage(str(path)).load_state()

    def test_overwrite(self, tmp_path):
        """Test that a second save replaces the first."""
        storage = JSONFileStorage(str(tmp_path / "state.json"))
        storage.save_state(SAMPLE_STATE)

        updated = dict(SAMPLE_STATE, next_work_id=7)
        storage.save_state(updated)

        assert storage.load_state()["next_work_id"] == 7

    def test_file_is_json(self, tmp_path):
        """Test that the file on disk is plain JSON."""
        path = tmp_path / "state.json"
        JSONFileStorage(str(path)).save_state(SAMPLE_STATE)

        with open(path, encoding="utf-8") as f:
            assert json.load(f)["registry"]["owners"] == {"1": "ST1CALLER"}

    def test_is_available(self, tmp_path):
        """Test availability follows the target directory."""
        assert JSONFileStorage(str(tmp_path / "state.json")).is_available() is True
        assert JSONFileStorage(str(tmp_path / "nope" / "state.json")).is_available() is False

    def test_get_info(self, tmp_path):
        """Test getting storage info."""
        storage = JSONFileStorage(str(tmp_path / "state.json"))
        assert storage.get_info()["file_exists"] is False

        storage.save_state(SAMPLE_STATE)
        info = storage.get_info()

        assert info["backend_type"] == "JSONFileStorage"
        assert info["file_exists"] is True
        assert info["file_size_bytes"] > 0

    def test_delete(self, tmp_path):
        """Test deleting the storage file."""
        storage = JSONFileStorage(str(tmp_path / "state.json"))
        assert storage.delete() is False

        storage.save_state(SAMPLE_STATE)
        assert storage.delete() is True
        assert storage.load_state() is None

    def test_backup(self, tmp_path):
        """Test backing up the storage file."""
        storage = JSONFileStorage(str(tmp_path / "state.json"))
        storage.save_state(SAMPLE_STATE)

        backup_path = storage.backup(str(tmp_path / "copy.json"))

        assert os.path.exists(backup_path)
        assert JSONFileStorage(backup_path).load_state() == SAMPLE_STATE

    def test_backup_without_file(self, tmp_path):
        """Test that backing up nothing is an error."""
        storage = JSONFileStorage(str(tmp_path / "state.json"))

        with pytest.raises(StorageError):
            storage.backup()

    def test_context_manager(self, tmp_path):
        """Test using the backend as a context manager."""
        with JSONFileStorage(str(tmp_path / "state.json")) as storage:
            storage.save_state(SAMPLE_STATE)

        assert JSONFileStorage(str(tmp_path / "state.json")).load_state() == SAMPLE_STATE


class TestGetStorageBackend:
    """Tests for backend selection from the environment."""

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        assert isinstance(get_storage_backend(), MemoryStorage)

    def test_json_backend(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_BACKEND", "JSON")
        monkeypatch.setenv("SPLITTER_DATA_FILE", str(tmp_path / "data.json"))

        storage = get_storage_backend()

        assert isinstance(storage, JSONFileStorage)
        assert storage.file_path == str(tmp_path / "data.json")

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")

        with pytest.raises(StorageError):
            get_storage_backend()
