"""
Tests for the snapshot repository and key-value stores (domains/label_hub/core/store.py)
"""

import json

import pytest

from domains.core.exceptions import StorageError
from domains.label_hub.core.store import FileKeyValueStore, MemoryKeyValueStore, SnapshotRepository
from domains.label_hub.settings import LabelHubSettings, StorageBackend


def _saved(n):
    return {"n": n}


def _history_ns(repository):
    return [entry.get("n", "empty") for entry in repository.history()]


class FailOnKeyStore(MemoryKeyValueStore):
    def __init__(self, fail_key):
        super().__init__()
        self.fail_key = fail_key
        self.failing = False

    def set(self, key, value):
        if self.failing and key == self.fail_key:
            raise StorageError(f"写入 {key} 失败", key=key)
        super().set(key, value)


# ---------------------------------------------------------------------------
# History coalescing
# ---------------------------------------------------------------------------

class TestHistory:
    def test_first_save_records_empty_store(self, repository):
        repository.boot()
        repository.save(_saved(1))

        assert repository.history() == [{"labels": [], "texts": []}]
        assert repository.last_saved() == _saved(1)

    def test_window_coalesces_then_prepends(self):
        repository = SnapshotRepository(MemoryKeyValueStore(), history_every=2, max_history=3)
        repository.boot()

        repository.save(_saved(1))
        assert _history_ns(repository) == ["empty"]
        repository.save(_saved(2))
        assert _history_ns(repository) == [1]
        repository.save(_saved(3))
        assert _history_ns(repository) == [2, 1]
        repository.save(_saved(4))
        repository.save(_saved(5))
        assert _history_ns(repository) == [4, 1]
        repository.save(_saved(6))
        assert _history_ns(repository) == [5, 4, 1]

    def test_history_truncated_to_max(self):
        repository = SnapshotRepository(MemoryKeyValueStore(), history_every=0, max_history=3)
        repository.boot()
        for n in range(1, 8):
            repository.save(_saved(n))

        assert _history_ns(repository) == [6, 5, 4]
        assert repository.last_saved() == _saved(7)

    def test_default_window(self, repository):
        repository.boot()
        for n in range(1, 16):
            repository.save(_saved(n))
        assert len(repository.history()) == 1
        assert repository.save_counter() == 15

        repository.save(_saved(16))
        assert _history_ns(repository) == [15, 14]
        assert repository.save_counter() == 0

    def test_counter_survives_new_repository(self, kv):
        first = SnapshotRepository(kv, history_every=2)
        first.boot()
        first.save(_saved(1))
        first.save(_saved(2))

        second = SnapshotRepository(kv, history_every=2)
        second.save(_saved(3))
        assert _history_ns(second) == [2, 1]

    def test_edit_raw(self, repository):
        repository.boot()
        repository.save(_saved(1))

        seen = {}

        def editor(last_saved, history):
            seen["last"] = last_saved
            seen["history"] = history
            return {**last_saved, "edited": True}

        result = repository.edit_raw(editor)

        assert seen["last"] == _saved(1)
        assert seen["history"] == [{"labels": [], "texts": []}]
        assert result == {"n": 1, "edited": True}
        assert repository.last_saved() == result

    def test_boot_leaves_existing_state(self, kv):
        kv.set("database", json.dumps(_saved(9)))
        repository = SnapshotRepository(kv)

        assert repository.boot() == json.dumps(_saved(9))
        assert kv.get("history") is None


class TestSaveRollback:
    def _persisted(self, kv):
        return {key: kv.get(key) for key in kv.keys()}

    def test_database_write_failure_restores_history_and_counter(self):
        kv = FailOnKeyStore("database")
        repository = SnapshotRepository(kv, history_every=2)
        repository.boot()
        repository.save(_saved(1))
        repository.save(_saved(2))
        before = self._persisted(kv)

        kv.failing = True
        with pytest.raises(StorageError):
            repository.save(_saved(3))

        assert self._persisted(kv) == before
        assert repository.save_counter() == 2
        assert _history_ns(repository) == [1]

    def test_keys_absent_before_save_are_removed(self):
        kv = FailOnKeyStore("history")
        repository = SnapshotRepository(kv)
        repository.boot()
        kv.delete("history")

        kv.failing = True
        with pytest.raises(StorageError):
            repository.save(_saved(1))

        assert kv.keys() == ["database"]

    def test_next_save_after_failure_continues_window(self):
        kv = FailOnKeyStore("database")
        repository = SnapshotRepository(kv, history_every=1)
        repository.boot()
        repository.save(_saved(1))

        kv.failing = True
        with pytest.raises(StorageError):
            repository.save(_saved(2))
        kv.failing = False
        repository.save(_saved(2))

        assert _history_ns(repository) == [1, "empty"]
        assert repository.last_saved() == _saved(2)


# ---------------------------------------------------------------------------
# Key-value stores
# ---------------------------------------------------------------------------

class TestFileKeyValueStore:
    def test_missing_key(self, tmp_path):
        assert FileKeyValueStore(tmp_path / "kv").get("database") is None

    def test_set_creates_directory(self, tmp_path):
        store = FileKeyValueStore(tmp_path / "nested" / "kv")
        store.set("database", '{"a": 1}')

        assert store.get("database") == '{"a": 1}'
        assert sorted(p.name for p in (tmp_path / "nested" / "kv").iterdir()) == ["database.json"]

    def test_delete(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        store.set("history", "[]")
        store.delete("history")
        store.delete("history")

        assert store.get("history") is None

    def test_unreadable_key_raises_storage_error(self, tmp_path):
        (tmp_path / "database.json").mkdir()
        with pytest.raises(StorageError):
            FileKeyValueStore(tmp_path).get("database")

    def test_repository_over_files(self, tmp_path):
        repository = SnapshotRepository(FileKeyValueStore(tmp_path))
        assert repository.boot() is None
        repository.save(_saved(1))

        reopened = SnapshotRepository(FileKeyValueStore(tmp_path))
        assert reopened.last_saved() == _saved(1)
        assert reopened.save_counter() == 1


class TestFromSettings:
    def test_memory_backend(self):
        settings = LabelHubSettings(storage_backend=StorageBackend.MEMORY, history_every=3, max_history=5)
        repository = SnapshotRepository.from_settings(settings)

        assert isinstance(repository.kv, MemoryKeyValueStore)
        assert repository.history_every == 3
        assert repository.max_history == 5

    def test_file_backend(self, tmp_path):
        settings = LabelHubSettings(data_dir=tmp_path)
        repository = SnapshotRepository.from_settings(settings)

        assert isinstance(repository.kv, FileKeyValueStore)
        assert repository.kv.directory == tmp_path
