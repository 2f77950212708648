"""
Tests for deprecheck.cache package.

Tests response caching including:
- Entry expiry and the freshness test
- ResponseCache get/put
- JSON file persistence, restarts and corrupted files
"""

from __future__ import annotations

from datetime import timedelta
import json

import pytest

from deprecheck.cache import CachedEntry, JsonFileStore, MemoryStore, ResponseCache, is_fresh
from deprecheck.cache.store import create_default_state, load_state, save_state
from deprecheck.exceptions import CacheError

from conftest import ENDPOINT, T0


class TestCachedEntry:
    """Tests for CachedEntry and is_fresh."""

    def test_create_computes_expiry(self):
        entry = CachedEntry.create({"a": "b"}, T0, timedelta(hours=2))
        assert entry.fetched_at == T0
        assert entry.expires_at == T0 + timedelta(hours=2)

    def test_freshness_boundary(self):
        """Test fresh strictly before expiry and stale from expiry on."""
        entry = CachedEntry.create({}, T0, timedelta(hours=1))
        assert is_fresh(entry, T0)
        assert is_fresh(entry, T0 + timedelta(minutes=59, seconds=59))
        assert not is_fresh(entry, T0 + timedelta(hours=1))
        assert not is_fresh(entry, T0 + timedelta(hours=2))

    def test_absent_is_not_fresh(self):
        assert not is_fresh(None, T0)

    def test_zero_ttl_is_never_fresh(self):
        entry = CachedEntry.create({}, T0, timedelta(0))
        assert not is_fresh(entry, T0)

    def test_dict_conversion(self):
        entry = CachedEntry.create({"info": {"state": "ok"}}, T0, timedelta(days=1))
        data = entry.to_dict()
        assert data["fetched_at"] == T0.isoformat()
        assert CachedEntry.from_dict(data) == entry

    def test_from_dict_rejects_bad_timestamp(self):
        with pytest.raises(ValueError):
            CachedEntry.from_dict(
                {"response": {}, "fetched_at": "yesterday", "expires_at": "tomorrow"}
            )


class TestResponseCache:
    """Tests for ResponseCache."""

    def test_absent_until_put(self, cache):
        assert cache.get(ENDPOINT) is None

    def test_put_then_get(self, cache):
        entry = CachedEntry.create({"info": {"state": "ok"}}, T0, timedelta(hours=1))
        cache.put(ENDPOINT, entry)
        assert cache.get(ENDPOINT) == entry

    def test_put_overwrites_wholesale(self, cache):
        cache.put(ENDPOINT, CachedEntry.create({"a": "1", "b": "2"}, T0, timedelta(hours=1)))
        later = CachedEntry.create({"a": "3"}, T0 + timedelta(hours=2), timedelta(hours=1))
        cache.put(ENDPOINT, later)
        assert cache.get(ENDPOINT).response == {"a": "3"}

    def test_entries_are_keyed_by_endpoint(self, cache):
        cache.put(ENDPOINT, CachedEntry.create({"v": "1"}, T0, timedelta(hours=1)))
        assert cache.get("https://example.com/other.json") is None

    def test_unreadable_entry_is_absent(self, store):
        store.write(ENDPOINT, {"response": {}, "fetched_at": "bad"})
        assert ResponseCache(store).get(ENDPOINT) is None

    def test_memory_store_copies_values(self, store):
        value = {"response": {"a": "b"}}
        store.write("k", value)
        value["response"]["a"] = "changed"
        assert store.read("k") == {"response": {"a": "b"}}

    def test_default_store_is_memory(self):
        assert isinstance(ResponseCache().store, MemoryStore)


class TestJsonFileStore:
    """Tests for JSON file persistence."""

    def test_survives_restart(self, tmp_path):
        """Test that a new cache instance sees entries written by an old one."""
        cache_file = tmp_path / "state" / "cache.json"
        entry = CachedEntry.create({"info": {"state": "dep"}}, T0, timedelta(hours=24))
        ResponseCache.from_file(cache_file).put(ENDPOINT, entry)

        reloaded = ResponseCache.from_file(cache_file)
        assert reloaded.get(ENDPOINT) == entry

    def test_put_is_written_before_returning(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        ResponseCache.from_file(cache_file).put(
            ENDPOINT, CachedEntry.create({"x": "y"}, T0, timedelta(hours=1))
        )
        state = json.loads(cache_file.read_text(encoding="utf-8"))
        assert state["entries"][ENDPOINT]["response"] == {"x": "y"}
        assert state["metadata"]["schema_version"] == "1"
        assert "last_updated" in state["metadata"]

    def test_no_temp_files_left_behind(self, tmp_path):
        cache_file = tmp_path / "cache.json"
        store = JsonFileStore(cache_file)
        store.write("a", {"v": 1})
        store.write("b", {"v": 2})
        assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]

    def test_missing_file_reads_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "nope.json")
        assert store.read(ENDPOINT) is None
        assert not (tmp_path / "nope.json").exists()

    def test_corrupted_file_backed_up(self, tmp_path):
        """Test that load() backs up a corrupted file and reports it."""
        cache_file = tmp_path / "cache.json"
        cache_file.write_text("This is not JSON", encoding="utf-8")

        store = JsonFileStore(cache_file)
        with pytest.raises(CacheError, match="backed up"):
            store.load()

        assert (tmp_path / "cache.json.backup").exists()
        assert load_state(cache_file)["entries"] == {}

    def test_corrupted_file_read_recovers(self, tmp_path):
        """Test that lazy reads recover from corruption instead of raising."""
        cache_file = tmp_path / "cache.json"
        cache_file.write_text("{broken", encoding="utf-8")

        store = JsonFileStore(cache_file)
        assert store.read(ENDPOINT) is None
        store.write(ENDPOINT, {"v": 1})
        assert store.read(ENDPOINT) == {"v": 1}

    def test_failed_write_changes_nothing(self, tmp_path, monkeypatch):
        """Test that an entry is not visible when writing the file failed."""
        cache_file = tmp_path / "cache.json"
        store = JsonFileStore(cache_file)
        store.write("a", {"v": 1})

        def fail(state, state_file):
            raise OSError("disk full")

        monkeypatch.setattr("deprecheck.cache.store.save_state", fail)
        with pytest.raises(CacheError, match="disk full"):
            store.write("b", {"v": 2})
        with pytest.raises(CacheError):
            store.write("a", {"v": 3})

        assert store.read("a") == {"v": 1}
        assert store.read("b") is None
        assert load_state(cache_file)["entries"] == {"a": {"v": 1}}

    def test_keys(self, tmp_path):
        store = JsonFileStore(tmp_path / "cache.json")
        store.write("a", {})
        store.write("b", {})
        assert sorted(store.keys()) == ["a", "b"]


class TestStateFileFunctions:
    """Tests for load_state/save_state helpers."""

    def test_default_state(self):
        state = create_default_state()
        assert state["entries"] == {}
        assert state["metadata"]["schema_version"] == "1"

    def test_save_creates_parent_directory(self, tmp_path):
        state_file = tmp_path / "nested" / "dir" / "state.json"
        save_state(create_default_state(), state_file)
        assert state_file.exists()
        assert state_file.read_text(encoding="utf-8").endswith("\n")

    def test_load_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_state(tmp_path / "missing.json")

    def test_load_non_object_raises(self, tmp_path):
        state_file = tmp_path / "list.json"
        state_file.write_text("[]", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_state(state_file)
