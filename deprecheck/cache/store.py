# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Durable key-value stores backing the response cache.

The response cache only needs per-key reads and atomic per-key writes, so
any object with ``read(key)`` and ``write(key, value)`` can back it. Two
stores are provided:

- JsonFileStore: a JSON state file that survives process restarts
- MemoryStore: a process-local dict for tests and stateless runs

The state file looks like this:

    {
      "entries": {
        "https://example.com/state.json": {
          "expires_at": "2026-10-20T12:00:00+00:00",
          "fetched_at": "2026-10-19T12:00:00+00:00",
          "response": {"info": {"state": "ok"}}
        }
      },
      "metadata": {
        "deprecheck_version": "0.1.0",
        "last_updated": "2026-10-19T12:00:00+00:00",
        "schema_version": "1"
      }
    }

Example:
    ```python
    from pathlib import Path
    from deprecheck.cache import JsonFileStore

    store = JsonFileStore(Path("state/deprecheck.json"))
    store.write("https://example.com/state.json", {...})
    store.read("https://example.com/state.json")
    ```
"""

from __future__ import annotations

import copy
from datetime import UTC, datetime
import json
import os
from pathlib import Path
import tempfile
import threading
from typing import Any, Protocol

from deprecheck import __version__
from deprecheck.exceptions import CacheError
from deprecheck.logging import get_global_logger

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    "create_default_state",
    "load_state",
    "save_state",
]


class KeyValueStore(Protocol):
    """Protocol for durable per-key storage of serialized cache entries."""

    def read(self, key: str) -> dict[str, Any] | None:
        """Return the value stored under ``key``, or None."""
        ...

    def write(self, key: str, value: dict[str, Any]) -> None:
        """Store ``value`` under ``key``, durably, before returning."""
        ...


class MemoryStore:
    """In-process store. Values are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            value = self._data.get(key)
            return copy.deepcopy(value) if value is not None else None

    def write(self, key: str, value: dict[str, Any]) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class JsonFileStore:
    """JSON state file store with atomic, lock-serialised writes.

    The file is loaded lazily on first access. A corrupted file is renamed
    to ``*.json.backup`` and replaced with an empty state.

    Attributes:
        state_file: Path to the JSON state file.
    """

    def __init__(self, state_file: Path):
        """Initialize the store.

        Args:
            state_file: Path to the JSON state file. Created on first write
                if it doesn't exist.
        """
        self.state_file = state_file
        self._state: dict[str, Any] | None = None
        self._lock = threading.RLock()

    def load(self) -> dict[str, Any]:
        """Load state from file, replacing anything held in memory.

        Returns:
            Loaded state dictionary.

        Raises:
            CacheError: If the file was corrupted. It has been backed up and
                a fresh state is in place when this is raised.
            OSError: If file permissions prevent reading.
        """
        with self._lock:
            try:
                self._state = load_state(self.state_file)
            except FileNotFoundError:
                self._state = create_default_state()
            except json.JSONDecodeError as err:
                backup = self.state_file.with_suffix(".json.backup")
                self.state_file.replace(backup)
                self._state = create_default_state()
                self._flush(self._state)
                raise CacheError(
                    f"Corrupted cache file backed up to {backup}. "
                    f"Created fresh cache file."
                ) from err

            if not isinstance(self._state.get("entries"), dict):
                self._state["entries"] = {}
            return self._state

    def _ensure_loaded(self) -> dict[str, Any]:
        if self._state is None:
            try:
                self.load()
            except CacheError as err:
                get_global_logger().warning("CACHE", str(err))
        return self._state

    def read(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            value = self._ensure_loaded()["entries"].get(key)
            return copy.deepcopy(value) if value is not None else None

    def write(self, key: str, value: dict[str, Any]) -> None:
        """Persist ``value`` under ``key``.

        The in-memory state is only replaced once the file has been written,
        so a failed write leaves both unchanged.

        Raises:
            CacheError: If the state file could not be written.
        """
        with self._lock:
            current = self._ensure_loaded()
            updated = dict(current)
            updated["metadata"] = dict(current.get("metadata") or {})
            updated["entries"] = {**current["entries"], key: copy.deepcopy(value)}
            self._flush(updated)
            self._state = updated

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._ensure_loaded()["entries"])

    def _flush(self, state: dict[str, Any]) -> None:
        state.setdefault("metadata", {})
        state["metadata"]["last_updated"] = datetime.now(UTC).isoformat()
        try:
            save_state(state, self.state_file)
        except OSError as err:
            raise CacheError(
                f"Failed to write cache file {self.state_file}: {err}"
            ) from err


def create_default_state() -> dict[str, Any]:
    """Create a default empty state structure."""
    return {
        "metadata": {
            "deprecheck_version": __version__,
            "schema_version": "1",
            "last_updated": datetime.now(UTC).isoformat(),
        },
        "entries": {},
    }


def load_state(state_file: Path) -> dict[str, Any]:
    """Load state from a JSON file.

    Raises:
        FileNotFoundError: If the state file doesn't exist.
        json.JSONDecodeError: If the file contains invalid JSON.
    """
    with open(state_file, encoding="utf-8") as f:
        state = json.load(f)
    if not isinstance(state, dict):
        raise json.JSONDecodeError("State file root is not an object", "", 0)
    return state


def save_state(state: dict[str, Any], state_file: Path) -> None:
    """Atomically save state to a JSON file with pretty-printing.

    Writes to a temporary file in the same directory, fsyncs it and renames
    it over the target, so readers see either the old or the new file.

    Note:
        - Uses 2-space indentation and sorted keys for consistent diffs
        - Adds trailing newline
    """
    state_file.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{state_file.name}.", suffix=".tmp", dir=state_file.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2, sort_keys=True)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, state_file)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
