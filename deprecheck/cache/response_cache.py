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

"""TTL-aware response cache keyed by endpoint."""

from __future__ import annotations

from pathlib import Path

from deprecheck.logging import get_global_logger

from .entry import CachedEntry
from .store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = ["ResponseCache"]


class ResponseCache:
    """Maps an endpoint to its last successfully parsed response.

    Entries are only ever overwritten wholesale by put(); they are never
    deleted. Whatever the backing store holds survives process restarts.

    Example:
        ```python
        from pathlib import Path
        from deprecheck.cache import ResponseCache

        cache = ResponseCache.from_file(Path("state/deprecheck.json"))
        entry = cache.get("https://example.com/state.json")
        ```
    """

    def __init__(self, store: KeyValueStore | None = None):
        self.store = store if store is not None else MemoryStore()

    @classmethod
    def from_file(cls, cache_file: Path) -> ResponseCache:
        """Create a cache persisted in a JSON file."""
        return cls(JsonFileStore(cache_file))

    def get(self, endpoint: str) -> CachedEntry | None:
        """Return the cached entry for ``endpoint``, or None if absent.

        An entry that cannot be deserialized is reported and treated as
        absent; the next successful fetch overwrites it.
        """
        data = self.store.read(endpoint)
        if data is None:
            return None
        try:
            return CachedEntry.from_dict(data)
        except (KeyError, TypeError, ValueError) as err:
            get_global_logger().warning(
                "CACHE", f"Ignoring unreadable cache entry for {endpoint}: {err!r}"
            )
            return None

    def put(self, endpoint: str, entry: CachedEntry) -> None:
        """Overwrite the entry for ``endpoint``.

        Returns only after the store has persisted the entry.
        """
        self.store.write(endpoint, entry.to_dict())
        get_global_logger().debug(
            "CACHE", f"Stored response for {endpoint} (expires {entry.expires_at.isoformat()})"
        )
