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

"""Cached response entries and the freshness test."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

__all__ = ["CachedEntry", "is_fresh"]


@dataclass(frozen=True)
class CachedEntry:
    """A successfully parsed response and the window it is valid for.

    Attributes:
        response: Parsed JSON value returned by the endpoint.
        fetched_at: When the response was fetched (timezone-aware UTC).
        expires_at: ``fetched_at + ttl``, using the TTL in effect at fetch
            time. Later TTL changes do not move it.
    """

    response: Any
    fetched_at: datetime
    expires_at: datetime

    @classmethod
    def create(cls, response: Any, fetched_at: datetime, ttl: timedelta) -> CachedEntry:
        """Build an entry that expires ``ttl`` after ``fetched_at``."""
        return cls(response=response, fetched_at=fetched_at, expires_at=fetched_at + ttl)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict with ISO 8601 timestamps."""
        return {
            "response": self.response,
            "fetched_at": self.fetched_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CachedEntry:
        """Rebuild an entry from to_dict() output.

        Raises:
            KeyError: If a field is missing.
            ValueError: If a timestamp is not ISO 8601.
        """
        return cls(
            response=data["response"],
            fetched_at=datetime.fromisoformat(data["fetched_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )

    def remaining(self, now: datetime) -> timedelta:
        """Time left until expiry (negative once expired)."""
        return self.expires_at - now


def is_fresh(entry: CachedEntry | None, now: datetime) -> bool:
    """Return True if ``entry`` exists and ``now`` is before its expiry."""
    return entry is not None and now < entry.expires_at
