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

"""Process-wide registry of running checkers.

A started checker re-arms itself forever. The registry holds the strong
reference that keeps it alive, so callers do not need to, and it is the
one place that knows which endpoints are being checked.

Example:
    ```python
    from deprecheck.registry import get_default_registry

    for checker in get_default_registry().running():
        print(checker.endpoint, checker.state)
    ```
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from deprecheck.exceptions import ConfigError

if TYPE_CHECKING:
    from deprecheck.checker import DeprecationChecker

__all__ = ["CheckerRegistry", "get_default_registry"]


class CheckerRegistry:
    """Running checkers keyed by endpoint."""

    def __init__(self) -> None:
        self._checkers: dict[str, DeprecationChecker] = {}
        self._lock = threading.Lock()

    def register(self, checker: DeprecationChecker) -> None:
        """Record ``checker`` as running.

        Registering the same checker again is a no-op.

        Raises:
            ConfigError: If a different checker is already running for the
                same endpoint. Both would race on one cache entry.
        """
        with self._lock:
            existing = self._checkers.get(checker.endpoint)
            if existing is not None and existing is not checker:
                raise ConfigError(
                    f"A checker for {checker.endpoint!r} is already running"
                )
            self._checkers[checker.endpoint] = checker

    def get(self, endpoint: str) -> DeprecationChecker | None:
        with self._lock:
            return self._checkers.get(endpoint)

    def running(self) -> list[DeprecationChecker]:
        with self._lock:
            return list(self._checkers.values())

    def __contains__(self, endpoint: object) -> bool:
        with self._lock:
            return endpoint in self._checkers

    def __len__(self) -> int:
        with self._lock:
            return len(self._checkers)


_default_registry = CheckerRegistry()


def get_default_registry() -> CheckerRegistry:
    """Return the registry used when a checker is not given one."""
    return _default_registry
