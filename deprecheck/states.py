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

"""Deprecation states and the mapping from response strings to states.

The state is never stored. It is recomputed on every read from the cached
response, the configured key path and the three reference strings, so
changing any of those is reflected immediately without a new fetch.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from deprecheck.keypath import NotFound, resolve_key_path

__all__ = ["DeprecationState", "map_state", "derive_state"]


class DeprecationState(Enum):
    """Lifecycle state of the checked component."""

    UNKNOWN = "unknown"
    OK = "ok"
    DEPRECATED = "deprecated"
    END_OF_LIFE = "end_of_life"


def map_state(
    resolved: str | NotFound | None,
    ok_string: str | None,
    deprecated_string: str | None,
    eol_string: str | None,
) -> DeprecationState:
    """Map a resolved state string onto a DeprecationState.

    Comparison is exact and case-sensitive, in the order OK, DEPRECATED,
    END_OF_LIFE; the first match wins. Reference strings left as None never
    match.

    Args:
        resolved: String found at the key path, or NOT_FOUND.
        ok_string: Response value meaning OK.
        deprecated_string: Response value meaning DEPRECATED.
        eol_string: Response value meaning END_OF_LIFE.

    Returns:
        The matching state, or DeprecationState.UNKNOWN.

    Example:
        ```python
        map_state("dep", "ok", "dep", "eol")   # DeprecationState.DEPRECATED
        map_state("OK", "ok", "dep", "eol")    # DeprecationState.UNKNOWN
        ```
    """
    if not isinstance(resolved, str):
        return DeprecationState.UNKNOWN

    candidates = (
        (ok_string, DeprecationState.OK),
        (deprecated_string, DeprecationState.DEPRECATED),
        (eol_string, DeprecationState.END_OF_LIFE),
    )
    for reference, state in candidates:
        if reference is not None and resolved == reference:
            return state
    return DeprecationState.UNKNOWN


def derive_state(
    response: Any,
    key_path: str | None,
    ok_string: str | None,
    deprecated_string: str | None,
    eol_string: str | None,
) -> DeprecationState:
    """Resolve ``key_path`` in ``response`` and map the result to a state."""
    if response is None:
        return DeprecationState.UNKNOWN
    resolved = resolve_key_path(response, key_path)
    return map_state(resolved, ok_string, deprecated_string, eol_string)
