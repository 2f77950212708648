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

"""Key-path lookup into parsed JSON responses.

A key path is a dot-separated list of mapping keys, for example
``"deprecation_info.state"`` for the response::

    {"deprecation_info": {"state": "deprecated"}}

Every segment except the last must name a nested mapping and the last must
name a string. There are no wildcards and no array indexes; ``"items.0"``
looks up the key ``"0"`` in a mapping, not the first list element.

Anything that does not resolve cleanly returns the NOT_FOUND sentinel
instead of raising, so a bad key path degrades to an unknown state.

Example:
    ```python
    from deprecheck.keypath import NOT_FOUND, resolve_key_path

    value = {"info": {"state": "dep"}}
    resolve_key_path(value, "info.state")    # "dep"
    resolve_key_path(value, "info.missing") is NOT_FOUND  # True
    ```
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

__all__ = ["NOT_FOUND", "NotFound", "resolve_key_path", "split_key_path"]


class NotFound:
    """Type of the NOT_FOUND sentinel. Falsy, and equal only to itself."""

    _instance: NotFound | None = None

    def __new__(cls) -> NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND: Final = NotFound()


def split_key_path(path: str) -> list[str]:
    """Split a key path into its segments.

    Returns an empty list for an empty path or one with an empty segment
    (``"a..b"``, ``".a"``), since neither can ever resolve.
    """
    if not path:
        return []
    segments = path.split(".")
    if any(not segment for segment in segments):
        return []
    return segments


def resolve_key_path(value: Any, path: str | None) -> str | NotFound:
    """Resolve a dot-separated key path to a string.

    Args:
        value: Parsed JSON value (usually a dict).
        path: Dot-separated key path.

    Returns:
        The string stored at ``path``, or NOT_FOUND when a segment is
        missing, an intermediate value is not a mapping, or the final value
        is not a string.
    """
    segments = split_key_path(path or "")
    if not segments:
        return NOT_FOUND

    current = value
    for segment in segments:
        if not isinstance(current, Mapping) or segment not in current:
            return NOT_FOUND
        current = current[segment]

    if not isinstance(current, str):
        return NOT_FOUND
    return current
