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

"""Exception hierarchy for deprecheck.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- ConfigError: Configuration-related errors (YAML parse, missing fields,
  duplicate endpoints)
- NetworkError: Transport failures while fetching the state endpoint
- ParseError: Response bodies that are not valid JSON
- CacheError: Persistence failures in the response cache

All exceptions inherit from DeprecheckError, allowing users to catch all
deprecheck errors with a single except clause if needed.

Check cycles never let NetworkError or ParseError escape. They are recorded
on the returned CheckResult and collapse to DeprecationState.UNKNOWN.

Example:
    Catching configuration errors:
        ```python
        from pathlib import Path
        from deprecheck.config import load_checker_config
        from deprecheck.exceptions import ConfigError

        try:
            config = load_checker_config(Path("deprecation.yaml"))
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "DeprecheckError",
    "ConfigError",
    "NetworkError",
    "ParseError",
    "CacheError",
]


class DeprecheckError(Exception):
    """Base exception for all deprecheck errors."""

    pass


class ConfigError(DeprecheckError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Missing or invalid configuration fields
    - Starting a second checker for an endpoint that is already running
    """

    pass


class NetworkError(DeprecheckError):
    """Raised when the state endpoint cannot be fetched.

    Covers connection errors, timeouts and non-success HTTP responses.
    """

    pass


class ParseError(DeprecheckError):
    """Raised when a response body is not valid UTF-8 encoded JSON."""

    pass


class CacheError(DeprecheckError):
    """Raised when the persisted response cache cannot be read or written.

    A corrupted cache file is backed up and replaced; the error message
    names the backup location.
    """

    pass
