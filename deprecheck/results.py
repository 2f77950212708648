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

"""Public API return types for deprecheck.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    ```python
    result = checker.check_now()
    print(result.action, result.state)
    if result.failure is not None:
        print(f"Check failed: {result.failure.value} ({result.error})")
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from deprecheck.states import DeprecationState


class CheckAction(Enum):
    """What a check cycle did."""

    CACHED = "cached"
    FETCHED = "fetched"
    FAILED = "failed"


class FailureKind(Enum):
    """Why a check cycle ended in DeprecationState.UNKNOWN.

    TRANSPORT and PARSE leave the cache untouched. KEY_PATH_MISS and
    STATE_MISMATCH happen after a successful fetch, so the new response is
    cached even though it maps to UNKNOWN.
    """

    TRANSPORT = "transport"
    PARSE = "parse"
    KEY_PATH_MISS = "key_path_miss"
    STATE_MISMATCH = "state_mismatch"


@dataclass(frozen=True)
class CheckResult:
    """Result of one check cycle.

    Attributes:
        endpoint: Endpoint that was checked.
        action: Whether the cache was used, a fetch succeeded, or it failed.
        state: State derived at the end of the cycle.
        failure: Why the state is UNKNOWN, if it is and the reason is known.
        error: Human-readable detail for transport and parse failures.
        state_changed: True if the state-change notification was fired.
        expires_at: Expiry of the entry in the cache after the cycle.
    """

    endpoint: str
    action: CheckAction
    state: DeprecationState
    failure: FailureKind | None = None
    error: str | None = None
    state_changed: bool = False
    expires_at: datetime | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a checker configuration file.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        config_path: String path to the validated file.
    """

    status: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    config_path: str = ""
