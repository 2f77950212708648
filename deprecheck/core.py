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

"""Core orchestration for deprecheck.

High-level functions that tie configuration loading, the response cache and
the checker together for the CLI and for scripts that want a one-shot check.

Design Principles:

- Each function has a single, clear responsibility
- Functions return structured data (dataclasses) for easy testing
- Error handling uses exceptions; the CLI layer formats them for display

Example:
    One-shot check from a config file:
        ```python
        from pathlib import Path
        from deprecheck.core import check_config

        result = check_config(Path("deprecation.yaml"))
        print(result.state, result.action)
        ```
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from deprecheck.cache import CachedEntry, ResponseCache
from deprecheck.checker import DeprecationChecker
from deprecheck.config import CheckerConfig, load_checker_config
from deprecheck.logging import get_global_logger
from deprecheck.registry import CheckerRegistry
from deprecheck.results import CheckResult

__all__ = ["create_checker", "check_config", "read_cached_entry"]


def _load(config_path: Path, cache_file: Path | None) -> CheckerConfig:
    config = load_checker_config(config_path)
    if cache_file is not None:
        config = replace(config, cache_file=cache_file.resolve())
    return config


def create_checker(
    config_path: Path,
    cache_file: Path | None = None,
    registry: CheckerRegistry | None = None,
) -> DeprecationChecker:
    """Build a checker from a config file.

    Args:
        config_path: Path to the YAML config file.
        cache_file: Overrides ``checker.cache_file`` from the config.
        registry: Registry the checker joins when it starts.

    Raises:
        ConfigError: If the config file is missing or invalid.
    """
    config = _load(config_path, cache_file)
    kwargs = {"registry": registry} if registry is not None else {}
    return DeprecationChecker.from_config(config, **kwargs)


def check_config(config_path: Path, cache_file: Path | None = None) -> CheckResult:
    """Run a single check cycle for a config file.

    Uses the cached response when it is still fresh, so running this from
    cron more often than the TTL does not hit the endpoint.

    Raises:
        ConfigError: If the config file is missing or invalid.
        CacheError: If a fetched response could not be persisted.
    """
    logger = get_global_logger()

    logger.step(1, 2, "Loading configuration...")
    checker = create_checker(config_path, cache_file)

    logger.step(2, 2, f"Checking {checker.endpoint}...")
    return checker.check_now()


def read_cached_entry(
    config_path: Path, cache_file: Path | None = None
) -> tuple[CheckerConfig, CachedEntry | None]:
    """Return the config and the entry currently cached for its endpoint.

    Never touches the network.
    """
    config = _load(config_path, cache_file)
    if config.cache_file is None:
        return config, None
    cache = ResponseCache.from_file(config.cache_file)
    return config, cache.get(config.endpoint)
