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

"""Checker configuration validation.

Checks a config file for problems without making network calls, for quick
feedback while writing a config and for CI pre-checks.

Validation Checks:

- YAML syntax is valid and the top level is a mapping
- apiVersion is supported
- checker.endpoint is an http(s) URL
- key_path, state strings, ttl, timeout and headers have the right types

Warnings (the config still loads):

- key_path is empty or has empty segments, so it can never resolve
- no state strings are configured
- two states share the same string, so the later one can never match

Example:
    ```python
    from pathlib import Path
    from deprecheck.validation import validate_config

    result = validate_config(Path("deprecation.yaml"))
    if result.status == "valid":
        print("Config is valid")
    else:
        for error in result.errors:
            print(f"Error: {error}")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from deprecheck.config.loader import (
    DEFAULT_CONFIG,
    SUPPORTED_API_VERSIONS,
    _deep_merge_dicts,
    parse_duration,
)
from deprecheck.exceptions import ConfigError
from deprecheck.keypath import split_key_path
from deprecheck.logging import get_global_logger
from deprecheck.results import ValidationResult

__all__ = ["validate_config"]


def _result(config_path: Path, errors: list[str], warnings: list[str]) -> ValidationResult:
    return ValidationResult(
        status="invalid" if errors else "valid",
        errors=errors,
        warnings=warnings,
        config_path=str(config_path),
    )


def _validate_checker(checker: dict[str, Any], errors: list[str], warnings: list[str]) -> None:
    endpoint = checker.get("endpoint")
    if endpoint is None:
        errors.append("Missing required field: checker.endpoint")
    elif not isinstance(endpoint, str) or not endpoint.strip():
        errors.append("checker.endpoint must be a non-empty string")
    else:
        parsed = urlparse(endpoint.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"checker.endpoint must be an http(s) URL: {endpoint!r}")

    key_path = checker.get("key_path")
    if key_path is not None and not isinstance(key_path, str):
        errors.append("checker.key_path must be a string")
    elif not key_path:
        warnings.append("checker.key_path is empty; the state will always be unknown")
    elif not split_key_path(key_path):
        warnings.append(
            f"checker.key_path {key_path!r} has an empty segment; "
            f"the state will always be unknown"
        )

    states = checker.get("states")
    if not isinstance(states, dict):
        errors.append("checker.states must be a mapping")
    else:
        configured: dict[str, str] = {}
        for name in ("ok", "deprecated", "end_of_life"):
            value = states.get(name)
            if value is None:
                continue
            if not isinstance(value, str):
                errors.append(f"checker.states.{name} must be a string")
                continue
            if value in configured:
                warnings.append(
                    f"checker.states.{name} duplicates checker.states."
                    f"{configured[value]} ({value!r}) and will never match"
                )
            else:
                configured[value] = name
        if all(states.get(n) is None for n in ("ok", "deprecated", "end_of_life")):
            warnings.append("No state strings configured; the state will always be unknown")
        unknown = set(states) - {"ok", "deprecated", "end_of_life"}
        for name in sorted(unknown):
            warnings.append(f"Unknown field ignored: checker.states.{name}")

    try:
        parse_duration(checker.get("ttl"))
    except ConfigError as err:
        errors.append(f"checker.ttl: {err}")

    for name in ("timeout", "minimum_check_interval"):
        value = checker.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            errors.append(f"checker.{name} must be a non-negative number")

    headers = checker.get("headers")
    if headers is not None and not isinstance(headers, dict):
        errors.append("checker.headers must be a mapping")

    cache_file = checker.get("cache_file")
    if cache_file is not None and not isinstance(cache_file, str):
        errors.append("checker.cache_file must be a string path")


def validate_config(config_path: Path) -> ValidationResult:
    """Validate a checker config file without making network calls.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Validation status, errors and warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []
    get_global_logger().verbose("VALIDATE", f"Validating config: {config_path}")

    if not config_path.exists():
        errors.append(f"Config file not found: {config_path}")
        return _result(config_path, errors, warnings)

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        errors.append(f"Invalid YAML syntax: {err}")
        return _result(config_path, errors, warnings)
    except OSError as err:
        errors.append(f"Failed to read config file: {err}")
        return _result(config_path, errors, warnings)

    if not isinstance(data, dict):
        errors.append("Top-level YAML must be a mapping")
        return _result(config_path, errors, warnings)

    if "apiVersion" not in data:
        errors.append("Missing required field: apiVersion")
    elif data["apiVersion"] not in SUPPORTED_API_VERSIONS:
        errors.append(
            f"Unsupported apiVersion: {data['apiVersion']!r}. "
            f"Supported: {', '.join(SUPPORTED_API_VERSIONS)}"
        )

    if not isinstance(data.get("checker"), dict):
        errors.append("Missing required section: checker")
        return _result(config_path, errors, warnings)

    merged = _deep_merge_dicts(DEFAULT_CONFIG, data)
    _validate_checker(merged["checker"], errors, warnings)

    return _result(config_path, errors, warnings)
