"""
Configuration loading for deprecheck.

A checker is described by a small YAML file. Built-in defaults are deep
merged underneath the file, so only the endpoint, key path and state
strings normally need to be written out.

File Format
-----------
    apiVersion: deprecheck/v1
    checker:
      endpoint: "https://example.com/myapp/1.4.0/state.json"
      key_path: "deprecation_info.state"
      states:
        ok: "ok"
        deprecated: "deprecated"
        end_of_life: "eol"
      ttl: 24h                       # seconds, or 30s / 15m / 24h / 7d
      timeout: 30                    # optional, transport timeout (seconds)
      minimum_check_interval: 0      # optional, floor for the re-check delay
      cache_file: state/deprecheck.json
      headers:                       # optional, values may be "${ENV_VAR}"
        X-Client: "myapp"

Merge Behavior
--------------
  - **Dicts**: Recursively merged (keys from the file override defaults)
  - **Lists/Scalars**: Replaced

Path Resolution
---------------
``checker.cache_file`` is resolved against the CONFIG FILE location when
relative, so config files are relocatable.

Error Handling
--------------
- ConfigError: missing file, YAML parse errors, empty file, missing or
  mistyped fields. All errors are chained with "from err".

Notes
-----
- An empty ``key_path`` is accepted; it simply never resolves, so the
  state stays UNKNOWN. ``deprecheck validate`` warns about it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
import re
from typing import Any

import yaml

from deprecheck.exceptions import ConfigError
from deprecheck.logging import get_global_logger

SUPPORTED_API_VERSIONS = ("deprecheck/v1",)

DEFAULT_TTL = timedelta(hours=24)

DEFAULT_CONFIG: dict[str, Any] = {
    "apiVersion": "deprecheck/v1",
    "checker": {
        "key_path": "",
        "states": {"ok": None, "deprecated": None, "end_of_life": None},
        "ttl": int(DEFAULT_TTL.total_seconds()),
        "timeout": 30,
        "minimum_check_interval": 0,
        "cache_file": "state/deprecheck.json",
        "headers": {},
    },
}

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class CheckerConfig:
    """Everything needed to build a DeprecationChecker.

    Attributes:
        endpoint: URL that returns the JSON state document.
        key_path: Dot-separated path to the state string.
        ok_string: Value meaning the component is fine.
        deprecated_string: Value meaning the component is deprecated.
        eol_string: Value meaning the component has reached end of life.
        ttl: How long a fetched response stays valid.
        timeout: Transport timeout in seconds.
        minimum_check_interval: Lower bound, in seconds, on the delay
            before the next check.
        cache_file: Where cached responses are persisted, or None for an
            in-memory cache.
        headers: Extra request headers.
    """

    endpoint: str
    key_path: str = ""
    ok_string: str | None = None
    deprecated_string: str | None = None
    eol_string: str | None = None
    ttl: timedelta = DEFAULT_TTL
    timeout: float = 30
    minimum_check_interval: float = 0
    cache_file: Path | None = None
    headers: dict[str, str] = field(default_factory=dict)


# -------------------------------
# Helpers
# -------------------------------


def parse_duration(value: Any) -> timedelta:
    """Parse a duration given as seconds or as ``<number><s|m|h|d>``.

    Raises:
        ConfigError: If the value is negative, zero-length text, or
            otherwise unparseable.
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        match = _DURATION_RE.match(value)
        if not match:
            raise ConfigError(
                f"Invalid duration: {value!r}. Use seconds or e.g. '30m', '24h', '7d'"
            )
        seconds = float(match.group(1)) * _DURATION_UNITS[match.group(2)]
    else:
        raise ConfigError(f"Invalid duration: {value!r}")

    if seconds < 0:
        raise ConfigError(f"Duration must not be negative: {value!r}")
    return timedelta(seconds=seconds)


def _load_yaml_file(p: Path) -> Any:
    """
    Load a YAML file and return the parsed Python object.

    Raises:
      ConfigError - missing file, invalid YAML, or empty file
    """
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def _optional_str(section: dict[str, Any], key: str, where: str) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{where}.{key} must be a string")
    return value


def _number(section: dict[str, Any], key: str) -> float:
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"checker.{key} must be a non-negative number")
    return float(value)


# -------------------------------
# Public API
# -------------------------------


def load_raw_config(config_path: Path) -> dict[str, Any]:
    """Load a config file and merge it over the built-in defaults.

    Raises:
        ConfigError: If the file is missing, unparseable, or not a mapping.
    """
    data = _load_yaml_file(config_path)
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping: {config_path}")
    return _deep_merge_dicts(DEFAULT_CONFIG, data)


def build_checker_config(
    merged: dict[str, Any], base_dir: Path | None = None
) -> CheckerConfig:
    """Turn a merged config mapping into a CheckerConfig.

    Args:
        merged: Output of load_raw_config(), or an equivalent dict.
        base_dir: Directory relative ``cache_file`` paths are resolved
            against. Defaults to the current directory.

    Raises:
        ConfigError: On missing or mistyped fields.
    """
    api_version = merged.get("apiVersion")
    if api_version not in SUPPORTED_API_VERSIONS:
        raise ConfigError(
            f"Unsupported apiVersion: {api_version!r}. "
            f"Supported: {', '.join(SUPPORTED_API_VERSIONS)}"
        )

    checker = merged.get("checker")
    if not isinstance(checker, dict):
        raise ConfigError("Missing required section: checker")

    endpoint = checker.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise ConfigError("Missing required field: checker.endpoint")

    key_path = checker.get("key_path") or ""
    if not isinstance(key_path, str):
        raise ConfigError("checker.key_path must be a string")

    states = checker.get("states") or {}
    if not isinstance(states, dict):
        raise ConfigError("checker.states must be a mapping")

    headers = checker.get("headers") or {}
    if not isinstance(headers, dict):
        raise ConfigError("checker.headers must be a mapping")

    cache_file = checker.get("cache_file")
    cache_path: Path | None = None
    if cache_file:
        cache_path = Path(cache_file).expanduser()
        if not cache_path.is_absolute():
            cache_path = ((base_dir or Path.cwd()) / cache_path).resolve()

    return CheckerConfig(
        endpoint=endpoint.strip(),
        key_path=key_path,
        ok_string=_optional_str(states, "ok", "checker.states"),
        deprecated_string=_optional_str(states, "deprecated", "checker.states"),
        eol_string=_optional_str(states, "end_of_life", "checker.states"),
        ttl=parse_duration(checker.get("ttl")),
        timeout=_number(checker, "timeout"),
        minimum_check_interval=_number(checker, "minimum_check_interval"),
        cache_file=cache_path,
        headers={str(k): str(v) for k, v in headers.items()},
    )


def load_checker_config(config_path: Path) -> CheckerConfig:
    """Load a checker configuration file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        The parsed configuration, with ``cache_file`` made absolute.

    Raises:
        ConfigError: If the file is missing, unparseable, or invalid.

    Example:
        ```python
        from pathlib import Path
        from deprecheck.config import load_checker_config

        config = load_checker_config(Path("deprecation.yaml"))
        print(config.endpoint, config.ttl)
        ```
    """
    config_path = config_path.resolve()
    logger = get_global_logger()
    logger.verbose("CONFIG", f"Loading config: {config_path}")

    merged = load_raw_config(config_path)
    config = build_checker_config(merged, base_dir=config_path.parent)

    logger.verbose("CONFIG", f"Endpoint: {config.endpoint}")
    logger.verbose("CONFIG", f"Key path: {config.key_path!r}")
    logger.debug("CONFIG", f"TTL: {config.ttl}, cache file: {config.cache_file}")
    return config
