"""Configuration loading for deprecheck.

Public API:

- load_checker_config: Load a YAML checker config into a CheckerConfig
- CheckerConfig: Immutable checker settings
- parse_duration: Parse "24h"-style durations
"""

from .loader import (
    DEFAULT_TTL,
    CheckerConfig,
    build_checker_config,
    load_checker_config,
    load_raw_config,
    parse_duration,
)

__all__ = [
    "DEFAULT_TTL",
    "CheckerConfig",
    "build_checker_config",
    "load_checker_config",
    "load_raw_config",
    "parse_duration",
]
