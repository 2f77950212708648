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

"""Logging interface for deprecheck.

This module provides a configurable logging interface that library modules
can use for output without depending on the CLI. Check cycles mostly run on
background timer threads, so the logger is looked up globally rather than
threaded through every call.

The logger supports four output levels:
- Step: Always printed (for progress indicators in one-shot commands)
- Warning: Always printed to stderr (callback failures, unreadable cache)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure global logger:
        ```python
        from deprecheck.logging import get_logger, set_global_logger

        logger = get_logger(verbose=True, debug=False)
        set_global_logger(logger)
        ```

    Use in library code:
        ```python
        from deprecheck.logging import get_global_logger

        logger = get_global_logger()
        logger.verbose("CACHE", "Loaded cached response")
        logger.debug("FETCH", "GET https://example.com/state.json")
        ```

Note:
    The default logger is silent, so an embedding application sees no output
    unless it configures one. The CLI configures the global logger when
    commands are executed.
"""

from __future__ import annotations

import sys
import threading
from typing import Protocol


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning that should be visible regardless of verbosity.

        Args:
            prefix: Message prefix (e.g., "NOTIFY", "CACHE").
            message: Log message.
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "CHECK", "CACHE").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "FETCH", "SCHEDULE").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Default logger implementation that prints to stdout.

    Output from concurrent checker threads is serialised through a lock so
    lines never interleave.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
        """
        self._verbose = verbose or debug
        self._debug = debug
        self._lock = threading.Lock()

    def _emit(self, line: str, stream=None) -> None:
        with self._lock:
            print(line, file=stream or sys.stdout, flush=True)

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator."""
        self._emit(f"[{step}/{total}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        """Print a warning to stderr."""
        self._emit(f"[{prefix}] WARNING: {message}", sys.stderr)

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message (only when verbose mode is active)."""
        if self._verbose:
            self._emit(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message (only when debug mode is active)."""
        if self._debug:
            self._emit(f"[{prefix}] {message}")


class SilentLogger:
    """Logger that suppresses all output.

    Used as the global default so embedding applications stay quiet.
    """

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Get a logger instance with specified verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).

    Returns:
        A logger instance configured with the specified verbosity.
    """
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Get the global logger instance.

    Returns:
        The current global logger instance.
    """
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        Running checkers pick the new logger up on their next check cycle.
    """
    global _global_logger
    _global_logger = logger
