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

"""Deciding when to fetch and arranging the next check.

Two pure decisions and one side effect live here:

- decide_action: use the cached response or fetch now
- next_check_delay: how long until the cached response expires
- Scheduler.arm: run a callback once after a delay on a timer thread

A check that finds nothing fresh in the cache is re-armed with a zero
delay. It still runs on a new timer thread, never inline, so a checker that
keeps failing does not grow the call stack.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
import threading
from typing import Protocol

from deprecheck.cache import CachedEntry, ResponseCache, is_fresh
from deprecheck.logging import get_global_logger

__all__ = [
    "UseCached",
    "FetchNow",
    "decide_action",
    "next_check_delay",
    "Scheduler",
]


@dataclass(frozen=True)
class UseCached:
    """The cached entry is fresh; no request is needed."""

    entry: CachedEntry


@dataclass(frozen=True)
class FetchNow:
    """The cached entry is stale or absent; fetch the endpoint."""

    stale_entry: CachedEntry | None = None


def decide_action(
    cache: ResponseCache, endpoint: str, now: datetime
) -> UseCached | FetchNow:
    """Choose between the cached response and a new fetch."""
    entry = cache.get(endpoint)
    if is_fresh(entry, now):
        return UseCached(entry)
    return FetchNow(entry)


def next_check_delay(
    entry: CachedEntry | None, now: datetime, minimum: float = 0.0
) -> float:
    """Seconds until the next check should run.

    Args:
        entry: Entry currently in the cache, or None.
        now: Current time.
        minimum: Lower bound for the delay, in seconds.

    Returns:
        ``max(minimum, expires_at - now)`` in seconds, or ``minimum`` when
        there is no entry or it has already expired.
    """
    if entry is None:
        return max(0.0, minimum)
    remaining = entry.remaining(now).total_seconds()
    return max(0.0, minimum, remaining)


class Timer(Protocol):
    """The subset of threading.Timer the scheduler relies on."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


def _thread_timer(delay: float, callback: Callable[[], None]) -> Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.name = "deprecheck-check"
    return timer


class Scheduler:
    """Keeps at most one deferred check armed.

    Args:
        timer_factory: Builds a startable, cancellable timer for
            ``(delay, callback)``. Defaults to a daemon threading.Timer.
    """

    def __init__(self, timer_factory: TimerFactory | None = None) -> None:
        self._timer_factory = timer_factory or _thread_timer
        self._pending: Timer | None = None
        self._lock = threading.Lock()

    def arm(self, delay: float, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` to run once after ``delay`` seconds.

        Replaces any invocation still pending.
        """
        delay = max(0.0, delay)
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._pending = self._timer_factory(delay, callback)
            self._pending.start()
        get_global_logger().debug("SCHEDULE", f"Next check in {delay:.1f}s")

    @property
    def pending(self) -> bool:
        """True once a deferred check has been armed."""
        return self._pending is not None
