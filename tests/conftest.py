"""
Pytest configuration and shared fixtures for deprecheck tests.

This module provides fakes for the checker's collaborators (clock, timers,
transport, callback executor) so check cycles can be driven step by step.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor, Future
from datetime import UTC, datetime, timedelta
import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from deprecheck.cache import MemoryStore, ResponseCache
from deprecheck.checker import DeprecationChecker
from deprecheck.io import FetchResult
from deprecheck.notify import NotificationDispatcher
from deprecheck.registry import CheckerRegistry
from deprecheck.scheduler import Scheduler

ENDPOINT = "https://example.com/myapp/1.4.0/state.json"
T0 = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True


class TimerRecorder:
    """Timer factory that records timers instead of starting threads."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]

    def fire_last(self) -> None:
        """Run the most recently armed callback, as its timer thread would."""
        self.last.callback()


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs) -> Future:
        self.submitted += 1
        future: Future = Future()
        future.set_result(fn(*args, **kwargs))
        return future


class StubFetcher:
    """Fetcher returning queued results and recording every call."""

    def __init__(self, *results: FetchResult) -> None:
        self.results = list(results)
        self.calls: list[str] = []

    def queue_json(self, payload: Any) -> None:
        self.results.append(FetchResult(body=json.dumps(payload).encode(), success=True, status_code=200))

    def queue_failure(self, error: str = "connection refused") -> None:
        self.results.append(FetchResult(body=b"", success=False, error=error))

    def queue_body(self, body: bytes) -> None:
        self.results.append(FetchResult(body=body, success=True, status_code=200))

    def fetch(self, endpoint: str) -> FetchResult:
        self.calls.append(endpoint)
        return self.results.pop(0)


class Counter:
    """Zero-argument callback that counts its calls."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> None:
        self.count += 1


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> TimerRecorder:
    return TimerRecorder()


@pytest.fixture
def executor() -> InlineExecutor:
    return InlineExecutor()


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(store: MemoryStore) -> ResponseCache:
    return ResponseCache(store)


@pytest.fixture
def make_checker(
    cache: ResponseCache,
    fetcher: StubFetcher,
    timers: TimerRecorder,
    executor: InlineExecutor,
    clock: FakeClock,
):
    """
    Factory fixture for checkers wired to the fakes above.

    Usage:
        checker = make_checker(key_path="info.state", ok_string="ok")
    """

    def _create(**kwargs: Any) -> DeprecationChecker:
        options: dict[str, Any] = {
            "key_path": "info.state",
            "ok_string": "ok",
            "deprecated_string": "dep",
            "eol_string": "eol",
            "ttl": timedelta(hours=24),
            "cache": cache,
            "fetcher": fetcher,
            "dispatcher": NotificationDispatcher(executor),
            "scheduler": Scheduler(timers),
            "registry": CheckerRegistry(),
            "clock": clock,
        }
        options.update(kwargs)
        return DeprecationChecker(ENDPOINT, **options)

    return _create


@pytest.fixture
def sample_config_data() -> dict[str, Any]:
    """Provide a complete checker configuration."""
    return {
        "apiVersion": "deprecheck/v1",
        "checker": {
            "endpoint": ENDPOINT,
            "key_path": "info.state",
            "states": {"ok": "ok", "deprecated": "dep", "end_of_life": "eol"},
            "ttl": "12h",
            "timeout": 10,
            "cache_file": "state/cache.json",
        },
    }


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create
