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

"""Periodic deprecation state checking.

DeprecationChecker checks a URL that returns JSON, finds a state string in
it, and maps that string to OK, DEPRECATED or END_OF_LIFE. Responses are
cached for a TTL (24 hours by default) and persisted, so restarting the
process does not cause an extra request while the cached response is
still fresh.

Check Cycle:

1. If the cached response is fresh, use it. No request is made.
2. Otherwise fetch the endpoint once.
   - Transport or parse failure: the cache is left alone, no callbacks
     fire, the state reads as UNKNOWN.
   - Success: the response replaces the cached entry and every
     response-update callback fires.
3. After a successful fetch, state-change callbacks fire if the state
   differs from the last state they were told about.
4. The next check is armed for when the cached entry expires, or
   immediately if there is no fresh entry.

State-change callbacks are not fired when the state only appears to change
because key_path or a state string was reconfigured, and they are not
fired on startup for a state that was already cached by an earlier run.
Do not rely on them for normal operation; read ``checker.state`` instead.

Example:
    ```python
    from deprecheck import DeprecationChecker, DeprecationState

    checker = DeprecationChecker("https://example.com/myapp/1.4.0/state.json")
    checker.key_path = "deprecation_info.state"
    checker.ok_string = "ok"
    checker.deprecated_string = "deprecated"
    checker.eol_string = "eol"

    def show_banner():
        if checker.state is DeprecationState.DEPRECATED:
            print(checker.response.get("message"))

    checker.on_state_change(show_banner)
    checker.begin_checking()
    ```

Note:
    Creating two checkers for the same endpoint is not supported; they
    would race on one cache entry. The process-wide registry refuses to
    start the second one.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
import threading
from typing import Any

from deprecheck.cache import CachedEntry, ResponseCache, is_fresh
from deprecheck.config import DEFAULT_TTL, CheckerConfig
from deprecheck.exceptions import NetworkError, ParseError
from deprecheck.io import Fetcher, HttpFetcher, parse_json
from deprecheck.keypath import NOT_FOUND, resolve_key_path
from deprecheck.logging import get_global_logger
from deprecheck.notify import Callback, NotificationDispatcher
from deprecheck.registry import CheckerRegistry, get_default_registry
from deprecheck.results import CheckAction, CheckResult, FailureKind
from deprecheck.scheduler import Scheduler, UseCached, decide_action, next_check_delay
from deprecheck.states import DeprecationState, derive_state

__all__ = ["DeprecationChecker"]

Clock = Callable[[], datetime]

# Stands in for "nothing notified yet"; differs from every DeprecationState.
_NEVER_NOTIFIED = object()


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class _Settings:
    """Configuration captured once so a cycle never sees a half-applied change."""

    ttl: timedelta
    key_path: str
    ok_string: str | None
    deprecated_string: str | None
    eol_string: str | None

    def derive(self, response: Any) -> DeprecationState:
        return derive_state(
            response,
            self.key_path,
            self.ok_string,
            self.deprecated_string,
            self.eol_string,
        )

    def unknown_reason(self, response: Any) -> FailureKind:
        if resolve_key_path(response, self.key_path) is NOT_FOUND:
            return FailureKind.KEY_PATH_MISS
        return FailureKind.STATE_MISMATCH


class DeprecationChecker:
    """Checks and periodically re-checks one endpoint for its state.

    Args:
        endpoint: URL returning the JSON state document. Fixed for the
            lifetime of the checker.
        key_path: Dot-separated path to the state string.
        ok_string: Value meaning OK.
        deprecated_string: Value meaning DEPRECATED.
        eol_string: Value meaning END_OF_LIFE.
        ttl: How long fetched responses are cached.
        minimum_check_interval: Lower bound, in seconds, on the delay
            before the next scheduled check.
        cache: Response cache. Defaults to an in-memory cache.
        fetcher: Transport. Defaults to HttpFetcher.
        dispatcher: Callback registries. Defaults to delivery on the shared
            callback thread.
        scheduler: Arms deferred checks. Defaults to daemon timer threads.
        registry: Keeps running checkers alive. Defaults to the
            process-wide registry.
        clock: Returns the current timezone-aware time.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        key_path: str = "",
        ok_string: str | None = None,
        deprecated_string: str | None = None,
        eol_string: str | None = None,
        ttl: timedelta = DEFAULT_TTL,
        minimum_check_interval: float = 0.0,
        cache: ResponseCache | None = None,
        fetcher: Fetcher | None = None,
        dispatcher: NotificationDispatcher | None = None,
        scheduler: Scheduler | None = None,
        registry: CheckerRegistry | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._key_path = key_path
        self._ok_string = ok_string
        self._deprecated_string = deprecated_string
        self._eol_string = eol_string
        self._ttl = ttl
        self.minimum_check_interval = minimum_check_interval

        self._cache = cache if cache is not None else ResponseCache()
        self._fetcher = fetcher if fetcher is not None else HttpFetcher()
        self._dispatcher = dispatcher if dispatcher is not None else NotificationDispatcher()
        self._scheduler = scheduler if scheduler is not None else Scheduler()
        self._registry = registry if registry is not None else get_default_registry()
        self._clock = clock or _utcnow

        # _lock guards settings and _started and is never held across I/O.
        # _cycle_lock serialises cycles and guards _last_notified/_primed.
        self._lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._last_notified: Any = _NEVER_NOTIFIED
        self._primed = False
        self._started = False

    @classmethod
    def from_config(cls, config: CheckerConfig, **kwargs: Any) -> DeprecationChecker:
        """Build a checker from a CheckerConfig.

        The cache and fetcher are derived from the config unless passed in
        ``kwargs``, which are forwarded to the constructor.
        """
        if "cache" not in kwargs and config.cache_file is not None:
            kwargs["cache"] = ResponseCache.from_file(config.cache_file)
        if "fetcher" not in kwargs:
            kwargs["fetcher"] = HttpFetcher(timeout=config.timeout, headers=config.headers)
        return cls(
            config.endpoint,
            key_path=config.key_path,
            ok_string=config.ok_string,
            deprecated_string=config.deprecated_string,
            eol_string=config.eol_string,
            ttl=config.ttl,
            minimum_check_interval=config.minimum_check_interval,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"DeprecationChecker({self._endpoint!r})"

    # -------------------------------
    # Configuration
    # -------------------------------

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def ttl(self) -> timedelta:
        """TTL applied to the next successful fetch.

        Changing it does not move the expiry of the entry already cached.
        """
        with self._lock:
            return self._ttl

    @ttl.setter
    def ttl(self, value: timedelta) -> None:
        with self._lock:
            self._ttl = value

    @property
    def key_path(self) -> str:
        with self._lock:
            return self._key_path

    @key_path.setter
    def key_path(self, value: str) -> None:
        with self._lock:
            self._key_path = value

    @property
    def ok_string(self) -> str | None:
        with self._lock:
            return self._ok_string

    @ok_string.setter
    def ok_string(self, value: str | None) -> None:
        with self._lock:
            self._ok_string = value

    @property
    def deprecated_string(self) -> str | None:
        with self._lock:
            return self._deprecated_string

    @deprecated_string.setter
    def deprecated_string(self, value: str | None) -> None:
        with self._lock:
            self._deprecated_string = value

    @property
    def eol_string(self) -> str | None:
        with self._lock:
            return self._eol_string

    @eol_string.setter
    def eol_string(self, value: str | None) -> None:
        with self._lock:
            self._eol_string = value

    # -------------------------------
    # Reading state
    # -------------------------------

    @property
    def cached_entry(self) -> CachedEntry | None:
        """The entry in the cache for this endpoint, fresh or not."""
        return self._cache.get(self._endpoint)

    @property
    def response(self) -> Any:
        """The cached response, or None when absent or expired.

        Useful for reading auxiliary fields such as a message or an
        upgrade link.
        """
        entry = self.cached_entry
        if not is_fresh(entry, self._clock()):
            return None
        return entry.response

    @property
    def state(self) -> DeprecationState:
        """State derived from the cached response and current settings."""
        return self._derive(self.response)

    @property
    def is_checking(self) -> bool:
        with self._lock:
            return self._started

    def _settings(self) -> _Settings:
        with self._lock:
            return _Settings(
                ttl=self._ttl,
                key_path=self._key_path,
                ok_string=self._ok_string,
                deprecated_string=self._deprecated_string,
                eol_string=self._eol_string,
            )

    def _derive(self, response: Any) -> DeprecationState:
        return self._settings().derive(response)

    # -------------------------------
    # Callbacks
    # -------------------------------

    def on_state_change(self, callback: Callback) -> Callable[[], None]:
        """Run ``callback`` on the callback thread when the state changes.

        Returns:
            A function that unregisters the callback.
        """
        return self._dispatcher.on_state_change(callback)

    def on_response_update(self, callback: Callback) -> Callable[[], None]:
        """Run ``callback`` on the callback thread after every successful fetch.

        Returns:
            A function that unregisters the callback.
        """
        return self._dispatcher.on_response_update(callback)

    # -------------------------------
    # Checking
    # -------------------------------

    def begin_checking(self) -> None:
        """Start checking in the background.

        The first call registers the checker in the registry and arms an
        immediate first check. Later calls do nothing.

        Failures inside background checks, including a cache file that
        cannot be written, are reported through the global logger only.
        It is silent unless ``set_global_logger()`` installs another one.

        Raises:
            ConfigError: If another checker is already running for this
                endpoint.
        """
        with self._lock:
            if self._started:
                return
            self._registry.register(self)
            self._started = True
        get_global_logger().verbose("CHECK", f"Started checking {self._endpoint}")
        self._scheduler.arm(0, self._scheduled_check)

    def _prime_last_notified(self, settings: _Settings) -> None:
        # An entry left by an earlier run, fresh or stale, is the baseline
        # for change detection.
        self._primed = True
        entry = self._cache.get(self._endpoint)
        if entry is not None:
            self._last_notified = settings.derive(entry.response)
            get_global_logger().debug(
                "CHECK", f"Primed last notified state: {self._last_notified.value}"
            )

    def check_now(self) -> CheckResult:
        """Run one check cycle on the calling thread.

        Transport and parse failures are reported on the result, never
        raised. Reading ``state`` or the settings from other threads does
        not wait for the request.

        Raises:
            CacheError: If a fetched response could not be persisted.
        """
        with self._cycle_lock:
            return self._run_cycle()

    def _scheduled_check(self) -> None:
        logger = get_global_logger()
        try:
            self.check_now()
        except Exception as err:
            logger.warning("CHECK", f"Check of {self._endpoint} failed: {err!r}")
        finally:
            self._rearm()

    def _rearm(self) -> None:
        try:
            entry = self._cache.get(self._endpoint)
        except Exception as err:
            get_global_logger().warning("CACHE", f"Cannot read cache: {err!r}")
            entry = None
        delay = next_check_delay(entry, self._clock(), self.minimum_check_interval)
        self._scheduler.arm(delay, self._scheduled_check)

    def _run_cycle(self) -> CheckResult:
        logger = get_global_logger()
        settings = self._settings()
        if not self._primed:
            self._prime_last_notified(settings)
        now = self._clock()
        action = decide_action(self._cache, self._endpoint, now)

        if isinstance(action, UseCached):
            entry = action.entry
            state = settings.derive(entry.response)
            # Reconfiguration may have moved the state; never notify for it.
            self._last_notified = state
            logger.verbose(
                "CHECK",
                f"Using cached response for {self._endpoint} "
                f"(expires {entry.expires_at.isoformat()}): {state.value}",
            )
            return CheckResult(
                endpoint=self._endpoint,
                action=CheckAction.CACHED,
                state=state,
                failure=settings.unknown_reason(entry.response)
                if state is DeprecationState.UNKNOWN
                else None,
                expires_at=entry.expires_at,
            )

        stale_expiry = action.stale_entry.expires_at if action.stale_entry else None
        logger.verbose("CHECK", f"Fetching {self._endpoint}")
        try:
            fetched = self._fetcher.fetch(self._endpoint)
            if not fetched.success:
                raise NetworkError(fetched.error or "request failed")
        except NetworkError as err:
            logger.verbose("CHECK", f"Fetch failed, keeping cache: {err}")
            return CheckResult(
                endpoint=self._endpoint,
                action=CheckAction.FAILED,
                state=DeprecationState.UNKNOWN,
                failure=FailureKind.TRANSPORT,
                error=str(err),
                expires_at=stale_expiry,
            )

        try:
            parsed = parse_json(fetched.body)
        except ParseError as err:
            logger.verbose("CHECK", f"Unparsable response, keeping cache: {err}")
            return CheckResult(
                endpoint=self._endpoint,
                action=CheckAction.FAILED,
                state=DeprecationState.UNKNOWN,
                failure=FailureKind.PARSE,
                error=str(err),
                expires_at=stale_expiry,
            )

        entry = CachedEntry.create(parsed, now, settings.ttl)
        self._cache.put(self._endpoint, entry)
        self._dispatcher.fire_response_update()

        state = settings.derive(parsed)
        changed = state is not self._last_notified
        if changed:
            previous = getattr(self._last_notified, "value", "none")
            logger.verbose("CHECK", f"State changed: {previous} -> {state.value}")
            self._last_notified = state
            self._dispatcher.fire_state_change()
        else:
            logger.verbose("CHECK", f"State unchanged: {state.value}")

        return CheckResult(
            endpoint=self._endpoint,
            action=CheckAction.FETCHED,
            state=state,
            failure=settings.unknown_reason(parsed)
            if state is DeprecationState.UNKNOWN
            else None,
            state_changed=changed,
            expires_at=entry.expires_at,
        )
