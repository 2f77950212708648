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

"""Delivery of state-change and response-update notifications.

Callbacks take no arguments. A callback that needs the new state reads it
from the checker (``checker.state``, ``checker.response``) when it runs.

All callbacks run on one designated callback thread. By default this is a
process-wide single-worker thread pool named ``deprecheck-callbacks``;
pass another executor to deliver somewhere else, for example an adapter
that posts onto a GUI event loop. Firing a notification never waits for
the callbacks to finish.

Example:
    ```python
    dispatcher = NotificationDispatcher()
    unsubscribe = dispatcher.on_state_change(lambda: print("changed"))
    dispatcher.fire_state_change()
    dispatcher.drain()
    unsubscribe()
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
import threading

from deprecheck.logging import get_global_logger

__all__ = ["Callback", "NotificationDispatcher", "get_callback_executor"]

Callback = Callable[[], None]

_callback_executor: Executor | None = None
_callback_executor_lock = threading.Lock()


def get_callback_executor() -> Executor:
    """Return the shared single-thread executor used for callbacks."""
    global _callback_executor
    with _callback_executor_lock:
        if _callback_executor is None:
            _callback_executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="deprecheck-callbacks"
            )
        return _callback_executor


class NotificationDispatcher:
    """Registries of state-change and response-update callbacks.

    Args:
        executor: Where callbacks run. Must execute submitted work one item
            at a time, in submission order.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._executor = executor
        self._state_change: list[Callback] = []
        self._response_update: list[Callback] = []
        self._lock = threading.Lock()

    @property
    def executor(self) -> Executor:
        return self._executor or get_callback_executor()

    def on_state_change(self, callback: Callback) -> Callable[[], None]:
        """Register a callback for state changes.

        Returns:
            A function that unregisters the callback. Calling it more than
            once is harmless.
        """
        return self._register(self._state_change, callback)

    def on_response_update(self, callback: Callback) -> Callable[[], None]:
        """Register a callback for every successful fetch.

        Returns:
            A function that unregisters the callback.
        """
        return self._register(self._response_update, callback)

    def _register(
        self, registry: list[Callback], callback: Callback
    ) -> Callable[[], None]:
        with self._lock:
            registry.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in registry:
                    registry.remove(callback)

        return unsubscribe

    def fire_state_change(self) -> int:
        """Queue every state-change callback. Returns how many were queued."""
        return self._fire("state change", self._state_change)

    def fire_response_update(self) -> int:
        """Queue every response-update callback. Returns how many were queued."""
        return self._fire("response update", self._response_update)

    def _fire(self, kind: str, registry: list[Callback]) -> int:
        with self._lock:
            callbacks = list(registry)
        get_global_logger().verbose(
            "NOTIFY", f"Dispatching {kind} to {len(callbacks)} callback(s)"
        )
        for callback in callbacks:
            self.executor.submit(self._invoke, kind, callback)
        return len(callbacks)

    @staticmethod
    def _invoke(kind: str, callback: Callback) -> None:
        try:
            callback()
        except Exception as err:
            get_global_logger().warning(
                "NOTIFY", f"{kind} callback {callback!r} raised {err!r}"
            )

    def drain(self, timeout: float | None = None) -> None:
        """Wait until every callback queued so far has run.

        Raises:
            TimeoutError: If the callback thread is still busy after
                ``timeout`` seconds.
        """
        self.executor.submit(lambda: None).result(timeout=timeout)
