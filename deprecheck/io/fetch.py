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

"""Fetching and parsing the state endpoint.

The check engine talks to the network through the Fetcher protocol so the
transport can be swapped out (tests, custom HTTP stacks). HttpFetcher is
the default and uses requests.

Behaviour of HttpFetcher:

- One attempt per call. There is no retry; the next scheduled check is the
  retry.
- Connection errors, timeouts and non-2xx responses all come back as
  ``FetchResult(success=False)`` rather than raising.
- ``Accept: application/json`` and a deprecheck User-Agent are always sent.
  Extra headers may reference environment variables as ``"${NAME}"``.

Example:
    ```python
    from deprecheck.io import HttpFetcher, parse_json

    result = HttpFetcher(timeout=10).fetch("https://example.com/state.json")
    if result.success:
        data = parse_json(result.body)
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from typing import Any, Protocol

import requests

from deprecheck import __version__
from deprecheck.exceptions import ParseError
from deprecheck.logging import get_global_logger

__all__ = ["FetchResult", "Fetcher", "HttpFetcher", "parse_json", "expand_headers"]

DEFAULT_TIMEOUT = 30


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a single fetch attempt.

    Attributes:
        body: Raw response body (empty on transport failure).
        success: True for a 2xx response.
        status_code: HTTP status, or None if no response was received.
        error: Description of the failure, if any.
    """

    body: bytes
    success: bool
    status_code: int | None = None
    error: str | None = None


class Fetcher(Protocol):
    """Protocol for the transport that retrieves the endpoint."""

    def fetch(self, endpoint: str) -> FetchResult:
        """Fetch ``endpoint`` once and report the outcome."""
        ...


def expand_headers(headers: dict[str, str]) -> dict[str, str]:
    """Expand ``"${NAME}"`` header values from the environment.

    Headers whose variable is unset are dropped.
    """
    expanded = {}
    for key, value in headers.items():
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            env_value = os.environ.get(env_var)
            if not env_value:
                get_global_logger().verbose(
                    "FETCH", f"Environment variable {env_var} not set, omitting {key}"
                )
            else:
                expanded[key] = env_value
        else:
            expanded[key] = str(value)
    return expanded


class HttpFetcher:
    """Fetcher backed by a requests.Session.

    Args:
        timeout: Per-request timeout in seconds.
        headers: Extra request headers.
        session: Session to use; one is created if omitted.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.headers = dict(headers or {})
        self.session = session or requests.Session()

    def fetch(self, endpoint: str) -> FetchResult:
        logger = get_global_logger()
        request_headers = {
            "User-Agent": f"deprecheck/{__version__}",
            "Accept": "application/json",
        }
        request_headers.update(expand_headers(self.headers))

        logger.debug("FETCH", f"GET {endpoint}")
        try:
            response = self.session.get(
                endpoint, headers=request_headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as err:
            logger.verbose("FETCH", f"Request to {endpoint} failed: {err}")
            return FetchResult(body=b"", success=False, error=str(err))

        if not response.ok:
            logger.verbose(
                "FETCH", f"{endpoint} returned {response.status_code} {response.reason}"
            )
            return FetchResult(
                body=response.content,
                success=False,
                status_code=response.status_code,
                error=f"{response.status_code} {response.reason}",
            )

        logger.debug("FETCH", f"{endpoint} returned {response.status_code}")
        return FetchResult(
            body=response.content, success=True, status_code=response.status_code
        )


def parse_json(body: bytes) -> Any:
    """Parse a response body as UTF-8 JSON.

    Raises:
        ParseError: If the body is not valid UTF-8 or not valid JSON.
    """
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise ParseError(
            f"Invalid JSON response. Response: {body[:200]!r}"
        ) from err
