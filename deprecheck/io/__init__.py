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

"""Network I/O for deprecheck.

Public API:

- HttpFetcher: requests-based fetch of the state endpoint
- Fetcher, FetchResult: the transport protocol and its result type
- parse_json: decode a response body into a JSON value
"""

from .fetch import FetchResult, Fetcher, HttpFetcher, expand_headers, parse_json

__all__ = ["FetchResult", "Fetcher", "HttpFetcher", "expand_headers", "parse_json"]
