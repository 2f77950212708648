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

"""Response caching for deprecheck.

This package stores the last successful response from each state endpoint
together with when it was fetched and when it expires, so that:

- No request is made while a cached response is still fresh
- The cached state survives process restarts
- Auxiliary fields (messages, upgrade links) stay readable between checks

Public API:

- ResponseCache: get/put cached entries keyed by endpoint
- CachedEntry: a response plus its fetched_at/expires_at timestamps
- is_fresh: the freshness test used by the scheduler
- JsonFileStore, MemoryStore: backing stores
"""

from .entry import CachedEntry, is_fresh
from .response_cache import ResponseCache
from .store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "CachedEntry",
    "is_fresh",
    "ResponseCache",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
]
