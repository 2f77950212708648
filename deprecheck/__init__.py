"""
deprecheck - remote deprecation state checking

A Python library and CLI for finding out whether a client-side component
(an app version, an API, a feature) is ok, deprecated or at end of life,
according to a JSON document served from a URL.

deprecheck provides:
  - Key-path lookup of a state string in the JSON response
  - Mapping of that string onto OK / DEPRECATED / END_OF_LIFE / UNKNOWN
  - A response cache with a TTL, persisted across process restarts
  - Background re-checking whenever the cached response expires
  - State-change and response-update callbacks on a single callback thread

Quick Start
-----------
    from deprecheck import DeprecationChecker

    checker = DeprecationChecker("https://example.com/myapp/1.4.0/state.json")
    checker.key_path = "deprecation_info.state"
    checker.ok_string = "ok"
    checker.deprecated_string = "deprecated"
    checker.eol_string = "eol"
    checker.on_state_change(lambda: print(checker.state))
    checker.begin_checking()

From the command line:

    $ deprecheck check deprecation.yaml

Package Structure
-----------------
checker : module
    DeprecationChecker, the check engine.
keypath, states : modules
    Key-path lookup and state mapping.
cache : package
    Cached entries, the response cache and its backing stores.
scheduler, notify, registry : modules
    Re-check timing, callback delivery, running-checker registry.
io : package
    HTTP fetch and JSON parsing.
config, validation, core, cli : modules/packages
    YAML configuration, validation, orchestration and CLI.

Project Information
-------------------
License: Apache-2.0
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"
__description__ = "Remote deprecation state checking with a persisted TTL cache"

# Re-export commonly used names for convenience
from deprecheck.cache import CachedEntry, ResponseCache
from deprecheck.checker import DeprecationChecker
from deprecheck.config import CheckerConfig, load_checker_config
from deprecheck.results import CheckAction, CheckResult, FailureKind
from deprecheck.states import DeprecationState

__all__ = [
    "__version__",
    "__license__",
    "__description__",
    "CachedEntry",
    "CheckAction",
    "CheckResult",
    "CheckerConfig",
    "DeprecationChecker",
    "DeprecationState",
    "FailureKind",
    "ResponseCache",
    "load_checker_config",
]
