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

"""Command-line interface for deprecheck.

Commands:

    validate: Validate a checker config without network access
    check: Run one check cycle (uses the cache while it is fresh)
    watch: Keep checking and print every state change
    cache: Show the cached response for a config's endpoint

Example:
    Validate a config:
        ```bash
        $ deprecheck validate deprecation.yaml
        ```

    One-shot check, e.g. from cron:
        ```bash
        $ deprecheck check deprecation.yaml --verbose
        ```

    Watch for changes:
        ```bash
        $ deprecheck watch deprecation.yaml
        ```

Exit Codes:

- 0: Success
- 1: Error (invalid configuration, unwritable cache)

Note:
    A failed fetch is not an error; the state is reported as unknown.
    Environment variables referenced by header values are also read from a
    .env file in the working directory, when one exists.
"""

from __future__ import annotations

import argparse
from importlib.metadata import version
import json
from pathlib import Path
import sys
import threading

from dotenv import load_dotenv

from deprecheck.core import check_config, create_checker, read_cached_entry
from deprecheck.exceptions import DeprecheckError
from deprecheck.logging import get_logger, set_global_logger
from deprecheck.validation import validate_config


def _print_error(err: Exception, args: argparse.Namespace) -> None:
    print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        import traceback

        traceback.print_exc()


def _cache_file(args: argparse.Namespace) -> Path | None:
    return Path(args.cache_file) if getattr(args, "cache_file", None) else None


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'deprecheck validate' command.

    Returns:
        Exit code (0 for a valid config, 1 for invalid).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=False))

    config_path = Path(args.config).resolve()
    print(f"Validating config: {config_path}")
    print()

    result = validate_config(config_path)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Config:      {result.config_path}")
    print(f"Status:      {result.status.upper()}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Config is valid!")
        return 0
    print()
    print(f"[FAILED] Config validation failed with {len(result.errors)} error(s).")
    return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Handler for 'deprecheck check' command.

    Runs one check cycle and prints the resulting state.

    Returns:
        Exit code (0 for success, 1 for configuration or cache errors).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    config_path = Path(args.config).resolve()
    try:
        result = check_config(config_path, cache_file=_cache_file(args))
    except DeprecheckError as err:
        _print_error(err, args)
        return 1

    print("=" * 70)
    print("CHECK RESULTS")
    print("=" * 70)
    print(f"Endpoint:    {result.endpoint}")
    print(f"State:       {result.state.value}")
    print(f"Source:      {result.action.value}")
    if result.failure is not None:
        print(f"Reason:      {result.failure.value}")
    if result.error:
        print(f"Error:       {result.error}")
    if result.expires_at is not None:
        print(f"Expires:     {result.expires_at.isoformat()}")
    print(f"Changed:     {'yes' if result.state_changed else 'no'}")
    print("=" * 70)
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    """Handler for 'deprecheck watch' command.

    Starts background checking and prints a line for every state change
    until interrupted, or until ``--duration`` seconds have passed.

    Returns:
        Exit code (0 when stopped, 1 for configuration errors).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    config_path = Path(args.config).resolve()
    try:
        checker = create_checker(config_path, cache_file=_cache_file(args))
        checker.on_state_change(
            lambda: print(f"[STATE] {checker.endpoint}: {checker.state.value}", flush=True)
        )
        checker.begin_checking()
    except DeprecheckError as err:
        _print_error(err, args)
        return 1

    print(f"Watching {checker.endpoint} (Ctrl+C to stop)")
    print(f"Current state: {checker.state.value}")
    try:
        threading.Event().wait(args.duration)
    except KeyboardInterrupt:
        print()
    print(f"Final state: {checker.state.value}")
    return 0


def cmd_cache(args: argparse.Namespace) -> int:
    """Handler for 'deprecheck cache' command.

    Prints the cached entry for the config's endpoint without any request.

    Returns:
        Exit code (0 if an entry was shown, 1 if none exists or on error).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=False))

    config_path = Path(args.config).resolve()
    try:
        config, entry = read_cached_entry(config_path, cache_file=_cache_file(args))
    except DeprecheckError as err:
        _print_error(err, args)
        return 1

    if entry is None:
        print(f"No cached response for {config.endpoint}")
        return 1

    print(f"Endpoint:    {config.endpoint}")
    print(f"Fetched:     {entry.fetched_at.isoformat()}")
    print(f"Expires:     {entry.expires_at.isoformat()}")
    print("Response:")
    print(json.dumps(entry.response, indent=2, sort_keys=True))
    return 0


def _add_common(parser: argparse.ArgumentParser, with_debug: bool = True) -> None:
    parser.add_argument(
        "config",
        help="Path to the checker config YAML file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    if with_debug:
        parser.add_argument(
            "-d",
            "--debug",
            action="store_true",
            help="Show detailed debugging output (implies --verbose)",
        )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the deprecheck CLI.

    This function is registered as the 'deprecheck' console script in
    pyproject.toml.
    """
    parser = argparse.ArgumentParser(
        prog="deprecheck",
        description="deprecheck - check a component's deprecation state from a JSON endpoint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"deprecheck {version('deprecheck')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate config syntax and fields (no network access)",
        description="Check a checker config for errors without making network calls.",
    )
    _add_common(parser_validate, with_debug=False)
    parser_validate.set_defaults(func=cmd_validate)

    parser_check = subparsers.add_parser(
        "check",
        help="Run one check and print the state",
        description="Check the endpoint once, using the cached response while it is fresh.",
    )
    _add_common(parser_check)
    parser_check.add_argument(
        "--cache-file",
        default=None,
        help="Cache file to use instead of checker.cache_file",
    )
    parser_check.set_defaults(func=cmd_check)

    parser_watch = subparsers.add_parser(
        "watch",
        help="Keep checking and print state changes",
        description="Check in the background, re-checking whenever the cached response expires.",
    )
    _add_common(parser_watch)
    parser_watch.add_argument(
        "--cache-file",
        default=None,
        help="Cache file to use instead of checker.cache_file",
    )
    parser_watch.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until interrupted)",
    )
    parser_watch.set_defaults(func=cmd_watch)

    parser_cache = subparsers.add_parser(
        "cache",
        help="Show the cached response for a config's endpoint",
        description="Print the cached response and its expiry without making a request.",
    )
    _add_common(parser_cache, with_debug=False)
    parser_cache.add_argument(
        "--cache-file",
        default=None,
        help="Cache file to use instead of checker.cache_file",
    )
    parser_cache.set_defaults(func=cmd_cache)

    args = parser.parse_args(argv)

    # Header values written as "${VAR}" may be supplied through a .env file
    load_dotenv()

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
