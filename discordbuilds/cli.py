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

"""Command-line interface for discordbuilds.

This module provides the main CLI entry point for the discordbuilds tool,
offering commands for discovery, lookups and store maintenance.

Commands:

    discover: Find downloadable builds and upsert them into the store
    latest: Show the latest published version of each platform
    list: Page through archived builds, newest first
    validate: Validate configuration (no network calls)
    init: Create the store and its collections
    nuke: Drop every collection in the store

Example:
    Run discovery for Linux only:
        ```bash
        $ discordbuilds discover --store data/builds.json --platform linux
        ```

    Show the second page of macOS builds:
        ```bash
        $ discordbuilds list --store data/builds.json --platform mac --page 2
        ```

    Enable debug output:
        ```bash
        $ discordbuilds discover --debug
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, network or store failure)

Note:
    The CLI uses argparse for command parsing.
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode and also logs every probe.

"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys

from discordbuilds import __version__
from discordbuilds.config import load_effective_config
from discordbuilds.core import discover_builds, fetch_latest_versions, list_builds
from discordbuilds.exceptions import ArchiveError, NetworkError
from discordbuilds.logging import get_logger, set_global_logger
from discordbuilds.store import JsonBuildStore
from discordbuilds.validation import validate_config
from discordbuilds.versioning import is_sentinel

NOT_AVAILABLE = "not available"


def _configure_logging(args: argparse.Namespace) -> None:
    logger = get_logger(
        verbose=getattr(args, "verbose", False), debug=getattr(args, "debug", False)
    )
    set_global_logger(logger)


def _report_error(args: argparse.Namespace, err: Exception) -> int:
    print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        import traceback

        traceback.print_exc()
    return 1


def _load_config(args: argparse.Namespace, *, require_store: bool = True) -> dict:
    return load_effective_config(
        Path(args.config) if args.config else None,
        store_path=getattr(args, "store", None),
        require_store=require_store,
    )


def _catalog(config: dict) -> list[str]:
    return list((config.get("modules") or {}).get("catalog", []))


def cmd_discover(args: argparse.Namespace) -> int:
    """Handler for 'discordbuilds discover' command.

    Loads configuration, runs every platform lane and saves the store when
    the run completes. Nothing is saved if the run fails.

    Args:
        args: Parsed command-line arguments containing config/store paths,
            platform filter and verbosity flags.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    _configure_logging(args)

    try:
        config = _load_config(args)
        store_path = Path(config["store"]["path"])
        print(f"Store: {store_path}")
        print()
        with JsonBuildStore.open(store_path, _catalog(config)) as store:
            result = discover_builds(config, store, platforms=args.platform)
    except ArchiveError as err:
        return _report_error(args, err)

    print("=" * 70)
    print("DISCOVERY RESULTS")
    print("=" * 70)
    for lane in result.platforms:
        status = "SKIPPED" if lane.skipped else f"{len(lane.versions)} build(s)"
        print(
            f"{lane.platform:<10} {lane.strategy:<18} "
            f"latest={lane.latest_version:<24} {status}, "
            f"{lane.modules_found} module(s)"
        )
    print("=" * 70)
    print()
    print(
        f"[SUCCESS] Upserted {result.build_count} build(s) and "
        f"{result.module_count} module(s)."
    )
    return 0


def cmd_latest(args: argparse.Namespace) -> int:
    """Handler for 'discordbuilds latest' command.

    Prints the latest published version of each platform, following the
    platform's download redirect. Does not touch the store.

    Returns:
        Exit code (0 if at least one platform answered, 1 otherwise).

    """
    _configure_logging(args)

    try:
        config = _load_config(args, require_store=False)
        latest = fetch_latest_versions(config, platforms=args.platform)
        if latest and all(is_sentinel(item.version) for item in latest):
            raise NetworkError("Could not determine the latest version of any platform")
    except ArchiveError as err:
        return _report_error(args, err)

    for item in latest:
        print(f"{item.platform}: {item.version}")
        if item.installer_link:
            print(f"  Installer: {item.installer_link}")
            print(f"  Size:      {item.installer_size}")
            print(f"  ETag:      {item.installer_etag or '-'}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Handler for 'discordbuilds list' command.

    Prints one page of archived builds, newest first. Modules that are not
    available for a build are shown as "not available".

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    _configure_logging(args)

    try:
        config = _load_config(args)
        limit = args.limit
        if limit is None:
            limit = (config.get("api") or {}).get("page_limit", 20)
        store = JsonBuildStore(Path(config["store"]["path"]), _catalog(config))
        store.load()
        page = list_builds(store, platform=args.platform, page=args.page, limit=limit)
    except ArchiveError as err:
        return _report_error(args, err)
    except ValueError as err:
        print(f"Error: {err}")
        return 1

    for build in page.builds:
        print(f"{build.platform} {build.version}")
        print(f"  Installer: {build.installer_link} ({build.installer_size} bytes)")
        for name, module in build.modules.items():
            if module is None:
                print(f"    {name}: {NOT_AVAILABLE}")
            else:
                print(f"    {name}: {module.download_size} bytes")

    p = page.pagination
    print()
    print(f"Page {p['page']} of {p['pages']} ({p['total']} build(s), {p['limit']} per page)")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'discordbuilds validate' command.

    Validates configuration without making network calls.

    Returns:
        Exit code (0 for valid configuration, 1 for invalid).

    """
    _configure_logging(args)

    try:
        config = _load_config(args, require_store=False)
    except ArchiveError as err:
        return _report_error(args, err)

    result = validate_config(config, verbose=args.verbose)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Config:      {args.config or '(built-in defaults)'}")
    print(f"Status:      {result.status.upper()}")
    print(f"Platforms:   {result.platform_count}")
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
        print("[SUCCESS] Configuration is valid!")
        return 0
    print()
    print(
        f"[FAILED] Configuration validation failed with {len(result.errors)} error(s)."
    )
    return 1


def cmd_init(args: argparse.Namespace) -> int:
    """Handler for 'discordbuilds init' command (create collections)."""
    _configure_logging(args)

    try:
        config = _load_config(args)
        with JsonBuildStore.open(Path(config["store"]["path"]), _catalog(config)) as store:
            created = store.initialize()
    except ArchiveError as err:
        return _report_error(args, err)

    for name in created:
        print(f"Created collection: {name}")
    print(f"[SUCCESS] Store ready ({len(created)} collection(s) created).")
    return 0


def cmd_nuke(args: argparse.Namespace) -> int:
    """Handler for 'discordbuilds nuke' command (drop every collection)."""
    _configure_logging(args)

    if not args.yes:
        print("Refusing to drop collections without --yes.")
        return 1

    try:
        config = _load_config(args)
        with JsonBuildStore.open(Path(config["store"]["path"]), _catalog(config)) as store:
            dropped = store.drop()
    except ArchiveError as err:
        return _report_error(args, err)

    for name in dropped:
        print(f"Dropped collection: {name}")
    print(f"[SUCCESS] Dropped {len(dropped)} collection(s).")
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser, *, store: bool = True) -> None:
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to a YAML config file merged over the built-in defaults",
    )
    if store:
        parser.add_argument(
            "--store",
            default=None,
            help="Path to the JSON store file (overrides config and DISCORDBUILDS_STORE)",
        )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def _package_version() -> str:
    try:
        return version("discordbuilds")
    except PackageNotFoundError:
        return __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="discordbuilds",
        description="discordbuilds - archive of Discord desktop builds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"discordbuilds {_package_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'discover' command
    parser_discover = subparsers.add_parser(
        "discover",
        help="Find downloadable builds and upsert them into the store",
        description="Probe the CDN for every platform and record the builds that exist.",
    )
    _add_common_arguments(parser_discover)
    parser_discover.add_argument(
        "-p",
        "--platform",
        action="append",
        default=None,
        help="Only run this platform (repeatable; default: all configured)",
    )
    parser_discover.set_defaults(func=cmd_discover)

    # 'latest' command
    parser_latest = subparsers.add_parser(
        "latest",
        help="Show the latest published version of each platform",
        description="Follow each platform's download redirect and print the version it points to.",
    )
    _add_common_arguments(parser_latest, store=False)
    parser_latest.add_argument(
        "-p",
        "--platform",
        action="append",
        default=None,
        help="Only look up this platform (repeatable)",
    )
    parser_latest.set_defaults(func=cmd_latest)

    # 'list' command
    parser_list = subparsers.add_parser(
        "list",
        help="Page through archived builds, newest first",
    )
    _add_common_arguments(parser_list)
    parser_list.add_argument("-p", "--platform", default=None, help="Filter by platform")
    parser_list.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    parser_list.add_argument(
        "--limit", type=int, default=None, help="Builds per page (default: from config, 20)"
    )
    parser_list.set_defaults(func=cmd_list)

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate configuration (no network calls)",
    )
    _add_common_arguments(parser_validate, store=False)
    parser_validate.set_defaults(func=cmd_validate)

    # 'init' command
    parser_init = subparsers.add_parser(
        "init",
        help="Create the store and its collections",
    )
    _add_common_arguments(parser_init)
    parser_init.set_defaults(func=cmd_init)

    # 'nuke' command
    parser_nuke = subparsers.add_parser(
        "nuke",
        help="Drop every collection in the store",
    )
    _add_common_arguments(parser_nuke)
    parser_nuke.add_argument(
        "--yes",
        action="store_true",
        help="Confirm that all archived data should be dropped",
    )
    parser_nuke.set_defaults(func=cmd_nuke)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the discordbuilds CLI.

    This function is registered as the 'discordbuilds' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
