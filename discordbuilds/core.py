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

"""Core orchestration for discordbuilds.

This module coordinates a discovery run across platforms and exposes the two
read-side operations of the archive.

Discovery Run:

- One lane per configured platform; lanes run side by side on a small
  thread pool and never wait on each other.
- Each lane resolves its start version, walks candidates downward with its
  strategy, enumerates modules for every confirmed build and upserts the
  results. A lane whose start version cannot be resolved is skipped; the
  other lanes continue.
- Inside a lane, probes stay sequential (the walk's bounds are exact) while
  module probes for one version fan out in parallel.
- A store failure is fatal: the shared cancel event is set, lanes that have
  not started are cancelled, running lanes stop at their next probe, and the
  StoreError propagates to the caller.

Design Principles:

- Each function has a single, clear responsibility
- Functions return structured data (dataclasses) for easy testing
- Error handling uses exceptions; CLI layer formats for user display
- Discovery strategies are dynamically loaded via registry pattern

Example:
    Programmatic usage:
        ```python
        from discordbuilds.config import load_effective_config
        from discordbuilds.core import discover_builds
        from discordbuilds.store import JsonBuildStore

        config = load_effective_config()
        with JsonBuildStore.open(config["store"]["path"]) as store:
            result = discover_builds(config, store, platforms=["linux"])

        print(f"Builds upserted: {result.build_count}")
        ```

"""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
import threading
from typing import Any

import requests

from discordbuilds.discovery import enumerate_modules, get_strategy, platform_module_base
from discordbuilds.exceptions import ConfigError
from discordbuilds.io.prober import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT,
    make_session,
    probe,
    resolve_redirect,
)
from discordbuilds.logging import get_global_logger
from discordbuilds.results import DiscoveryResult, LatestVersion, PlatformResult
from discordbuilds.store import (
    MODULE_NAMES,
    BuildPage,
    BuildStore,
    JsonBuildStore,
    assemble_build,
)
from discordbuilds.store.json_store import DEFAULT_PAGE_LIMIT
from discordbuilds.validation import validate_config
from discordbuilds.versioning.keys import ERROR_VERSION, is_sentinel
from discordbuilds.versioning.url_regex import extract_version


def _http_settings(config: dict[str, Any]) -> tuple[float, int, int]:
    http = config.get("http") or {}
    return (
        float(http.get("timeout", DEFAULT_TIMEOUT)),
        int(http.get("max_redirects", DEFAULT_MAX_REDIRECTS)),
        int(http.get("retries", 2)),
    )


def _catalog(config: dict[str, Any]) -> list[str]:
    modules = config.get("modules") or {}
    return list(modules.get("catalog", MODULE_NAMES))


def _select_platforms(
    config: dict[str, Any], platforms: list[str] | None
) -> list[str]:
    configured = list(config.get("platforms", {}))
    if not platforms:
        return configured
    unknown = [p for p in platforms if p not in configured]
    if unknown:
        raise ConfigError(
            f"Unknown platform(s): {', '.join(unknown)}. "
            f"Configured: {', '.join(configured)}"
        )
    return list(platforms)


def _run_lane(
    platform: str,
    platform_config: dict[str, Any],
    store: BuildStore,
    *,
    catalog: list[str],
    session: requests.Session,
    timeout: float,
    module_workers: int | None,
    cancel: threading.Event,
) -> PlatformResult:
    """Discover, enumerate and upsert the builds of one platform."""
    logger = get_global_logger()
    strategy_name = platform_config["strategy"]
    strategy = get_strategy(strategy_name)

    latest = strategy.resolve(
        platform, platform_config, session=session, timeout=timeout
    )
    if is_sentinel(latest):
        logger.warning(
            "DISCOVERY", f"[{platform}] Skipping platform: start version is {latest!r}"
        )
        return PlatformResult(
            platform=platform,
            strategy=strategy_name,
            latest_version=latest,
            versions=[],
            modules_found=0,
            skipped=True,
        )

    confirmed = strategy.probe_range(
        platform,
        platform_config,
        latest,
        session=session,
        timeout=timeout,
        cancel=cancel,
    )
    logger.verbose(
        "DISCOVERY", f"[{platform}] {len(confirmed)} build(s) confirmed from {latest}"
    )

    module_base = platform_module_base(platform_config)
    upserted: list[str] = []
    modules_found = 0

    for item in confirmed:
        if cancel.is_set():
            break
        modules = enumerate_modules(
            module_base,
            item.version,
            catalog=catalog,
            session=session,
            timeout=timeout,
            max_workers=module_workers,
            cancel=cancel,
        )
        if cancel.is_set():
            break

        record = assemble_build(item, modules, catalog)
        for module in modules.values():
            if module is not None:
                store.upsert_module(module)
                modules_found += 1
        store.upsert_build(record)
        upserted.append(item.version)
        logger.verbose("STORE", f"[{platform}] Upserted {item.version}")

    return PlatformResult(
        platform=platform,
        strategy=strategy_name,
        latest_version=latest,
        versions=upserted,
        modules_found=modules_found,
        skipped=False,
    )


def discover_builds(
    config: dict[str, Any],
    store: BuildStore,
    *,
    platforms: list[str] | None = None,
    cancel: threading.Event | None = None,
) -> DiscoveryResult:
    """Run discovery for the configured platforms and upsert every build found.

    Args:
        config: Merged configuration (see load_effective_config).
        store: Destination for build and module records.
        platforms: Subset of configured platforms to run (default: all).
        cancel: Event that stops the run early when set. Also set by this
            function when a lane fails.

    Returns:
        One PlatformResult per lane, in the order the platforms were given.

    Raises:
        ConfigError: If the configuration is invalid or names an unknown
            platform. Raised before any network call.
        StoreError: If an upsert fails. The whole run stops.

    """
    logger = get_global_logger()

    validation = validate_config(config)
    if validation.status != "valid":
        raise ConfigError(
            "Invalid configuration: " + "; ".join(validation.errors)
        )

    selected = _select_platforms(config, platforms)
    timeout, max_redirects, retries = _http_settings(config)
    catalog = _catalog(config)
    module_workers = (config.get("modules") or {}).get("max_workers")
    lanes = int((config.get("discovery") or {}).get("lanes", 3))
    cancel = cancel if cancel is not None else threading.Event()

    logger.step(1, 2, f"Discovering builds for {len(selected)} platform(s)...")

    results: dict[str, PlatformResult] = {}
    with make_session(max_redirects=max_redirects, retries=retries) as session:
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(lanes, len(selected))),
            thread_name_prefix="discordbuilds-lane",
        )
        futures: dict[Future[PlatformResult], str] = {
            executor.submit(
                _run_lane,
                name,
                config["platforms"][name],
                store,
                catalog=catalog,
                session=session,
                timeout=timeout,
                module_workers=module_workers,
                cancel=cancel,
            ): name
            for name in selected
        }
        try:
            pending = set(futures)
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    results[futures[future]] = future.result()
        except BaseException:
            cancel.set()
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

    result = DiscoveryResult(platforms=[results[name] for name in selected])
    logger.step(
        2,
        2,
        f"Upserted {result.build_count} build(s) and {result.module_count} module(s)",
    )
    return result


def fetch_latest_versions(
    config: dict[str, Any], *, platforms: list[str] | None = None
) -> list[LatestVersion]:
    """Look up the newest published build of each platform.

    Follows each platform's ``latest_url`` redirect chain (bounded by
    http.max_redirects), extracts the version from the final URL and reads
    the installer's size and ETag. Platforms without a ``latest_url`` are
    left out.

    Never raises for network failures: an unreachable platform is reported
    with the version "Error fetching version".

    Raises:
        ConfigError: If 'platforms' names an unknown platform.
    """
    logger = get_global_logger()
    selected = _select_platforms(config, platforms)
    timeout, max_redirects, retries = _http_settings(config)

    latest: list[LatestVersion] = []
    with make_session(max_redirects=max_redirects, retries=retries) as session:
        for name in selected:
            platform_config = config["platforms"][name] or {}
            latest_url = platform_config.get("latest_url")
            if not latest_url:
                logger.verbose("DISCOVERY", f"[{name}] No latest_url configured")
                continue

            target = resolve_redirect(
                latest_url, follow=True, session=session, timeout=timeout
            )
            if not target:
                latest.append(LatestVersion(name, ERROR_VERSION, "", 0, ""))
                continue

            version = extract_version(target)
            result = probe(target, session=session, timeout=timeout)
            latest.append(
                LatestVersion(
                    platform=name,
                    version=version,
                    installer_link=target,
                    installer_size=result.size,
                    installer_etag=result.etag,
                )
            )
            logger.verbose("DISCOVERY", f"[{name}] Latest version: {version}")

    return latest


def list_builds(
    store: JsonBuildStore,
    *,
    platform: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
) -> BuildPage:
    """Return one page of archived builds, newest first.

    Thin wrapper over the store's read path so the CLI and library callers
    share the same defaults.
    """
    return store.list_builds(platform=platform, page=page, limit=limit)
