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

"""Module enumeration for confirmed builds.

Each desktop build ships a set of native modules, published next to the
installer as ``{base}/{version}/modules/{name}-1.zip``. Which modules exist
varies from build to build, so every catalog entry is probed with a HEAD
request and reported as a ModuleRecord or None.

Probes for one version are independent and fan out on a small thread pool
(one worker per module by default). The result map always has exactly the
catalog's keys, whatever the probes return.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import threading
from typing import Any

import requests

from discordbuilds.io.prober import DEFAULT_TIMEOUT, probe
from discordbuilds.store.records import MODULE_NAMES, ModuleRecord

MODULE_ARCHIVE_REVISION = 1


def module_url(base_url: str, version: str, module_name: str) -> str:
    """Return the download URL of one module of one build.

    Example:
        >>> module_url("https://stable.dl2.discordapp.net/apps/linux", "0.0.77", "discord_voice")
        'https://stable.dl2.discordapp.net/apps/linux/0.0.77/modules/discord_voice-1.zip'
    """
    return (
        f"{base_url.rstrip('/')}/{version}/modules/"
        f"{module_name}-{MODULE_ARCHIVE_REVISION}.zip"
    )


def platform_module_base(platform_config: dict[str, Any]) -> str | None:
    """Return where a platform publishes its modules.

    An explicit ``module_base_url`` wins (null disables modules); otherwise
    modules live under the installer ``base_url``.
    """
    if "module_base_url" in platform_config:
        return platform_config["module_base_url"] or None
    return platform_config.get("base_url") or None


def _probe_module(
    base_url: str,
    version: str,
    module_name: str,
    session: requests.Session | None,
    timeout: float,
    cancel: threading.Event | None,
) -> ModuleRecord | None:
    if cancel is not None and cancel.is_set():
        return None
    url = module_url(base_url, version, module_name)
    result = probe(url, session=session, timeout=timeout)
    if not result.exists:
        return None
    return ModuleRecord(
        version=version,
        module_name=module_name,
        download_size=result.size,
        download_etag=result.etag,
        download_link=url,
    )


def enumerate_modules(
    base_url: str | None,
    version: str,
    *,
    catalog: list[str] | None = None,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_workers: int | None = None,
    cancel: threading.Event | None = None,
) -> dict[str, ModuleRecord | None]:
    """Probe every catalog module of one build version.

    Args:
        base_url: Platform module base (e.g., ".../apps/osx"). None means the
            platform publishes no modules; nothing is probed.
        version: Confirmed build version.
        catalog: Module names (defaults to MODULE_NAMES).
        session: Shared HTTP session.
        timeout: Per-probe timeout in seconds.
        max_workers: Concurrent probes (defaults to one per module).
        cancel: Skips probes that have not started yet when set.

    Returns:
        Map with exactly the catalog's keys; None for modules that are not
            available (absent, unreachable, skipped).
    """
    from discordbuilds.logging import get_global_logger

    logger = get_global_logger()
    names = list(catalog) if catalog is not None else list(MODULE_NAMES)

    if not base_url or not names:
        return {name: None for name in names}

    workers = max_workers or len(names)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            name: executor.submit(
                _probe_module, base_url, version, name, session, timeout, cancel
            )
            for name in names
        }
        modules = {name: future.result() for name, future in futures.items()}

    found = sum(1 for rec in modules.values() if rec is not None)
    logger.verbose(
        "MODULES", f"{version}: {found}/{len(names)} modules available"
    )
    return modules
