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

"""Platform strategy protocol, registry and bounded walk for discordbuilds.

Every platform lane is driven by one of a small closed set of strategies,
selected by the ``strategy`` field of the platform's configuration:

- redirect_resolve: learn the latest version from a redirecting "latest"
  endpoint, then walk patch numbers downward (Windows)
- range_probe: start from a configured high-water mark and walk a flat
  ``0.0.N`` counter downward (macOS, Linux)

Both expose the same two capabilities:

- resolve(): find the version the walk starts from, or a sentinel
- probe_range(): probe a bounded, descending run of candidates and return
  the confirmed ones

The descending walk itself is shared (walk_candidates): it is a plain
bounded linear search. Gaps are expected because builds get pulled from the
CDN, so a miss never ends the walk; only the step budget, the hit budget or
cancellation does.

Example:
    Look up and run a strategy:
        ```python
        from discordbuilds.discovery import get_strategy

        platform_config = config["platforms"]["mac"]
        strategy = get_strategy(platform_config["strategy"])
        start = strategy.resolve("mac", platform_config)
        confirmed = strategy.probe_range("mac", platform_config, start)
        ```

"""

from __future__ import annotations

from collections.abc import Iterable
import threading
from typing import Any, Protocol

import requests

from discordbuilds.exceptions import ConfigError
from discordbuilds.io.prober import DEFAULT_TIMEOUT, probe
from discordbuilds.versioning.keys import ConfirmedVersion, VersionCandidate

# -------------------------------
# Strategy Protocol
# -------------------------------


class PlatformStrategy(Protocol):
    """Protocol for per-platform discovery strategies."""

    def resolve(
        self,
        platform: str,
        platform_config: dict[str, Any],
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> str:
        """Return the version the walk starts from.

        Must not raise for network or extraction failures: a sentinel
        version (see discordbuilds.versioning.keys) is returned instead and
        the caller skips the platform for this run.
        """
        ...

    def probe_range(
        self,
        platform: str,
        platform_config: dict[str, Any],
        base_version: str,
        *,
        max_steps: int | None = None,
        max_hits: int | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        cancel: threading.Event | None = None,
    ) -> list[ConfirmedVersion]:
        """Probe a descending run of candidates starting at 'base_version'.

        Returns:
            Confirmed versions, newest first. At most 'max_hits' entries
                and never more than 'max_steps' probes.

        Raises:
            ConfigError: If 'base_version' is not a well-formed
                major.minor.patch string.
        """
        ...

    def validate_config(self, platform_config: dict[str, Any]) -> list[str]:
        """Check strategy-specific configuration without network calls.

        Returns:
            List of human-readable error messages, empty if valid.
        """
        ...


# -------------------------------
# Strategy Registry
# -------------------------------

_STRATEGY_REGISTRY: dict[str, type[PlatformStrategy]] = {}


def register_strategy(name: str, strategy_class: type[PlatformStrategy]) -> None:
    """Register a platform strategy by name in the global registry.

    Registering the same name twice overwrites the previous registration
    (handy for tests).

    Args:
        name: Strategy name as used in the ``strategy`` config field.
        strategy_class: Class implementing PlatformStrategy.
    """
    _STRATEGY_REGISTRY[name] = strategy_class


def get_strategy(name: str) -> PlatformStrategy:
    """Get a new strategy instance by name.

    Strategies are stateless; a fresh instance is returned on every call.

    Raises:
        ConfigError: If the name is not registered. The message lists the
            available strategies.
    """
    if name not in _STRATEGY_REGISTRY:
        available = ", ".join(sorted(_STRATEGY_REGISTRY)) or "(none)"
        raise ConfigError(
            f"Unknown discovery strategy: {name!r}. Available: {available}"
        )
    return _STRATEGY_REGISTRY[name]()


def available_strategies() -> list[str]:
    return sorted(_STRATEGY_REGISTRY)


# -------------------------------
# Shared helpers
# -------------------------------


def installer_url(platform_config: dict[str, Any], version: str) -> str:
    """Fill the platform's ``installer_url`` template for one version.

    The template may reference ``{version}`` and ``{base_url}``.

    Raises:
        ConfigError: If the template is missing or references unknown fields.
    """
    template = platform_config.get("installer_url")
    if not template:
        raise ConfigError("Platform config requires 'installer_url'")
    try:
        return template.format(
            version=version, base_url=platform_config.get("base_url", "")
        )
    except (KeyError, IndexError) as err:
        raise ConfigError(f"Invalid installer_url template {template!r}: {err}") from err


def walk_candidates(
    candidates: Iterable[VersionCandidate],
    *,
    max_hits: int | None = None,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    cancel: threading.Event | None = None,
) -> list[ConfirmedVersion]:
    """Probe candidates one at a time, keeping the ones that exist.

    The caller bounds the candidate iterable (the step budget); this loop
    adds the early stop at 'max_hits' and honors cancellation between
    probes. Probes run sequentially so the hit budget is exact.

    Returns:
        Confirmed versions in the order they were probed.
    """
    from discordbuilds.logging import get_global_logger

    logger = get_global_logger()
    confirmed: list[ConfirmedVersion] = []

    for candidate in candidates:
        if max_hits is not None and len(confirmed) >= max_hits:
            break
        if cancel is not None and cancel.is_set():
            logger.verbose(
                "DISCOVERY", f"[{candidate.platform}] Walk cancelled"
            )
            break

        result = probe(candidate.source_url, session=session, timeout=timeout)
        if result.exists:
            confirmed.append(ConfirmedVersion(candidate=candidate, probe=result))
            logger.verbose(
                "DISCOVERY",
                f"[{candidate.platform}] {candidate.version} is downloadable "
                f"({result.size} bytes, ETag {result.etag or 'none'})",
            )
        else:
            logger.debug(
                "DISCOVERY",
                f"[{candidate.platform}] No installer for {candidate.version}",
            )

    return confirmed


def _check_non_negative_int(
    platform_config: dict[str, Any], key: str, errors: list[str], required: bool
) -> None:
    if key not in platform_config or platform_config[key] is None:
        if required:
            errors.append(f"Missing required field: {key}")
        return
    value = platform_config[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        errors.append(f"{key} must be a non-negative integer, got {value!r}")


def validate_common(
    platform_config: dict[str, Any], *, require_start: bool = False
) -> list[str]:
    """Checks shared by every strategy (walk bounds and URL templates)."""
    errors: list[str] = []

    template = platform_config.get("installer_url")
    if not template:
        errors.append("Missing required field: installer_url")
    elif not isinstance(template, str):
        errors.append("installer_url must be a string")
    elif "{version}" not in template:
        errors.append("installer_url must contain a {version} placeholder")

    _check_non_negative_int(platform_config, "max_steps", errors, required=True)
    _check_non_negative_int(platform_config, "max_hits", errors, required=False)
    _check_non_negative_int(platform_config, "start", errors, required=require_start)

    module_base = platform_config.get("module_base_url")
    if module_base is not None and not isinstance(module_base, str):
        errors.append("module_base_url must be a string or null")

    return errors
