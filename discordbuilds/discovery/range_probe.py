"""
Range-probing strategy for discordbuilds.

Used for platforms that publish builds under a flat, monotonically
increasing counter (``0.0.N``) with no cheap "latest" signal (macOS, Linux).
The walk starts at a configured high-water mark and counts down, probing a
fixed artifact path for every candidate:

    https://stable.dl2.discordapp.net/apps/osx/0.0.329/Discord.dmg
    https://stable.dl2.discordapp.net/apps/linux/0.0.77/discord-0.0.77.deb

Configuration:
platforms:
  mac:
    strategy: range_probe
    base_url: "https://stable.dl2.discordapp.net/apps/osx"
    installer_url: "{base_url}/{version}/Discord.dmg"
    start: 329
    max_steps: 330

Optional:
    max_hits: stop after this many confirmed builds
    latest_url + start_from_latest: true
        learn the start counter by following the download redirect; the
        configured ``start`` is used whenever that fails

Notes:
- A miss never stops the walk; pulled builds leave gaps in the counter
- The walk never goes below 0
"""

from __future__ import annotations

from collections.abc import Iterator
import threading
from typing import Any

import requests

from discordbuilds.io.prober import DEFAULT_TIMEOUT, resolve_redirect
from discordbuilds.versioning.keys import (
    UNKNOWN_VERSION,
    ConfirmedVersion,
    VersionCandidate,
    counter_version,
    format_triplet,
    is_sentinel,
    parse_triplet,
)
from discordbuilds.versioning.url_regex import extract_version

from .base import installer_url, register_strategy, validate_common, walk_candidates


class RangeProbeStrategy:
    """Descending walk over a ``0.0.N`` counter from a known high-water mark."""

    def resolve(
        self,
        platform: str,
        platform_config: dict[str, Any],
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> str:
        """Return the counter version the walk starts from.

        Uses the configured ``start``, unless ``start_from_latest`` is set and
        the ``latest_url`` redirect yields a usable version.
        """
        from discordbuilds.logging import get_global_logger

        logger = get_global_logger()
        start = platform_config.get("start")
        fallback = counter_version(start) if isinstance(start, int) else None

        latest_url = platform_config.get("latest_url")
        if platform_config.get("start_from_latest") and latest_url:
            target = resolve_redirect(
                latest_url, follow=True, session=session, timeout=timeout
            )
            version = extract_version(target) if target else None
            if not is_sentinel(version):
                logger.verbose(
                    "DISCOVERY", f"[{platform}] Latest version: {version}"
                )
                return version
            logger.warning(
                "DISCOVERY",
                f"[{platform}] Could not resolve latest version, "
                f"using configured start {fallback}",
            )

        if fallback is None:
            logger.warning("DISCOVERY", f"[{platform}] No start counter configured")
            return UNKNOWN_VERSION

        logger.verbose("DISCOVERY", f"[{platform}] Starting walk at {fallback}")
        return fallback

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
        """Walk the counter embedded in 'base_version' downward.

        Args:
            platform: Platform lane name.
            platform_config: This platform's configuration.
            base_version: Start version, e.g. "0.0.329" (probed first).
            max_steps: Probe budget (defaults to config ``max_steps``).
            max_hits: Optional hit budget (defaults to config ``max_hits``).
            session: Shared HTTP session.
            timeout: Per-probe timeout in seconds.
            cancel: Stops the walk between probes when set.

        Returns:
            Confirmed versions, newest first.

        Raises:
            ConfigError: If 'base_version' is malformed.
        """
        major, minor, start = parse_triplet(base_version)
        steps = max_steps if max_steps is not None else platform_config.get("max_steps", 0)
        hits = max_hits if max_hits is not None else platform_config.get("max_hits")

        def candidates() -> Iterator[VersionCandidate]:
            for n in range(start, max(start - steps, -1), -1):
                version = format_triplet(major, minor, n)
                yield VersionCandidate(
                    platform=platform,
                    version=version,
                    source_url=installer_url(platform_config, version),
                )

        return walk_candidates(
            candidates(),
            max_hits=hits,
            session=session,
            timeout=timeout,
            cancel=cancel,
        )

    def validate_config(self, platform_config: dict[str, Any]) -> list[str]:
        """Validate range_probe configuration (no network calls)."""
        errors = validate_common(platform_config, require_start=True)

        template = platform_config.get("installer_url")
        if isinstance(template, str) and "{base_url}" in template:
            if not platform_config.get("base_url"):
                errors.append("installer_url uses {base_url} but base_url is not set")

        if platform_config.get("start_from_latest") and not platform_config.get(
            "latest_url"
        ):
            errors.append("start_from_latest requires latest_url")

        return errors


# Register this strategy when the module is imported
register_strategy("range_probe", RangeProbeStrategy)
