"""
Redirect-resolution strategy for discordbuilds.

Used for platforms whose distribution API exposes a "latest" endpoint that
redirects to a versioned installer (Windows):

    GET https://discord.com/api/downloads/distributions/app/installers/latest?...
    302 Location: https://stable.dl2.discordapp.net/distro/app/stable/win/x64/1.0.9028/DiscordSetup.exe

Workflow:
    1. Read the redirect target of ``latest_url`` (no-follow + Location by
       default, or follow the bounded chain with ``follow_redirects: true``)
    2. Extract ``major.minor.patch`` from the target
    3. Walk the patch number downward from there, probing ``installer_url``
       for each candidate, until ``max_steps`` probes are spent,
       ``max_hits`` builds are confirmed or patch 0 has been probed

Configuration:
platforms:
  windows:
    strategy: redirect_resolve
    latest_url: "https://discord.com/api/downloads/distributions/app/installers/latest?channel=stable&platform=win&arch=x64"
    follow_redirects: false
    installer_url: "https://stable.dl2.discordapp.net/distro/app/stable/win/x64/{version}/DiscordSetup.exe"
    max_steps: 200
    max_hits: 329

Error Handling:
    - resolve() never raises: an unreachable endpoint yields ERROR_VERSION,
      a target without a version yields UNKNOWN_VERSION
    - probe_range() raises ConfigError for a malformed base version
"""

from __future__ import annotations

from collections.abc import Iterator
import threading
from typing import Any

import requests

from discordbuilds.io.prober import DEFAULT_TIMEOUT, resolve_redirect
from discordbuilds.versioning.keys import (
    ERROR_VERSION,
    ConfirmedVersion,
    VersionCandidate,
    format_triplet,
    parse_triplet,
)
from discordbuilds.versioning.url_regex import extract_version

from .base import installer_url, register_strategy, validate_common, walk_candidates


class RedirectResolveStrategy:
    """Latest-version via redirect, then a descending patch walk."""

    def resolve(
        self,
        platform: str,
        platform_config: dict[str, Any],
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> str:
        """Resolve the latest version from the platform's redirect target.

        Returns:
            The extracted version, or a sentinel on any failure.
        """
        from discordbuilds.logging import get_global_logger

        logger = get_global_logger()

        latest_url = platform_config.get("latest_url")
        if not latest_url:
            logger.warning("DISCOVERY", f"[{platform}] No latest_url configured")
            return ERROR_VERSION

        follow = bool(platform_config.get("follow_redirects", False))
        logger.verbose(
            "DISCOVERY",
            f"[{platform}] Resolving latest version "
            f"({'follow' if follow else 'location'} mode): {latest_url}",
        )

        target = resolve_redirect(
            latest_url, follow=follow, session=session, timeout=timeout
        )
        if not target:
            logger.warning(
                "DISCOVERY", f"[{platform}] Could not resolve latest version"
            )
            return ERROR_VERSION

        version = extract_version(target)
        logger.verbose("DISCOVERY", f"[{platform}] Latest version: {version}")
        return version

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
        """Walk the patch component of 'base_version' downward.

        Args:
            platform: Platform lane name.
            platform_config: This platform's configuration.
            base_version: Strict ``major.minor.patch`` start (probed first).
            max_steps: Probe budget (defaults to config ``max_steps``).
            max_hits: Stop after this many confirmed builds (defaults to
                config ``max_hits``; None means no limit).
            session: Shared HTTP session.
            timeout: Per-probe timeout in seconds.
            cancel: Stops the walk between probes when set.

        Returns:
            Confirmed versions, newest first.

        Raises:
            ConfigError: If 'base_version' is malformed.
        """
        major, minor, patch = parse_triplet(base_version)
        steps = max_steps if max_steps is not None else platform_config.get("max_steps", 0)
        hits = max_hits if max_hits is not None else platform_config.get("max_hits")

        def candidates() -> Iterator[VersionCandidate]:
            for i in range(steps):
                current = patch - i
                if current < 0:
                    return
                version = format_triplet(major, minor, current)
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
        """Validate redirect_resolve configuration (no network calls)."""
        errors = validate_common(platform_config)

        latest_url = platform_config.get("latest_url")
        if not latest_url:
            errors.append("Missing required field: latest_url")
        elif not isinstance(latest_url, str) or not latest_url.startswith(
            ("http://", "https://")
        ):
            errors.append("latest_url must be an http(s) URL")

        follow = platform_config.get("follow_redirects", False)
        if not isinstance(follow, bool):
            errors.append("follow_redirects must be true or false")

        return errors


# Register this strategy when the module is imported
register_strategy("redirect_resolve", RedirectResolveStrategy)
