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

"""Core version helpers for discordbuilds.

This module is format-agnostic: it does NOT make network calls. It parses,
builds and orders the two version shapes Discord publishes:

- ``major.minor.patch`` (Windows installers, e.g. "1.0.9028")
- ``0.0.N`` (macOS/Linux, a flat monotonic counter)

Version strings are stored exactly as discovered; nothing here normalizes one
family into the other.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import TYPE_CHECKING

from discordbuilds.exceptions import ConfigError

if TYPE_CHECKING:
    from discordbuilds.io.prober import ProbeResult

# ----------------------------
# Shared DTOs
# ----------------------------


@dataclass(frozen=True)
class VersionCandidate:
    """A hypothesized build that has not been confirmed to exist.

    Attributes:
        platform: Platform lane name (e.g., "windows", "mac", "linux").
        version: Version string in the platform's own format.
        source_url: Installer URL that will be probed.
    """

    platform: str
    version: str
    source_url: str


@dataclass(frozen=True)
class ConfirmedVersion:
    """A candidate whose installer probe reported the build as existing.

    Attributes:
        candidate: The probed candidate.
        probe: Probe outcome (exists=True, size > 0).
    """

    candidate: VersionCandidate
    probe: ProbeResult

    @property
    def version(self) -> str:
        return self.candidate.version


# ----------------------------
# Sentinels
# ----------------------------

UNKNOWN_VERSION = "Unknown Version"
ERROR_VERSION = "Error fetching version"

_SENTINELS = frozenset({UNKNOWN_VERSION, ERROR_VERSION})

_TRIPLET = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def is_sentinel(version: str | None) -> bool:
    """Return True if 'version' is a placeholder rather than a real version.

    Resolvers return a sentinel instead of raising; callers treat it as
    "skip this platform for this run".
    """
    return version is None or version in _SENTINELS


# ----------------------------
# Parsing and formatting
# ----------------------------


def parse_triplet(version: str) -> tuple[int, int, int]:
    """Parse a strict ``major.minor.patch`` string.

    Args:
        version: Version string such as "1.0.9028".

    Returns:
        A tuple (major, minor, patch) of non-negative integers.

    Raises:
        ConfigError: If the string is not exactly three dot-separated
            integers. Walking backwards from a garbage base would probe
            nonsense URLs, so this fails fast instead.

    Example:
        >>> parse_triplet("1.0.9028")
        (1, 0, 9028)
    """
    m = _TRIPLET.match(version.strip()) if isinstance(version, str) else None
    if not m:
        raise ConfigError(
            f"Expected a major.minor.patch version, got {version!r}"
        )
    return int(m.group(1)), int(m.group(2)), int(m.group(3))


def format_triplet(major: int, minor: int, patch: int) -> str:
    """Join three integers into a ``major.minor.patch`` string."""
    return f"{major}.{minor}.{patch}"


def counter_version(n: int) -> str:
    """Return the ``0.0.N`` version string for a flat build counter."""
    return f"0.0.{n}"


# ----------------------------
# Ordering
# ----------------------------


def version_sort_key(version: str) -> tuple:
    """Compute a key that orders versions numerically.

    Numeric versions compare component by component, so "0.0.100" sorts
    above "0.0.99". Anything that is not purely numeric sorts below every
    numeric version and falls back to its raw text.
    """
    parts = version.split(".")
    if parts and all(p.isdigit() for p in parts):
        return (1, tuple(int(p) for p in parts), "")
    return (0, (), version)
