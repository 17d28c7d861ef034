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

"""Public API return types for discordbuilds.

This module defines dataclasses for return values from public API functions
(discovery runs, latest-version lookups and config validation).

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from discordbuilds.core import discover_builds

        result = discover_builds(config, store)
        for lane in result.platforms:
            print(lane.platform, lane.latest_version, len(lane.versions))
        ```

Note:
    Only public API return types belong in this module. Domain types
    (like ConfirmedVersion or BuildRecord) remain co-located with their
    related logic.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlatformResult:
    """Outcome of one platform lane in a discovery run.

    Attributes:
        platform: Platform lane name.
        strategy: Discovery strategy used (e.g., "range_probe").
        latest_version: Version the walk started from, or a sentinel.
        versions: Confirmed versions that were upserted, newest first.
        modules_found: Number of module records upserted.
        skipped: True when the lane was skipped (unresolvable start).
    """

    platform: str
    strategy: str
    latest_version: str
    versions: list[str]
    modules_found: int
    skipped: bool


@dataclass(frozen=True)
class DiscoveryResult:
    """Result of a whole discovery run.

    Attributes:
        platforms: One entry per platform lane, in configuration order.
    """

    platforms: list[PlatformResult]

    @property
    def build_count(self) -> int:
        return sum(len(p.versions) for p in self.platforms)

    @property
    def module_count(self) -> int:
        return sum(p.modules_found for p in self.platforms)


@dataclass(frozen=True)
class LatestVersion:
    """Latest published build of one platform.

    Attributes:
        platform: Platform lane name.
        version: Extracted version, or "Error fetching version".
        installer_link: Final URL of the redirect chain ("" on error).
        installer_size: Content-Length of the installer (0 when unknown).
        installer_etag: ETag of the installer ("" when unknown).
    """

    platform: str
    version: str
    installer_link: str
    installer_size: int
    installer_etag: str


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a configuration.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        platform_count: Number of configured platforms.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    platform_count: int
