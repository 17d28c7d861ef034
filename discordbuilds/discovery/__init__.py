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

"""Discovery strategies for discordbuilds.

This package finds which Discord desktop builds exist on the CDN. Each
platform lane is driven by a strategy selected by name in the platform's
configuration; every strategy implements resolve() and probe_range() (see
base.PlatformStrategy).

Available Strategies:
    redirect_resolve : RedirectResolveStrategy
        Read the latest version from a redirecting "latest" endpoint and
        walk patch numbers downward (Windows).
    range_probe : RangeProbeStrategy
        Walk a flat ``0.0.N`` counter downward from a configured start
        (macOS, Linux).

Confirmed builds are completed with enumerate_modules(), which probes the
fixed module catalog for one version.

Example:
    Discover the newest macOS builds:

        from discordbuilds.discovery import get_strategy

        platform_config = config["platforms"]["mac"]
        strategy = get_strategy(platform_config["strategy"])
        start = strategy.resolve("mac", platform_config)
        for confirmed in strategy.probe_range("mac", platform_config, start, max_hits=5):
            print(confirmed.version, confirmed.probe.size)

"""

# Import strategy modules to trigger self-registration
from . import (
    range_probe,  # noqa: F401
    redirect_resolve,  # noqa: F401
)
from .base import PlatformStrategy, available_strategies, get_strategy
from .modules import enumerate_modules, module_url, platform_module_base

__all__ = [
    "PlatformStrategy",
    "available_strategies",
    "enumerate_modules",
    "get_strategy",
    "module_url",
    "platform_module_base",
]
