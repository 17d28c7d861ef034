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

"""Configuration validation module.

This module checks a merged configuration without making network calls, so
mistakes surface before a discovery run starts probing hundreds of URLs.

Validation Checks:

- Required top-level sections present (platforms, modules)
- Each platform names a registered discovery strategy
- Strategy-specific configuration is valid (URL templates, walk bounds)
- Probe and pool settings are positive numbers
- The module catalog is a list of unique names

Example:
    Validate a config and handle results:
        ```python
        from discordbuilds.config import load_effective_config
        from discordbuilds.validation import validate_config

        result = validate_config(load_effective_config(require_store=False))
        if result.status == "valid":
            print(f"{result.platform_count} platform(s) configured")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from typing import Any

from discordbuilds.discovery import get_strategy, platform_module_base
from discordbuilds.exceptions import ConfigError
from discordbuilds.results import ValidationResult

__all__ = ["validate_config"]


def _positive_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and value > 0
    )


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_settings(config: dict[str, Any], errors: list[str]) -> None:
    http = config.get("http") or {}
    if not isinstance(http, dict):
        errors.append("http: Must be a dictionary")
    else:
        if "timeout" in http and not _positive_number(http["timeout"]):
            errors.append("http.timeout: Must be a positive number of seconds")
        max_redirects = http.get("max_redirects", 0)
        if isinstance(max_redirects, bool) or not isinstance(max_redirects, int) or max_redirects < 0:
            errors.append("http.max_redirects: Must be a non-negative integer")
        retries = http.get("retries", 0)
        if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
            errors.append("http.retries: Must be a non-negative integer")

    discovery = config.get("discovery") or {}
    if isinstance(discovery, dict) and "lanes" in discovery:
        if not _positive_int(discovery["lanes"]):
            errors.append("discovery.lanes: Must be a positive integer")

    api = config.get("api") or {}
    if isinstance(api, dict) and "page_limit" in api:
        if not _positive_int(api["page_limit"]):
            errors.append("api.page_limit: Must be a positive integer")


def _validate_modules(
    config: dict[str, Any], errors: list[str], warnings: list[str]
) -> None:
    if "modules" not in config:
        errors.append("Missing required field: modules")
        return
    modules = config["modules"]
    if not isinstance(modules, dict):
        errors.append("modules: Must be a dictionary")
        return

    if "max_workers" in modules and not _positive_int(modules["max_workers"]):
        errors.append("modules.max_workers: Must be a positive integer")

    catalog = modules.get("catalog")
    if not isinstance(catalog, list):
        errors.append("modules.catalog: Must be a list of module names")
        return
    if not catalog:
        warnings.append("modules.catalog is empty; no modules will be probed")
    for idx, name in enumerate(catalog):
        if not isinstance(name, str) or not name:
            errors.append(f"modules.catalog[{idx}]: Must be a non-empty string")
    names = [n for n in catalog if isinstance(n, str)]
    if len(set(names)) != len(names):
        errors.append("modules.catalog: Module names must be unique")


def validate_config(config: dict[str, Any], verbose: bool = False) -> ValidationResult:
    """Validate a merged configuration without touching the network.

    This function checks:

    1. Required top-level sections are present
    2. Each platform has a known strategy
    3. Strategy-specific configuration is valid
    4. HTTP, pool and paging settings are sane
    5. The module catalog is well formed

    Does NOT:

    - Make network calls
    - Check that the store location is writable
    - Verify that URLs resolve

    Args:
        config: Merged configuration (see load_effective_config).
        verbose: If True, log validation progress.

    Returns:
        The validation outcome; status is "valid" if no errors were found.

    """
    from discordbuilds.logging import get_global_logger

    logger = get_global_logger()
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(config, dict):
        return ValidationResult(
            status="invalid",
            errors=["Configuration must be a dictionary/mapping"],
            warnings=[],
            platform_count=0,
        )

    _validate_settings(config, errors)
    _validate_modules(config, errors, warnings)

    platforms = config.get("platforms")
    if platforms is None:
        errors.append("Missing required field: platforms")
        platforms = {}
    elif not isinstance(platforms, dict):
        errors.append("Field 'platforms' must be a dictionary")
        platforms = {}
    elif not platforms:
        errors.append("Field 'platforms' must contain at least one platform")

    for name, platform_config in platforms.items():
        prefix = f"platforms.{name}"

        if not isinstance(platform_config, dict):
            errors.append(f"{prefix}: Platform must be a dictionary")
            continue

        strategy_name = platform_config.get("strategy")
        if strategy_name is None:
            errors.append(f"{prefix}: Missing required field: strategy")
            continue
        if not isinstance(strategy_name, str):
            errors.append(f"{prefix}.strategy: Must be a string")
            continue

        try:
            strategy = get_strategy(strategy_name)
        except ConfigError as err:
            errors.append(f"{prefix}.strategy: {err}")
            continue

        if verbose:
            logger.verbose("CONFIG", f"[OK] Platform '{name}' uses strategy: {strategy_name}")

        for error in strategy.validate_config(platform_config):
            errors.append(f"{prefix}: {error}")

        if not platform_module_base(platform_config):
            warnings.append(f"{prefix}: no module base URL; modules will not be probed")

    status = "valid" if not errors else "invalid"

    if verbose:
        if status == "valid":
            logger.verbose("CONFIG", "[OK] Configuration is valid!")
        else:
            logger.verbose("CONFIG", f"[ERROR] Configuration has {len(errors)} error(s)")

    return ValidationResult(
        status=status,
        errors=errors,
        warnings=warnings,
        platform_count=len(platforms),
    )
