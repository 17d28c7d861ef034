"""
Configuration loading and merging for discordbuilds.

Configuration Layers
--------------------
1. **Built-in defaults** (discordbuilds/config/defaults.yaml)
   - Platform endpoints and URL templates, walk bounds, probe timeout,
     module catalog and pool sizes
   - Always loaded

2. **User config** (any YAML file passed as 'config_path')
   - Optional; overrides the built-in defaults

3. **Environment** (process environment, plus a ``.env`` file if present)
   - ``DISCORDBUILDS_STORE`` overrides ``store.path``

4. **Explicit argument** ('store_path')
   - Wins over everything else (the CLI's --store flag)

Merge Behavior
--------------
The loader performs deep merging with "last wins" semantics:
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Setting a key to null in a user config therefore clears it (for example
``module_base_url: null`` turns off module enumeration for a platform).

Error Handling
--------------
- ConfigError: missing or unparseable config file, non-mapping YAML, no store
  location when one is required
- All errors are chained with "from err" for better debugging

Examples
--------
Basic usage:

    >>> from pathlib import Path
    >>> from discordbuilds.config import load_effective_config
    >>> cfg = load_effective_config(Path("discordbuilds.yaml"))
    >>> cfg["platforms"]["linux"]["start"]
    77

Only the probe settings are needed (no store):

    >>> cfg = load_effective_config(require_store=False)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
import yaml

from discordbuilds.exceptions import ConfigError

DEFAULTS_FILE = Path(__file__).with_name("defaults.yaml")
STORE_ENV_VAR = "DISCORDBUILDS_STORE"

# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> dict[str, Any]:
    """
    Load a YAML mapping from 'p'.

    An empty file is an empty mapping.

    Raises:
      ConfigError - when the file is missing, unreadable, not valid YAML or
                    not a mapping at the top level
    """
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    except OSError as err:
        raise ConfigError(f"Cannot read config file: {p}: {err}") from err
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML must be a mapping (dict): {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def _debug_dump(logger, title: str, data: dict[str, Any]) -> None:
    logger.debug("CONFIG", f"--- {title} ---")
    yaml_str = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    for line in yaml_str.splitlines():
        if line.strip():
            logger.debug("CONFIG", line)


# -------------------------------
# Public API
# -------------------------------


def load_effective_config(
    config_path: Path | None = None,
    *,
    store_path: Path | str | None = None,
    require_store: bool = True,
) -> dict[str, Any]:
    """
    Load and merge the effective configuration.

    Steps
      1) Load the built-in defaults.
      2) Deep-merge the user config file, if given.
      3) Load ``.env`` (never overriding variables already set) and apply
         ``DISCORDBUILDS_STORE``.
      4) Apply the explicit 'store_path'.
      5) Check a store location is configured (if 'require_store').

    Returns
      A merged configuration dict. ``store.path`` is a string or None.

    Raises
      ConfigError on unreadable/invalid YAML and when no store location is
      configured but one is required. Nothing has touched the network at
      that point.
    """
    from discordbuilds.logging import get_global_logger

    logger = get_global_logger()

    logger.verbose("CONFIG", f"Loading defaults: {DEFAULTS_FILE.name}")
    merged = _load_yaml_file(DEFAULTS_FILE)
    layers_merged = 1

    if config_path is not None:
        config_path = Path(config_path).resolve()
        logger.verbose("CONFIG", f"Loading: {config_path}")
        user_cfg = _load_yaml_file(config_path)
        _debug_dump(logger, f"Content from {config_path.name}", user_cfg)
        merged = _deep_merge_dicts(merged, user_cfg)
        layers_merged += 1

    load_dotenv(find_dotenv(usecwd=True))
    env_store = os.getenv(STORE_ENV_VAR)
    if env_store:
        logger.verbose("CONFIG", f"Store location from {STORE_ENV_VAR}")
        merged = _deep_merge_dicts(merged, {"store": {"path": env_store}})
        layers_merged += 1

    if store_path is not None:
        merged = _deep_merge_dicts(merged, {"store": {"path": str(store_path)}})
        layers_merged += 1

    logger.verbose("CONFIG", f"Deep merged {layers_merged} layer(s)")
    _debug_dump(logger, "Final Merged Configuration", merged)

    store_cfg = merged.get("store")
    if not isinstance(store_cfg, dict):
        store_cfg = {}
        merged["store"] = store_cfg
    if require_store and not store_cfg.get("path"):
        raise ConfigError(
            "No store location configured. Set store.path in the config file, "
            f"the {STORE_ENV_VAR} environment variable, or pass --store."
        )

    return merged
