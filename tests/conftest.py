"""
Pytest configuration and shared fixtures for discordbuilds tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import yaml

from discordbuilds.store import MODULE_NAMES, JsonBuildStore

MAC_BASE = "https://stable.dl2.discordapp.net/apps/osx"
LINUX_BASE = "https://stable.dl2.discordapp.net/apps/linux"
WIN_LATEST = (
    "https://discord.com/api/downloads/distributions/app/installers/latest"
    "?channel=stable&platform=win&arch=x64"
)
WIN_DISTRO = "https://stable.dl2.discordapp.net/distro/app/stable/win/x64"


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's environment and .env out of every test."""
    # setenv first so teardown also removes values a .env file loaded
    monkeypatch.setenv("DISCORDBUILDS_STORE", "")
    monkeypatch.delenv("DISCORDBUILDS_STORE")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("config.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def mac_config() -> dict[str, Any]:
    """Range-probe platform config with a short walk."""
    return {
        "strategy": "range_probe",
        "base_url": MAC_BASE,
        "installer_url": "{base_url}/{version}/Discord.dmg",
        "start": 329,
        "max_steps": 5,
    }


@pytest.fixture
def windows_config() -> dict[str, Any]:
    """Redirect-resolve platform config with a short walk."""
    return {
        "strategy": "redirect_resolve",
        "latest_url": WIN_LATEST,
        "follow_redirects": False,
        "installer_url": WIN_DISTRO + "/{version}/DiscordSetup.exe",
        "max_steps": 5,
        "max_hits": 3,
        "module_base_url": None,
    }


@pytest.fixture
def sample_config(tmp_test_dir: Path, mac_config, windows_config) -> dict[str, Any]:
    """
    Provide a complete, valid configuration with small walk bounds.

    Linux is included with a walk of two candidates.
    """
    return {
        "store": {"path": str(tmp_test_dir / "builds.json")},
        "http": {"timeout": 1, "max_redirects": 3, "retries": 0},
        "discovery": {"lanes": 3},
        "modules": {"max_workers": 4, "catalog": list(MODULE_NAMES)},
        "api": {"page_limit": 20},
        "platforms": {
            "windows": copy.deepcopy(windows_config),
            "mac": copy.deepcopy(mac_config),
            "linux": {
                "strategy": "range_probe",
                "base_url": LINUX_BASE,
                "installer_url": "{base_url}/{version}/discord-{version}.deb",
                "start": 77,
                "max_steps": 2,
            },
        },
    }


@pytest.fixture
def fake_store(tmp_test_dir: Path) -> JsonBuildStore:
    """Provide an empty JSON store backed by a temporary file."""
    store = JsonBuildStore(tmp_test_dir / "builds.json")
    store.load()
    return store
