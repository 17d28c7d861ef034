"""
Tests for discordbuilds.discovery.modules.

Tests module enumeration including:
- Module URL shape
- Full catalog coverage of the result map
- Platforms without modules
"""

from __future__ import annotations

import threading

import requests_mock

from discordbuilds.discovery import enumerate_modules, module_url, platform_module_base
from discordbuilds.store import MODULE_NAMES

LINUX_BASE = "https://stable.dl2.discordapp.net/apps/linux"


class TestModuleUrl:
    """Tests for module URL construction."""

    def test_module_url(self):
        assert (
            module_url(LINUX_BASE, "0.0.77", "discord_voice")
            == f"{LINUX_BASE}/0.0.77/modules/discord_voice-1.zip"
        )

    def test_trailing_slash_in_base(self):
        assert module_url(LINUX_BASE + "/", "0.0.77", "discord_rpc").startswith(
            f"{LINUX_BASE}/0.0.77/"
        )


class TestPlatformModuleBase:
    """Tests for where a platform publishes modules."""

    def test_defaults_to_base_url(self):
        assert platform_module_base({"base_url": LINUX_BASE}) == LINUX_BASE

    def test_explicit_module_base(self):
        cfg = {"base_url": LINUX_BASE, "module_base_url": "https://m.example"}
        assert platform_module_base(cfg) == "https://m.example"

    def test_explicit_null_disables_modules(self):
        cfg = {"base_url": LINUX_BASE, "module_base_url": None}
        assert platform_module_base(cfg) is None


class TestEnumerateModules:
    """Tests for probing the module catalog of one version."""

    def test_every_catalog_key_present(self):
        """Test the map has exactly the 12 catalog keys."""
        with requests_mock.Mocker() as m:
            m.head(requests_mock.ANY, status_code=404)
            m.head(
                module_url(LINUX_BASE, "0.0.77", "discord_voice"),
                headers={"Content-Length": "2048", "ETag": "v1"},
            )
            m.head(
                module_url(LINUX_BASE, "0.0.77", "discord_utils"),
                headers={"Content-Length": "512"},
            )
            modules = enumerate_modules(LINUX_BASE, "0.0.77")

        assert list(modules) == MODULE_NAMES
        assert len(modules) == 12
        assert m.call_count == 12

        voice = modules["discord_voice"]
        assert voice is not None
        assert voice.version == "0.0.77"
        assert voice.module_name == "discord_voice"
        assert voice.download_size == 2048
        assert voice.download_etag == "v1"
        assert voice.download_link.endswith("/0.0.77/modules/discord_voice-1.zip")

        assert modules["discord_utils"].download_size == 512
        missing = [name for name, rec in modules.items() if rec is None]
        assert len(missing) == 10

    def test_no_module_base_probes_nothing(self):
        """Test a platform without modules gets a full map of None."""
        with requests_mock.Mocker() as m:
            modules = enumerate_modules(None, "1.0.9028")

        assert m.call_count == 0
        assert set(modules) == set(MODULE_NAMES)
        assert all(rec is None for rec in modules.values())

    def test_all_missing(self):
        """Test 404s for every module still produce every key."""
        with requests_mock.Mocker() as m:
            m.head(requests_mock.ANY, status_code=404)
            modules = enumerate_modules(LINUX_BASE, "0.0.1", max_workers=2)

        assert list(modules) == MODULE_NAMES
        assert all(rec is None for rec in modules.values())

    def test_custom_catalog(self):
        with requests_mock.Mocker() as m:
            m.head(requests_mock.ANY, headers={"Content-Length": "1"})
            modules = enumerate_modules(
                LINUX_BASE, "0.0.5", catalog=["discord_voice", "discord_rpc"]
            )

        assert list(modules) == ["discord_voice", "discord_rpc"]
        assert all(rec is not None for rec in modules.values())

    def test_cancelled_run_skips_probes(self):
        cancel = threading.Event()
        cancel.set()
        with requests_mock.Mocker() as m:
            m.head(requests_mock.ANY, headers={"Content-Length": "1"})
            modules = enumerate_modules(LINUX_BASE, "0.0.5", cancel=cancel)

        assert m.call_count == 0
        assert list(modules) == MODULE_NAMES
