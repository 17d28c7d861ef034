"""
Tests for discordbuilds.store module.

Tests record assembly and the JSON document store including:
- Record documents and placeholder fields
- Upsert idempotence and key violations
- Paginated, newest-first reads
- Loading, saving and corrupted files
- Collection setup and teardown
"""

from __future__ import annotations

import json

import pytest

from discordbuilds.exceptions import StoreError
from discordbuilds.io import ProbeResult
from discordbuilds.store import (
    MODULE_NAMES,
    BuildRecord,
    JsonBuildStore,
    ModuleRecord,
    assemble_build,
)
from discordbuilds.versioning import ConfirmedVersion, VersionCandidate


def confirmed(platform: str, version: str, size: int = 100, etag: str = "e") -> ConfirmedVersion:
    return ConfirmedVersion(
        candidate=VersionCandidate(
            platform=platform,
            version=version,
            source_url=f"https://cdn.example/{platform}/{version}/installer",
        ),
        probe=ProbeResult(exists=True, size=size, etag=etag, status_code=200),
    )


def module(version: str, name: str = "discord_voice", size: int = 10) -> ModuleRecord:
    return ModuleRecord(
        version=version,
        module_name=name,
        download_size=size,
        download_etag="m",
        download_link=f"https://cdn.example/{version}/modules/{name}-1.zip",
    )


def build(platform: str, version: str, **modules: ModuleRecord) -> BuildRecord:
    return assemble_build(confirmed(platform, version), modules, MODULE_NAMES)


class TestAssembleBuild:
    """Tests for merging installer and module metadata."""

    def test_installer_fields(self):
        record = assemble_build(confirmed("mac", "0.0.329", 104857600, "abc123"), {}, MODULE_NAMES)

        assert record.key == ("mac", "0.0.329")
        assert record.installer_size == 104857600
        assert record.installer_etag == "abc123"
        assert record.installer_link == "https://cdn.example/mac/0.0.329/installer"

    def test_every_module_key_present(self):
        record = build("linux", "0.0.77", discord_voice=module("0.0.77"))

        assert list(record.modules) == MODULE_NAMES
        assert record.modules["discord_voice"].download_size == 10
        assert record.modules["discord_rpc"] is None

    def test_unknown_modules_are_dropped(self):
        record = assemble_build(
            confirmed("linux", "0.0.77"),
            {"not_a_module": module("0.0.77", "not_a_module")},
            MODULE_NAMES,
        )
        assert "not_a_module" not in record.modules

    def test_placeholders(self):
        doc = build("mac", "0.0.1").to_document()

        for key in ("mirrorLink", "downloadAllModLink", "customInstallLink", "nekocordTimeMachineLink"):
            assert doc[key] == "placeholder"
        for key in ("mirrorSize", "downloadAllModSize", "customInstallSize"):
            assert doc[key] == 0
        for key in ("mirrorEtag", "downloadAllModEtag", "customInstallEtag"):
            assert doc[key] == ""


class TestRecordDocuments:
    """Tests for document conversion."""

    def test_build_document_round_trip(self):
        record = build("linux", "0.0.77", discord_voice=module("0.0.77"))
        doc = record.to_document()

        assert doc["installerSize"] == 100
        assert doc["modules"]["discord_voice"]["downloadSize"] == 10
        assert doc["modules"]["discord_rpc"] is None
        assert BuildRecord.from_document(doc, MODULE_NAMES) == record

    def test_from_document_widens_modules(self):
        doc = build("mac", "0.0.2").to_document()
        doc["modules"] = {}
        record = BuildRecord.from_document(doc, MODULE_NAMES)
        assert list(record.modules) == MODULE_NAMES

    def test_module_document_fields(self):
        doc = module("0.0.5").to_document()
        assert doc["module_name"] == "discord_voice"
        assert doc["mirrorLink"] == "placeholder"
        assert doc["downloadLink"].endswith("discord_voice-1.zip")


class TestUpsert:
    """Tests for keyed, idempotent writes."""

    def test_upsert_is_idempotent(self, fake_store):
        record = build("mac", "0.0.329")
        fake_store.upsert_build(record)
        fake_store.upsert_build(record)

        assert fake_store.count_builds() == 1
        assert fake_store.get_build("mac", "0.0.329") == record

    def test_upsert_replaces(self, fake_store):
        fake_store.upsert_build(assemble_build(confirmed("mac", "0.0.329", size=1), {}, MODULE_NAMES))
        fake_store.upsert_build(assemble_build(confirmed("mac", "0.0.329", size=2), {}, MODULE_NAMES))

        assert fake_store.count_builds() == 1
        assert fake_store.get_build("mac", "0.0.329").installer_size == 2

    def test_same_version_different_platform(self, fake_store):
        fake_store.upsert_build(build("mac", "0.0.77"))
        fake_store.upsert_build(build("linux", "0.0.77"))

        assert fake_store.count_builds() == 2
        assert fake_store.count_builds("linux") == 1

    def test_upsert_module(self, fake_store):
        fake_store.upsert_module(module("0.0.77"))
        fake_store.upsert_module(module("0.0.77", size=20))

        assert fake_store.get_module("0.0.77", "discord_voice").download_size == 20
        assert fake_store.get_module("0.0.76", "discord_voice") is None

    def test_build_without_key_raises(self, fake_store):
        record = BuildRecord(
            platform="", version="0.0.1", installer_link="x", installer_size=1, installer_etag=""
        )
        with pytest.raises(StoreError, match="missing its key"):
            fake_store.upsert_build(record)

    def test_module_without_key_raises(self, fake_store):
        with pytest.raises(StoreError, match="missing its key"):
            fake_store.upsert_module(module(""))


class TestListBuilds:
    """Tests for the paginated read path."""

    def test_newest_first(self, fake_store):
        for n in (9, 100, 99):
            fake_store.upsert_build(build("linux", f"0.0.{n}"))

        page = fake_store.list_builds()
        assert [b.version for b in page.builds] == ["0.0.100", "0.0.99", "0.0.9"]

    def test_pagination(self, fake_store):
        for n in range(45):
            fake_store.upsert_build(build("mac", f"0.0.{n}"))

        page = fake_store.list_builds(platform="mac", page=3, limit=20)

        assert page.pagination == {"total": 45, "page": 3, "limit": 20, "pages": 3}
        assert [b.version for b in page.builds] == [f"0.0.{n}" for n in range(4, -1, -1)]

    def test_page_past_end_is_empty(self, fake_store):
        fake_store.upsert_build(build("mac", "0.0.1"))
        page = fake_store.list_builds(page=5)
        assert page.builds == []
        assert page.total == 1

    def test_platform_filter(self, fake_store):
        fake_store.upsert_build(build("mac", "0.0.1"))
        fake_store.upsert_build(build("windows", "1.0.9028"))

        page = fake_store.list_builds(platform="windows")
        assert [b.platform for b in page.builds] == ["windows"]

    def test_modules_always_full_map(self, fake_store):
        fake_store.upsert_build(build("linux", "0.0.77", discord_voice=module("0.0.77")))

        (record,) = fake_store.list_builds().builds
        assert list(record.modules) == MODULE_NAMES
        assert record.modules["discord_voice"] is not None
        assert record.modules["discord_krisp"] is None

    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (-1, 5)])
    def test_invalid_paging_raises(self, fake_store, page, limit):
        with pytest.raises(ValueError):
            fake_store.list_builds(page=page, limit=limit)


class TestPersistence:
    """Tests for loading and saving the store file."""

    def test_missing_file_is_empty_store(self, tmp_test_dir):
        store = JsonBuildStore(tmp_test_dir / "nope.json")
        store.load()
        assert store.count_builds() == 0
        assert "versions" in store.collection_names()

    def test_open_saves_on_exit(self, tmp_test_dir):
        path = tmp_test_dir / "data" / "builds.json"
        with JsonBuildStore.open(path) as store:
            store.upsert_build(build("mac", "0.0.329"))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert "mac|0.0.329" in data["collections"]["versions"]
        assert data["metadata"]["schema_version"] == "1"

        with JsonBuildStore.open(path) as store:
            assert store.get_build("mac", "0.0.329") is not None

    def test_open_does_not_save_on_error(self, tmp_test_dir):
        path = tmp_test_dir / "builds.json"
        with pytest.raises(RuntimeError):
            with JsonBuildStore.open(path) as store:
                store.upsert_build(build("mac", "0.0.329"))
                raise RuntimeError("boom")

        assert not path.exists()

    def test_corrupted_file_is_left_in_place_on_read(self, tmp_test_dir):
        """Test a plain load reports corruption without moving the archive."""
        path = tmp_test_dir / "builds.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError, match="Corrupted"):
            JsonBuildStore(path).load()

        assert path.read_text(encoding="utf-8") == "{not json"
        assert not (tmp_test_dir / "builds.json.backup").exists()

    def test_corrupted_file_is_backed_up_on_open(self, tmp_test_dir):
        path = tmp_test_dir / "builds.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError, match="backed up"):
            with JsonBuildStore.open(path):
                pass

        assert (tmp_test_dir / "builds.json.backup").exists()
        assert not path.exists()

    def test_file_without_collections_raises(self, tmp_test_dir):
        path = tmp_test_dir / "builds.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(StoreError, match="no collections"):
            JsonBuildStore(path).load()


class TestCollections:
    """Tests for collection setup and teardown."""

    def test_initialize_after_drop(self, fake_store):
        dropped = fake_store.drop()
        assert "versions" in dropped
        assert fake_store.collection_names() == []

        created = fake_store.initialize()
        assert set(created) == {"versions", *MODULE_NAMES}
        assert fake_store.initialize() == []
