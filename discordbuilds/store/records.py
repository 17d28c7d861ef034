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

"""Stored record types for discordbuilds.

Two record kinds are persisted:

- BuildRecord: one installer build, keyed by (platform, version)
- ModuleRecord: one downloadable module of a build, keyed by
  (version, module_name)

Records are frozen dataclasses. Documents in the store keep the camelCase
field names the archive API has always served (``installerLink``,
``downloadSize``, ``module_name``...), so to_document()/from_document()
translate between the two.

Several link/size/etag fields are reserved for features that do not exist
yet (mirror hosting, bundled module downloads, custom installers). They are
always present and hold explicit placeholder values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from discordbuilds.versioning.keys import ConfirmedVersion

# Fixed module catalog; every BuildRecord carries exactly these keys.
MODULE_NAMES: list[str] = [
    "discord_desktop_core",
    "discord_erlpack",
    "discord_spellcheck",
    "discord_utils",
    "discord_voice",
    "discord_zstd",
    "discord_krisp",
    "discord_game_utils",
    "discord_cloudsync",
    "discord_rpc",
    "discord_dispatch",
    "discord_modules",
]

PLACEHOLDER_LINK = "placeholder"
PLACEHOLDER_SIZE = 0
PLACEHOLDER_ETAG = ""


@dataclass(frozen=True)
class ModuleRecord:
    """A module artifact that probed as existing.

    Attributes:
        version: Build version the module belongs to.
        module_name: Catalog name (e.g., "discord_voice").
        download_size: Content-Length of the module zip.
        download_etag: ETag of the module zip.
        download_link: Upstream CDN URL.
        mirror_link: Reserved for mirror hosting.
        mirror_size: Reserved for mirror hosting.
        mirror_etag: Reserved for mirror hosting.
    """

    version: str
    module_name: str
    download_size: int
    download_etag: str
    download_link: str
    mirror_link: str = PLACEHOLDER_LINK
    mirror_size: int = PLACEHOLDER_SIZE
    mirror_etag: str = PLACEHOLDER_ETAG

    @property
    def key(self) -> tuple[str, str]:
        return (self.version, self.module_name)

    def to_document(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "module_name": self.module_name,
            "downloadSize": self.download_size,
            "mirrorSize": self.mirror_size,
            "downloadEtag": self.download_etag,
            "mirrorEtag": self.mirror_etag,
            "downloadLink": self.download_link,
            "mirrorLink": self.mirror_link,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> ModuleRecord:
        return cls(
            version=doc["version"],
            module_name=doc["module_name"],
            download_size=int(doc.get("downloadSize", 0) or 0),
            download_etag=doc.get("downloadEtag", "") or "",
            download_link=doc.get("downloadLink", "") or "",
            mirror_link=doc.get("mirrorLink", PLACEHOLDER_LINK),
            mirror_size=int(doc.get("mirrorSize", 0) or 0),
            mirror_etag=doc.get("mirrorEtag", "") or "",
        )


@dataclass(frozen=True)
class BuildRecord:
    """One archived installer build.

    Attributes:
        platform: Platform lane name ("windows", "mac", "linux").
        version: Version string exactly as discovered.
        installer_link: Upstream installer URL.
        installer_size: Installer Content-Length.
        installer_etag: Installer ETag.
        modules: One entry per catalog module; None when not available.
        mirror_link, download_all_mod_link, custom_install_link,
        nekocord_time_machine_link: Reserved links (placeholder).
        mirror_size, download_all_mod_size, custom_install_size:
            Reserved sizes (0).
        mirror_etag, download_all_mod_etag, custom_install_etag:
            Reserved etags ("").
    """

    platform: str
    version: str
    installer_link: str
    installer_size: int
    installer_etag: str
    modules: dict[str, ModuleRecord | None] = field(default_factory=dict)
    mirror_link: str = PLACEHOLDER_LINK
    download_all_mod_link: str = PLACEHOLDER_LINK
    custom_install_link: str = PLACEHOLDER_LINK
    nekocord_time_machine_link: str = PLACEHOLDER_LINK
    mirror_size: int = PLACEHOLDER_SIZE
    download_all_mod_size: int = PLACEHOLDER_SIZE
    custom_install_size: int = PLACEHOLDER_SIZE
    mirror_etag: str = PLACEHOLDER_ETAG
    download_all_mod_etag: str = PLACEHOLDER_ETAG
    custom_install_etag: str = PLACEHOLDER_ETAG

    @property
    def key(self) -> tuple[str, str]:
        return (self.platform, self.version)

    def to_document(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "version": self.version,
            "installerLink": self.installer_link,
            "mirrorLink": self.mirror_link,
            "downloadAllModLink": self.download_all_mod_link,
            "customInstallLink": self.custom_install_link,
            "nekocordTimeMachineLink": self.nekocord_time_machine_link,
            "installerSize": self.installer_size,
            "mirrorSize": self.mirror_size,
            "downloadAllModSize": self.download_all_mod_size,
            "customInstallSize": self.custom_install_size,
            "installerEtag": self.installer_etag,
            "mirrorEtag": self.mirror_etag,
            "downloadAllModEtag": self.download_all_mod_etag,
            "customInstallEtag": self.custom_install_etag,
            "modules": {
                name: (rec.to_document() if rec is not None else None)
                for name, rec in self.modules.items()
            },
        }

    @classmethod
    def from_document(
        cls, doc: dict[str, Any], catalog: list[str] | None = None
    ) -> BuildRecord:
        """Rebuild a record from a stored document.

        When 'catalog' is given, the modules map is widened to exactly those
        keys so readers never see a missing module key.
        """
        raw_modules = doc.get("modules") or {}
        names = catalog if catalog is not None else list(raw_modules)
        modules = {
            name: (
                ModuleRecord.from_document(raw_modules[name])
                if raw_modules.get(name)
                else None
            )
            for name in names
        }
        return cls(
            platform=doc["platform"],
            version=doc["version"],
            installer_link=doc.get("installerLink", ""),
            installer_size=int(doc.get("installerSize", 0) or 0),
            installer_etag=doc.get("installerEtag", "") or "",
            modules=modules,
            mirror_link=doc.get("mirrorLink", PLACEHOLDER_LINK),
            download_all_mod_link=doc.get("downloadAllModLink", PLACEHOLDER_LINK),
            custom_install_link=doc.get("customInstallLink", PLACEHOLDER_LINK),
            nekocord_time_machine_link=doc.get(
                "nekocordTimeMachineLink", PLACEHOLDER_LINK
            ),
            mirror_size=int(doc.get("mirrorSize", 0) or 0),
            download_all_mod_size=int(doc.get("downloadAllModSize", 0) or 0),
            custom_install_size=int(doc.get("customInstallSize", 0) or 0),
            mirror_etag=doc.get("mirrorEtag", "") or "",
            download_all_mod_etag=doc.get("downloadAllModEtag", "") or "",
            custom_install_etag=doc.get("customInstallEtag", "") or "",
        )


def assemble_build(
    confirmed: ConfirmedVersion,
    modules: dict[str, ModuleRecord | None],
    catalog: list[str],
) -> BuildRecord:
    """Merge installer metadata and module metadata into a BuildRecord.

    Args:
        confirmed: The confirmed installer probe for this version.
        modules: Module records keyed by catalog name (may be partial).
        catalog: The full module catalog; every name gets a key.

    Returns:
        A BuildRecord whose modules map has exactly the catalog keys.
    """
    candidate = confirmed.candidate
    return BuildRecord(
        platform=candidate.platform,
        version=candidate.version,
        installer_link=candidate.source_url,
        installer_size=confirmed.probe.size,
        installer_etag=confirmed.probe.etag,
        modules={name: modules.get(name) for name in catalog},
    )
