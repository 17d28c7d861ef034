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

"""JSON document store for discordbuilds.

This module implements the persistence layer for discovered builds. The
store is a single JSON file holding named collections of documents:

- ``versions``: one document per build, keyed by (platform, version)
- one collection per catalog module (``discord_voice``...), one document per
  version, so a module document is keyed by (version, module_name)

Key Features:

- Upsert-by-key with replace-on-conflict semantics (never append-only)
- Thread-safe upserts: discovery lanes write from worker threads
- Paginated, newest-first reads for the archive API
- Atomic saves (write to a .part file, then rename)
- Corrupted files are backed up and reported instead of silently reset

Example:
    Scoped use around a discovery run:
        ```python
        from pathlib import Path
        from discordbuilds.store import JsonBuildStore

        with JsonBuildStore.open(Path("data/builds.json")) as store:
            store.upsert_build(record)
        # saved on clean exit
        ```

    Reading a page:
        ```python
        store = JsonBuildStore(Path("data/builds.json"))
        store.load()
        page = store.list_builds(platform="mac", page=2)
        print(page.pagination)
        ```

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
import json
import math
from pathlib import Path
import threading
from typing import Any, Protocol

from discordbuilds import __version__
from discordbuilds.exceptions import StoreError
from discordbuilds.store.records import MODULE_NAMES, BuildRecord, ModuleRecord
from discordbuilds.versioning.keys import version_sort_key

VERSIONS_COLLECTION = "versions"
DEFAULT_PAGE_LIMIT = 20
SCHEMA_VERSION = "1"


@dataclass(frozen=True)
class BuildPage:
    """One page of builds for the read path.

    Attributes:
        builds: Builds on this page, newest version first.
        total: Number of builds matching the filter.
        page: 1-based page number.
        limit: Page size.
    """

    builds: list[BuildRecord]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def pagination(self) -> dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
        }


class BuildStore(Protocol):
    """Protocol for stores a discovery run can write into.

    Upserts must be safe to call concurrently for distinct keys. Concurrent
    calls for the same key may resolve in any order (last write wins).
    """

    def upsert_build(self, record: BuildRecord) -> None: ...

    def upsert_module(self, record: ModuleRecord) -> None: ...


def _build_key(platform: str, version: str) -> str:
    return f"{platform}|{version}"


def create_default_store(catalog: list[str] | None = None) -> dict[str, Any]:
    """Create an empty store structure with every collection present."""
    names = catalog if catalog is not None else MODULE_NAMES
    return {
        "metadata": {
            "discordbuilds_version": __version__,
            "schema_version": SCHEMA_VERSION,
            "last_updated": datetime.now(UTC).isoformat(),
        },
        "collections": {name: {} for name in [VERSIONS_COLLECTION, *names]},
    }


class JsonBuildStore:
    """Build archive persisted as a JSON file.

    Attributes:
        store_file: Path to the JSON store file.
        catalog: Module names; one collection each.
        data: In-memory store contents.

    """

    def __init__(self, store_file: Path, catalog: list[str] | None = None):
        self.store_file = Path(store_file)
        self.catalog = list(catalog) if catalog is not None else list(MODULE_NAMES)
        self.data: dict[str, Any] = create_default_store(self.catalog)
        self._lock = threading.Lock()

    @classmethod
    @contextmanager
    def open(
        cls, store_file: Path, catalog: list[str] | None = None
    ) -> Iterator[JsonBuildStore]:
        """Load the store for the duration of a block and save on clean exit.

        Nothing is written when the block raises; discovery runs are
        idempotent, so the next run simply repeats the lost upserts.

        Raises:
            StoreError: If the store cannot be read or written.
        """
        store = cls(store_file, catalog)
        store.load(backup_corrupted=True)
        yield store
        store.save()

    # -------------------------------
    # File I/O
    # -------------------------------

    def load(self, *, backup_corrupted: bool = False) -> dict[str, Any]:
        """Load the store from disk.

        A missing file yields an empty store (created on the next save).

        Args:
            backup_corrupted: Rename a corrupted file to ``<name>.backup``
                before raising. Only the write path asks for this; a read
                leaves the file where it is.

        Raises:
            StoreError: If the file is unreadable or corrupted.
        """
        try:
            with open(self.store_file, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            self.data = create_default_store(self.catalog)
            return self.data
        except json.JSONDecodeError as err:
            if not backup_corrupted:
                raise StoreError(
                    f"Corrupted store file {self.store_file}: {err}"
                ) from err
            backup = self.store_file.with_suffix(self.store_file.suffix + ".backup")
            self.store_file.replace(backup)
            raise StoreError(
                f"Corrupted store file backed up to {backup}: {err}"
            ) from err
        except OSError as err:
            raise StoreError(f"Cannot read store file {self.store_file}: {err}") from err

        if not isinstance(data, dict) or not isinstance(data.get("collections"), dict):
            raise StoreError(f"Store file has no collections: {self.store_file}")

        self.data = data
        return self.data

    def save(self) -> None:
        """Write the store to disk atomically.

        Raises:
            StoreError: If the file cannot be written.
        """
        with self._lock:
            self.data.setdefault("metadata", {})
            self.data["metadata"]["last_updated"] = datetime.now(UTC).isoformat()
            tmp = self.store_file.with_suffix(self.store_file.suffix + ".part")
            try:
                self.store_file.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp, "w", encoding="utf-8") as f:
                    json.dump(self.data, f, indent=2, sort_keys=True)
                    f.write("\n")
                tmp.replace(self.store_file)
            except OSError as err:
                raise StoreError(
                    f"Cannot write store file {self.store_file}: {err}"
                ) from err

    # -------------------------------
    # Collections
    # -------------------------------

    def _collection(self, name: str) -> dict[str, Any]:
        return self.data.setdefault("collections", {}).setdefault(name, {})

    def collection_names(self) -> list[str]:
        return sorted(self.data.get("collections", {}))

    def initialize(self) -> list[str]:
        """Create any missing collections.

        Returns:
            Names of the collections that were created.
        """
        created = []
        with self._lock:
            collections = self.data.setdefault("collections", {})
            for name in [VERSIONS_COLLECTION, *self.catalog]:
                if name not in collections:
                    collections[name] = {}
                    created.append(name)
        return created

    def drop(self) -> list[str]:
        """Drop every collection.

        Returns:
            Names of the collections that were dropped.
        """
        with self._lock:
            dropped = sorted(self.data.get("collections", {}))
            self.data["collections"] = {}
        return dropped

    # -------------------------------
    # Writes
    # -------------------------------

    def upsert_build(self, record: BuildRecord) -> None:
        """Insert or replace the build keyed by (platform, version).

        Raises:
            StoreError: If the record is missing a key field.
        """
        if not record.platform or not record.version:
            raise StoreError(
                f"Build record is missing its key: "
                f"platform={record.platform!r}, version={record.version!r}"
            )
        doc = record.to_document()
        with self._lock:
            self._collection(VERSIONS_COLLECTION)[
                _build_key(record.platform, record.version)
            ] = doc

    def upsert_module(self, record: ModuleRecord) -> None:
        """Insert or replace the module keyed by (version, module_name).

        Raises:
            StoreError: If the record is missing a key field.
        """
        if not record.version or not record.module_name:
            raise StoreError(
                f"Module record is missing its key: "
                f"version={record.version!r}, module_name={record.module_name!r}"
            )
        doc = record.to_document()
        with self._lock:
            self._collection(record.module_name)[record.version] = doc

    # -------------------------------
    # Reads
    # -------------------------------

    def _builds(self, platform: str | None) -> list[dict[str, Any]]:
        with self._lock:
            docs = list(self._collection(VERSIONS_COLLECTION).values())
        if platform:
            docs = [d for d in docs if d.get("platform") == platform]
        return docs

    def get_build(self, platform: str, version: str) -> BuildRecord | None:
        with self._lock:
            doc = self._collection(VERSIONS_COLLECTION).get(
                _build_key(platform, version)
            )
        return BuildRecord.from_document(doc, self.catalog) if doc else None

    def get_module(self, version: str, module_name: str) -> ModuleRecord | None:
        with self._lock:
            doc = self._collection(module_name).get(version)
        return ModuleRecord.from_document(doc) if doc else None

    def count_builds(self, platform: str | None = None) -> int:
        return len(self._builds(platform))

    def list_builds(
        self,
        platform: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> BuildPage:
        """Return one page of builds, newest version first.

        Args:
            platform: Only builds of this platform (all platforms if None).
            page: 1-based page number.
            limit: Page size.

        Returns:
            The page with pagination metadata. Each build's modules map has
                every catalog key, None for modules that are not available.

        Raises:
            ValueError: If page or limit is below 1.
        """
        if page < 1 or limit < 1:
            raise ValueError(f"page and limit must be >= 1, got {page}, {limit}")

        docs = sorted(
            self._builds(platform),
            key=lambda d: (version_sort_key(d["version"]), d.get("platform", "")),
            reverse=True,
        )
        skip = (page - 1) * limit
        window = docs[skip : skip + limit]
        return BuildPage(
            builds=[BuildRecord.from_document(d, self.catalog) for d in window],
            total=len(docs),
            page=page,
            limit=limit,
        )
