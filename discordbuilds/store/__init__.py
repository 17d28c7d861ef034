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

"""Build record storage for discordbuilds.

This package holds the archive's data contract and its document store:

- BuildRecord / ModuleRecord: stored record types
- assemble_build: merge installer and module metadata into a BuildRecord
- JsonBuildStore: keyed upserts and paginated reads over a JSON file

Public API:

- BuildStore: protocol any store handed to a discovery run must satisfy
- BuildPage: one page of builds with pagination metadata
- MODULE_NAMES: the fixed module catalog

Example:
    Basic usage:

        from pathlib import Path
        from discordbuilds.store import JsonBuildStore

        with JsonBuildStore.open(Path("data/builds.json")) as store:
            page = store.list_builds(platform="linux")
            for build in page.builds:
                print(build.version, build.installer_size)

"""

from .json_store import BuildPage, BuildStore, JsonBuildStore
from .records import MODULE_NAMES, BuildRecord, ModuleRecord, assemble_build

__all__ = [
    "MODULE_NAMES",
    "BuildPage",
    "BuildRecord",
    "BuildStore",
    "JsonBuildStore",
    "ModuleRecord",
    "assemble_build",
]
