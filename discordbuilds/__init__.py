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

"""
discordbuilds: an archive of Discord desktop client builds.

discordbuilds finds every Discord desktop build still downloadable from the
CDN, for Windows, macOS and Linux, records installer size and ETag along
with the per-build native modules, and keeps the results in a document
store that can be paged through newest-first.

Features
--------
  - Latest-version discovery from Discord's redirecting download endpoints
  - Bounded descending walks over version candidates (HEAD probes only)
  - Parallel per-platform lanes and parallel module enumeration
  - Idempotent upserts: re-running discovery never duplicates a build
  - Layered YAML configuration with .env support

Quick Start
-----------
Check the configuration:

    $ discordbuilds validate

Run discovery into a JSON store:

    $ discordbuilds discover --store data/builds.json

Page through the archive:

    $ discordbuilds list --store data/builds.json --platform linux

For full CLI documentation:

    $ discordbuilds --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    Discovery run orchestration and read-side operations.
config : package
    YAML configuration loading and merging.
discovery : package
    Platform strategies and module enumeration.
versioning : package
    Version parsing, ordering and extraction from URLs.
io : package
    HEAD probes and redirect resolution.
store : package
    Record types and the JSON document store.

Public API
----------
    from discordbuilds.core import discover_builds, fetch_latest_versions
    from discordbuilds.config import load_effective_config
    from discordbuilds.store import JsonBuildStore
    from discordbuilds.validation import validate_config

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Archive of Discord desktop builds, modules and installers"

# Re-export commonly used functions for convenience
from discordbuilds.config import load_effective_config
from discordbuilds.core import discover_builds, fetch_latest_versions, list_builds
from discordbuilds.store import JsonBuildStore
from discordbuilds.validation import validate_config
from discordbuilds.versioning import extract_version

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "discover_builds",
    "fetch_latest_versions",
    "list_builds",
    "load_effective_config",
    "JsonBuildStore",
    "validate_config",
    "extract_version",
]
