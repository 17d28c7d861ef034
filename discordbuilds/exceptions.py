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

"""Exception hierarchy for discordbuilds.

This module defines the exceptions that a discovery run can surface to the
operator:

- ConfigError: Configuration-related errors (YAML parse, missing store
  location, unknown strategy, malformed base version)
- NetworkError: Network errors that must reach the user (never raised for
  individual probes, which degrade to "not found")
- StoreError: Persistence errors (unreadable store, key violations). Fatal
  for the current run.

All exceptions inherit from ArchiveError, allowing callers to catch every
discordbuilds error with a single except clause.

Example:
    Catching specific error types:
        ```python
        from discordbuilds.core import discover_builds
        from discordbuilds.exceptions import ConfigError, StoreError

        try:
            result = discover_builds(config, store)
        except ConfigError as e:
            print(f"Configuration error: {e}")
        except StoreError as e:
            print(f"Store error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "ArchiveError",
    "ConfigError",
    "NetworkError",
    "StoreError",
]


class ArchiveError(Exception):
    """Base exception for all discordbuilds errors."""

    pass


class ConfigError(ArchiveError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - A missing store location (checked before any probing begins)
    - Unknown discovery strategy names
    - A malformed base version handed to the patch-decrement walk
    """

    pass


class NetworkError(ArchiveError):
    """Raised for network errors that must be reported to the user.

    Probes never raise this: a failed probe is a normal "not found" outcome.
    """

    pass


class StoreError(ArchiveError):
    """Raised for persistence errors.

    This exception is raised when there are problems with:

    - Reading or writing the store file
    - Corrupted store contents
    - Records missing the fields that make up their key

    A StoreError aborts the whole discovery run.
    """

    pass
