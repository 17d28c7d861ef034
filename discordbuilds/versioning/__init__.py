"""
Version parsing and extraction utilities for discordbuilds.

Modules
-------
keys : module
    Sentinels, strict ``major.minor.patch`` parsing, ``0.0.N`` counters and
    numeric ordering.
url_regex : module
    Extract versions from redirect targets and CDN URLs.

Public API
----------
VersionCandidate, ConfirmedVersion : dataclass
    A hypothesized build and a probe-confirmed one.
UNKNOWN_VERSION, ERROR_VERSION : str
    Sentinels returned instead of raising.
extract_version : function
    Ordered-pattern version extraction from a URL or path.
parse_triplet : function
    Strict ``major.minor.patch`` parsing (raises ConfigError).
version_sort_key : function
    Sort key for newest-first listings.
"""

from .keys import (
    ERROR_VERSION,
    UNKNOWN_VERSION,
    ConfirmedVersion,
    VersionCandidate,
    counter_version,
    format_triplet,
    is_sentinel,
    parse_triplet,
    version_sort_key,
)
from .url_regex import extract_version

__all__ = [
    "ERROR_VERSION",
    "UNKNOWN_VERSION",
    "ConfirmedVersion",
    "VersionCandidate",
    "counter_version",
    "extract_version",
    "format_triplet",
    "is_sentinel",
    "parse_triplet",
    "version_sort_key",
]
