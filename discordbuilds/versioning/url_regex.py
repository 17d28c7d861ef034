"""
URL version extraction for discordbuilds.

Discord's CDN and redirect targets embed the version in different places:

    https://stable.dl2.discordapp.net/distro/app/stable/win/x64/1.0.9028/DiscordSetup.exe
    https://stable.dl2.discordapp.net/apps/osx/0.0.329/Discord.dmg
    https://stable.dl2.discordapp.net/apps/linux/0.0.77/discord-0.0.77.deb

No single regex covers every observed shape, so extraction tries an ordered
list of patterns and returns the first hit.

Extraction Order
----------------
1. A path segment that is exactly ``\\d+.\\d+.\\d+``.
2. The first ``\\d+.\\d+.\\d+`` inside the last path segment (file names
   such as ``discord-0.0.77.deb``).
3. The Windows distro shape ``/win/x64/<version>/``.
4. The sentinel ``"Unknown Version"``.

When the input carries a scheme and host, only the URL path is inspected, so
two URLs that differ only in scheme or host always agree.

Examples
--------
    >>> from discordbuilds.versioning.url_regex import extract_version
    >>> extract_version("https://cdn.example/win/x64/1.0.9028/DiscordSetup.exe")
    '1.0.9028'
    >>> extract_version("/apps/linux/latest/discord-0.0.77.deb")
    '0.0.77'
    >>> extract_version("https://discord.com/api/download")
    'Unknown Version'

Notes
-----
- Pure string work; no network calls are made
- Never raises for odd input; the sentinel is returned instead
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from discordbuilds.versioning.keys import UNKNOWN_VERSION

_EXACT_SEGMENT = re.compile(r"^\d+\.\d+\.\d+$")
_LOOSE = re.compile(r"(\d+\.\d+\.\d+)")
_WINDOWS_DISTRO = re.compile(r"/win/x64/(\d+\.\d+\.\d+)/")


def _path_of(url_or_path: str) -> str:
    """Return the path component when given a full URL, else the input."""
    parts = urlsplit(url_or_path)
    if parts.scheme and parts.netloc:
        return parts.path
    return url_or_path.split("?", 1)[0].split("#", 1)[0]


def extract_version(url_or_path: str) -> str:
    """
    Extract a ``major.minor.patch`` version from a URL or path.

    Parameters
    ----------
    url_or_path : str
        A full URL (redirect target, CDN link) or a bare path.

    Returns
    -------
    str
        The extracted version, or ``UNKNOWN_VERSION`` if no pattern matches.
    """
    from discordbuilds.logging import get_global_logger

    logger = get_global_logger()

    if not url_or_path:
        return UNKNOWN_VERSION

    path = _path_of(url_or_path)
    segments = path.split("/")

    for segment in segments:
        if _EXACT_SEGMENT.match(segment):
            logger.debug("VERSION", f"Matched path segment {segment!r}")
            return segment

    m = _LOOSE.search(segments[-1])
    if m:
        logger.debug("VERSION", f"Matched file name {segments[-1]!r}")
        return m.group(1)

    m = _WINDOWS_DISTRO.search(path)
    if m:
        logger.debug("VERSION", "Matched Windows distro path")
        return m.group(1)

    logger.debug("VERSION", f"No version found in {url_or_path!r}")
    return UNKNOWN_VERSION
