"""
Lightweight HTTP existence probes for discordbuilds.

Discovery checks hundreds of speculative URLs per run, most of which do not
exist. A probe is a single HEAD request (no body transfer) whose outcome is
always a ProbeResult: a 404, a timeout or a refused connection is a normal
"not found", never an exception.

Key Features:

- **HEAD only** - Size and ETag come from ``Content-Length`` and ``ETag``.
- **Bounded redirects** - ``Session.max_redirects`` caps every chain
  (default 3) so a misbehaving CDN cannot loop a probe forever.
- **Per-probe timeout** - Default 5 seconds; a hung probe is a miss and is
  never retried.
- **Retries for transient CDN errors only** - 429/502/503/504 are retried
  with a short backoff by urllib3 (``Retry-After`` is ignored); 404 is
  answered immediately.
- **Stable ETags** - ``Accept-Encoding: identity`` keeps CDNs from handing
  out representation-specific ETags across runs.

Example:
Probe a candidate:

    >>> from discordbuilds.io import probe
    >>> result = probe("https://stable.dl2.discordapp.net/apps/osx/0.0.329/Discord.dmg")
    >>> if result.exists:
    ...     print(result.size, result.etag)

Read a redirect without following it:

    >>> from discordbuilds.io import resolve_redirect
    >>> resolve_redirect("https://discord.com/api/downloads/...", follow=False)
    'https://stable.dl2.discordapp.net/distro/app/stable/win/x64/1.0.9028/DiscordSetup.exe'

Notes:
- ``exists=True`` always comes with ``size > 0``; a 2xx answer without a
  usable Content-Length is not treated as a downloadable build
- Sessions are safe to share across the worker threads used for probing
"""

from __future__ import annotations

from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_REDIRECTS = 3
USER_AGENT = "discordbuilds/0.1"
RETRY_BACKOFF = 0.2


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of checking one URL.

    Attributes:
        exists: True only for a 2xx answer with a positive Content-Length.
        size: Content-Length in bytes (0 when missing).
        etag: Raw ETag header value ("" when missing).
        status_code: Final HTTP status, or None if no response was received.
        final_url: URL of the last response in the redirect chain.
        location: Location header of the last response, if any.
    """

    exists: bool
    size: int = 0
    etag: str = ""
    status_code: int | None = None
    final_url: str | None = None
    location: str | None = None


MISSING = ProbeResult(exists=False)


def make_session(
    max_redirects: int = DEFAULT_MAX_REDIRECTS, retries: int = 2
) -> requests.Session:
    """
    Create a requests.Session tuned for cheap existence checks.

    - Retries only transient upstream statuses, with a short backoff.
    - Never retries connect or read timeouts and ignores ``Retry-After``,
      so a hung server costs a single timeout and a throttling one cannot
      impose its own delay.
    - Caps redirect chains at 'max_redirects'.
    - Pins 'Accept-Encoding: identity' and sets a recognizable User-Agent.
    """
    s = requests.Session()
    s.max_redirects = max_redirects
    retry = Retry(
        total=retries,
        connect=0,
        read=0,
        backoff_factor=RETRY_BACKOFF,
        status_forcelist=(429, 502, 503, 504),
        allowed_methods=("HEAD", "GET"),
        respect_retry_after_header=False,
        raise_on_status=False,
    )
    s.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept-Encoding": "identity",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=retry))
    s.mount("https://", HTTPAdapter(max_retries=retry))
    return s


def _content_length(headers) -> int:
    raw = headers.get("Content-Length", "0") or "0"
    try:
        size = int(raw)
    except (TypeError, ValueError):
        return 0
    return size if size > 0 else 0


def _head(
    url: str,
    session: requests.Session | None,
    timeout: float,
    follow_redirects: bool,
) -> requests.Response:
    if session is not None:
        return session.head(url, allow_redirects=follow_redirects, timeout=timeout)
    with make_session() as s:
        return s.head(url, allow_redirects=follow_redirects, timeout=timeout)


def probe(
    url: str,
    *,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    follow_redirects: bool = True,
) -> ProbeResult:
    """Check whether 'url' exists without downloading it.

    Args:
        url: Candidate URL.
        session: Shared session (created per call when omitted).
        timeout: Per-request timeout in seconds.
        follow_redirects: Follow the (bounded) redirect chain.

    Returns:
        The probe outcome. Never raises for network-layer failures,
            non-2xx statuses or malformed headers.
    """
    from discordbuilds.logging import get_global_logger

    logger = get_global_logger()

    try:
        resp = _head(url, session, timeout, follow_redirects)
    except requests.RequestException as err:
        logger.debug("HTTP", f"HEAD {url} failed: {err}")
        return MISSING

    try:
        location = resp.headers.get("Location")
        if not 200 <= resp.status_code < 300:
            logger.debug("HTTP", f"HEAD {url} -> {resp.status_code}")
            return ProbeResult(
                exists=False,
                status_code=resp.status_code,
                final_url=resp.url,
                location=location,
            )

        size = _content_length(resp.headers)
        etag = resp.headers.get("ETag", "") or ""
        logger.debug("HTTP", f"HEAD {url} -> {resp.status_code} ({size} bytes)")
        return ProbeResult(
            exists=size > 0,
            size=size,
            etag=etag,
            status_code=resp.status_code,
            final_url=resp.url,
            location=location,
        )
    finally:
        resp.close()


def resolve_redirect(
    url: str,
    *,
    follow: bool = False,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str | None:
    """Learn where a "latest" endpoint points.

    Two modes are supported because Discord's endpoints have been read both
    ways:

    - ``follow=False``: a single request without following, reading the
      ``Location`` header of the 3xx answer.
    - ``follow=True``: follow the bounded chain and return the terminal URL.

    Args:
        url: The "latest" endpoint.
        follow: Which of the two modes to use.
        session: Shared session (created per call when omitted).
        timeout: Per-request timeout in seconds.

    Returns:
        The redirect target, or None if it could not be determined.
    """
    from discordbuilds.logging import get_global_logger

    logger = get_global_logger()

    try:
        resp = _head(url, session, timeout, follow)
    except requests.RequestException as err:
        logger.verbose("HTTP", f"Could not resolve {url}: {err}")
        return None

    try:
        if not 200 <= resp.status_code < 400:
            logger.verbose("HTTP", f"HEAD {url} -> {resp.status_code}")
            return None

        if follow:
            for hist in resp.history:
                logger.debug(
                    "HTTP",
                    f"Redirect {hist.status_code} -> "
                    f"{hist.headers.get('Location', 'unknown')}",
                )
            return resp.url

        location = resp.headers.get("Location")
        if not location:
            logger.verbose("HTTP", f"No redirect location in response from {url}")
            return None
        return location
    finally:
        resp.close()
