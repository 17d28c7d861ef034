"""Network operations for discordbuilds.

Modules:

prober : module
    HEAD-based existence checks and redirect resolution.

Public API:

probe : function
    Check whether a URL exists; never raises for network failures.
resolve_redirect : function
    Read a redirect target, with or without following the chain.
make_session : function
    Build a requests.Session with bounded redirects and retries.
ProbeResult : dataclass
    Outcome of a single probe.

Example:
    from discordbuilds.io import make_session, probe

    with make_session() as session:
        result = probe("https://example.com/Discord.dmg", session=session)
    print(result.exists, result.size, result.etag)

"""

from .prober import ProbeResult, make_session, probe, resolve_redirect

__all__ = ["ProbeResult", "make_session", "probe", "resolve_redirect"]
