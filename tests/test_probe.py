"""
Tests for discordbuilds.io.prober module.

Tests HEAD probing including:
- Existence, size and ETag from headers
- Misses (404, network errors) never raising
- Redirect resolution in location and follow modes
- Time bounds against throttling and stalled servers
"""

from __future__ import annotations

from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
import threading
import time

import pytest
import requests
import requests_mock

from discordbuilds.io import make_session, probe, resolve_redirect

DMG = "https://stable.dl2.discordapp.net/apps/osx/0.0.329/Discord.dmg"
LATEST = "https://discord.com/api/download?platform=osx"


class TestProbe:
    """Tests for single-URL existence probes."""

    def test_existing_build(self):
        """Test a 200 answer reports size and ETag."""
        with requests_mock.Mocker() as m:
            m.head(
                DMG,
                status_code=200,
                headers={"Content-Length": "104857600", "ETag": "abc123"},
            )
            result = probe(DMG)

        assert result.exists is True
        assert result.size == 104857600
        assert result.etag == "abc123"
        assert result.status_code == 200

    def test_uses_head_method(self):
        """Test probing never downloads the body."""
        with requests_mock.Mocker() as m:
            m.head(DMG, headers={"Content-Length": "10"})
            probe(DMG)

        assert m.call_count == 1
        assert m.request_history[0].method == "HEAD"

    def test_not_found(self):
        """Test a 404 is a miss, not an error."""
        with requests_mock.Mocker() as m:
            m.head(DMG, status_code=404)
            result = probe(DMG)

        assert result.exists is False
        assert result.size == 0
        assert result.etag == ""
        assert result.status_code == 404

    def test_connection_error_is_a_miss(self):
        """Test network failures degrade to exists=False."""
        with requests_mock.Mocker() as m:
            m.head(DMG, exc=requests.exceptions.ConnectTimeout)
            result = probe(DMG)

        assert result.exists is False
        assert result.status_code is None

    def test_zero_length_is_not_downloadable(self):
        """Test a 2xx without a usable Content-Length is not a build."""
        with requests_mock.Mocker() as m:
            m.head(DMG, status_code=200, headers={"Content-Length": "0"})
            result = probe(DMG)

        assert result.exists is False
        assert result.size == 0

    def test_malformed_content_length(self):
        """Test a garbage Content-Length does not raise."""
        with requests_mock.Mocker() as m:
            m.head(DMG, status_code=200, headers={"Content-Length": "lots"})
            result = probe(DMG)

        assert result.exists is False
        assert result.size == 0

    def test_missing_etag(self):
        """Test a missing ETag is an empty string."""
        with requests_mock.Mocker() as m:
            m.head(DMG, headers={"Content-Length": "42"})
            result = probe(DMG)

        assert result.exists is True
        assert result.etag == ""

    def test_follows_redirect_to_cdn(self):
        """Test the final URL is reported after a redirect."""
        with requests_mock.Mocker() as m:
            m.head(LATEST, status_code=302, headers={"Location": DMG})
            m.head(DMG, headers={"Content-Length": "42", "ETag": "e1"})
            result = probe(LATEST)

        assert result.exists is True
        assert result.final_url == DMG

    def test_shared_session(self):
        """Test probing through a caller-provided session."""
        with make_session() as session, requests_mock.Mocker() as m:
            m.head(DMG, headers={"Content-Length": "5"})
            result = probe(DMG, session=session)

        assert result.exists is True


class TestMakeSession:
    """Tests for the probing session factory."""

    def test_session_settings(self):
        session = make_session(max_redirects=2)
        try:
            assert session.max_redirects == 2
            assert session.headers["Accept-Encoding"] == "identity"
            assert session.headers["User-Agent"].startswith("discordbuilds/")
        finally:
            session.close()

    def test_retry_policy(self):
        """Test only transient statuses are retried, never timeouts."""
        session = make_session(retries=2)
        try:
            retry = session.get_adapter(DMG).max_retries
            assert retry.total == 2
            assert retry.connect == 0
            assert retry.read == 0
            assert retry.respect_retry_after_header is False
            assert 503 in retry.status_forcelist
        finally:
            session.close()


class _CdnHandler(BaseHTTPRequestHandler):
    head_calls: int = 0
    stall: float = 1.5

    def do_HEAD(self) -> None:
        self.__class__.head_calls += 1
        if self.path.startswith("/slow"):
            time.sleep(self.__class__.stall)
            self.send_response(200)
            self.send_header("Content-Length", "10")
            self.end_headers()
            return
        self.send_response(503)
        self.send_header("Retry-After", "4")
        self.end_headers()

    def log_message(self, format: str, *args: object) -> None:
        return


@pytest.fixture
def cdn_server():
    handler = _CdnHandler
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        handler.head_calls = 0
        yield handler, f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=1)


class TestProbeTimeBounds:
    """Tests that a single probe stays close to its timeout."""

    def test_retry_after_is_not_honored(self, cdn_server):
        """Test a throttling 503 is retried briefly and then counted as a miss."""
        handler, base = cdn_server
        session = make_session(retries=2)
        session.trust_env = False
        try:
            started = time.monotonic()
            result = probe(f"{base}/busy/Discord.dmg", session=session, timeout=1.0)
            elapsed = time.monotonic() - started
        finally:
            session.close()

        assert result.exists is False
        assert result.status_code == 503
        assert handler.head_calls == 3
        assert elapsed < 2.0

    def test_read_timeout_is_a_single_miss(self, cdn_server):
        """Test a stalled server costs one timeout and is not retried."""
        handler, base = cdn_server
        session = make_session(retries=2)
        session.trust_env = False
        try:
            started = time.monotonic()
            result = probe(f"{base}/slow/Discord.dmg", session=session, timeout=0.5)
            elapsed = time.monotonic() - started
        finally:
            session.close()

        assert result.exists is False
        assert result.status_code is None
        assert handler.head_calls == 1
        assert elapsed < 1.2


class TestResolveRedirect:
    """Tests for reading where a "latest" endpoint points."""

    def test_location_mode(self):
        """Test no-follow mode returns the Location header."""
        target = (
            "https://stable.dl2.discordapp.net/distro/app/stable/win/x64/"
            "1.0.9028/DiscordSetup.exe"
        )
        with requests_mock.Mocker() as m:
            m.head(LATEST, status_code=302, headers={"Location": target})
            assert resolve_redirect(LATEST, follow=False) == target

        assert m.call_count == 1

    def test_location_mode_without_header(self):
        """Test a non-redirect answer has no target."""
        with requests_mock.Mocker() as m:
            m.head(LATEST, status_code=200)
            assert resolve_redirect(LATEST, follow=False) is None

    def test_follow_mode(self):
        """Test follow mode returns the terminal URL of the chain."""
        with requests_mock.Mocker() as m:
            m.head(LATEST, status_code=302, headers={"Location": DMG})
            m.head(DMG, status_code=200, headers={"Content-Length": "1"})
            assert resolve_redirect(LATEST, follow=True) == DMG

    def test_error_status(self):
        """Test an error status resolves to None."""
        with requests_mock.Mocker() as m:
            m.head(LATEST, status_code=500)
            assert resolve_redirect(LATEST, follow=True) is None

    def test_network_error(self):
        """Test a network failure resolves to None instead of raising."""
        with requests_mock.Mocker() as m:
            m.head(LATEST, exc=requests.exceptions.ConnectionError)
            assert resolve_redirect(LATEST) is None

    def test_redirect_loop_is_bounded(self):
        """Test a redirect loop stops at the session's cap."""
        loop_a = "https://a.example/latest"
        loop_b = "https://b.example/latest"
        with requests_mock.Mocker() as m:
            m.head(loop_a, status_code=302, headers={"Location": loop_b})
            m.head(loop_b, status_code=302, headers={"Location": loop_a})
            assert resolve_redirect(loop_a, follow=True) is None
