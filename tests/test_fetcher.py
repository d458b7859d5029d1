"""
Tests for the source fetcher retry/backoff behaviour.
"""
import gzip

import httpx
import pytest

from iptv_addon.errors import FetchError
from iptv_addon.services.fetcher import SourceFetcher

URL = "http://example.com/playlist.m3u"


def make_fetcher(handler, max_retries: int = 2) -> SourceFetcher:
    return SourceFetcher(
        timeout=1.0,
        max_retries=max_retries,
        backoff=0,
        transport=httpx.MockTransport(handler),
    )


class TestSourceFetcher:

    @pytest.mark.asyncio
    async def test_returns_body_text(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="#EXTM3U\n")

        text = await make_fetcher(handler).fetch_text(URL)

        assert text == "#EXTM3U\n"
        assert seen[0].headers["User-Agent"] == "Stremio-IPTV-Addon"

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        statuses = iter([503, 502, 200])

        def handler(request):
            status = next(statuses)
            return httpx.Response(status, text="ok" if status == 200 else "busy")

        assert await make_fetcher(handler).fetch_text(URL) == "ok"

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        with pytest.raises(FetchError, match="404"):
            await make_fetcher(handler).fetch_text(URL)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_retry_budget(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError, match="connection refused"):
            await make_fetcher(handler, max_retries=2).fetch_text(URL)
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_timeout_becomes_fetch_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(FetchError, match="timed out"):
            await make_fetcher(handler, max_retries=0).fetch_text(URL)

    @pytest.mark.asyncio
    async def test_gzip_payload_is_decompressed(self):
        body = gzip.compress(b"<tv></tv>")

        def handler(request):
            return httpx.Response(200, content=body, headers={"Content-Type": "application/gzip"})

        assert await make_fetcher(handler).fetch_text("http://example.com/guide.xml.gz") == "<tv></tv>"

    @pytest.mark.asyncio
    async def test_rejects_non_http_urls(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(FetchError):
            await make_fetcher(handler).fetch_text("file:///etc/passwd")
