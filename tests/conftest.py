"""
Pytest configuration and fixtures for IPTV addon tests.
"""
import pytest

from iptv_addon.errors import FetchError
from iptv_addon.models.tenant import SourceConfig, Tenant
from iptv_addon.services.epg_parser import EPGParser
from iptv_addon.services.m3u_parser import M3UParser

PLAYLIST_URL = "http://example.com/playlist.m3u"
GUIDE_URL = "http://example.com/guide.xml"


class FakeFetcher:
    """Serves canned bodies per URL; exceptions are raised instead of returned."""

    def __init__(self, responses: dict):
        self.responses = responses
        self.calls = []

    async def fetch_text(self, url: str) -> str:
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            raise FetchError(f"Failed to fetch {url}: not found")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def sample_m3u_content():
    """Sample M3U content for testing."""
    return """#EXTM3U
#EXTINF:-1 tvg-id="news.one" tvg-logo="http://example.com/news.png" group-title="News" tvg-language="English",News One
http://example.com/news-one.m3u8
#EXTINF:-1 tvg-id="sport.hd" tvg-logo="" group-title="Sports" tvg-language="Spanish",Sport HD
#KODIPROP:inputstreamaddon=inputstream.adaptive
#KODIPROP:inputstream.adaptive.manifest_type=mpd
#KODIPROP:inputstream.adaptive.license_type=org.w3.clearkey
#KODIPROP:inputstream.adaptive.license_key=abc123:def456
https://cdn.example.com/sport/manifest.mpd
#EXTINF:-1 group-title="News",News Two
http://example.com/news-two.m3u8
#EXTINF:-1,Movies 24
http://example.com/movies.ts
"""


@pytest.fixture
def sample_epg_xml():
    """Sample XMLTV EPG content for testing."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<tv>
    <channel id="news.one">
        <display-name>News One</display-name>
    </channel>
    <programme start="20251212010000 +0000" stop="20251212020000 +0000" channel="news.one">
        <title>Morning News</title>
        <desc>Daily news broadcast</desc>
        <category>News</category>
    </programme>
    <programme start="20251212020000 +0000" stop="20251212030000 +0000" channel="news.one">
        <title>Weather Update</title>
    </programme>
    <programme start="20251212010000 +0000" stop="20251212030000 +0000" channel="sport.hd">
        <title>Live Match</title>
    </programme>
</tv>
"""


@pytest.fixture
def source_config():
    return SourceConfig(playlist_url=PLAYLIST_URL, guide_url=GUIDE_URL, name="Test Addon")


@pytest.fixture
def sample_tenant(sample_m3u_content, sample_epg_xml, source_config):
    """Tenant built directly from the sample playlist and guide."""
    playlist = M3UParser().parse(sample_m3u_content)
    return Tenant(
        tenant_id="tenant1",
        config=source_config,
        channels=playlist.channels,
        categories=playlist.categories,
        guide_index=EPGParser().index(sample_epg_xml),
    )


@pytest.fixture
def fake_fetcher(sample_m3u_content, sample_epg_xml):
    return FakeFetcher({PLAYLIST_URL: sample_m3u_content, GUIDE_URL: sample_epg_xml})
