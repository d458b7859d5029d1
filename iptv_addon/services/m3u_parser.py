"""
M3U Parser Service.
Parses extended-M3U playlist text (EXTINF, KODIPROP and URL lines) into channels.
"""
import base64
import logging
import re
from typing import Optional

from pydantic import BaseModel

from iptv_addon.errors import FormatError
from iptv_addon.models.channel import (
    DEFAULT_GROUP,
    DEFAULT_NAME,
    Channel,
    DrmConfig,
    InputStream,
)

logger = logging.getLogger(__name__)

M3U_HEADER = "#EXTM3U"
EXTINF_PREFIX = "#EXTINF:"
KODIPROP_PREFIX = "#KODIPROP:"
ID_PREFIX = "iptv_"

# key="value" pairs on an EXTINF line; values may be empty
ATTRIBUTE_PATTERN = re.compile(r'([A-Za-z0-9_-]+)="([^"]*)"')
# Stream URL line: any scheme://...
URL_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9+.-]*://\S+')

# Last dotted segment of a KODIPROP key -> InputStream field
INPUT_STREAM_KEYS = {
    "manifest_type": "manifest_type",
    "license_type": "license_type",
    "license_key": "license_key",
    "inputstreamaddon": "addon",
    "inputstream": "addon",
}


class ParsedPlaylist(BaseModel):
    """Result of parsing one playlist."""
    channels: list[Channel]
    categories: list[str]


def channel_id_for_url(url: str) -> str:
    """Stable channel id derived from the stream URL."""
    encoded = base64.urlsafe_b64encode(url.encode()).decode().rstrip("=")
    return f"{ID_PREFIX}{encoded}"


def split_clearkey(license_key: Optional[str]) -> Optional[DrmConfig]:
    """
    Split a clear-key license key of the form "kid:key".

    Returns None unless the split yields exactly two non-empty parts.
    """
    if not license_key:
        return None
    parts = [part.strip() for part in license_key.split(":")]
    if len(parts) != 2 or not all(parts):
        return None
    return DrmConfig(key_id=parts[0], key=parts[1])


class M3UParser:
    """Parse M3U playlist text."""

    def parse(self, content: str) -> ParsedPlaylist:
        """
        Parse playlist text into channels and their categories.

        Unrecognized lines are skipped and an entry without a terminating
        URL line is dropped. Raises FormatError if the header is missing
        or no channel could be parsed.
        """
        if M3U_HEADER not in content:
            raise FormatError("Invalid M3U file format - missing #EXTM3U header")

        channels: list[Channel] = []
        current_info: Optional[dict] = None

        for line in content.splitlines():
            line = line.strip()
            if not line:
                continue

            if line.startswith(EXTINF_PREFIX):
                current_info = self._parse_extinf(line)

            elif line.startswith(KODIPROP_PREFIX):
                if current_info is not None:
                    self._apply_property(current_info, line[len(KODIPROP_PREFIX):])

            elif URL_PATTERN.match(line):
                if current_info is not None:
                    channels.append(self._build_channel(current_info, line))
                    current_info = None

        if current_info is not None:
            logger.debug(f"Discarding trailing entry without URL: {current_info['name']}")

        if not channels:
            raise FormatError("No channels found in M3U file")

        categories = list(dict.fromkeys(channel.group for channel in channels))
        logger.info(f"Parsed {len(channels)} channels in {len(categories)} categories")

        return ParsedPlaylist(channels=channels, categories=categories)

    def _parse_extinf(self, line: str) -> dict:
        """Extract display attributes from an EXTINF line."""
        info, title = self._split_title(line[len(EXTINF_PREFIX):])
        attrs = {key.lower(): value.strip() for key, value in ATTRIBUTE_PATTERN.findall(info)}

        return {
            "name": title or attrs.get("tvg-name") or DEFAULT_NAME,
            "logo": attrs.get("tvg-logo", ""),
            "group": attrs.get("group-title") or DEFAULT_GROUP,
            "language": attrs.get("tvg-language") or None,
            "epg_id": attrs.get("tvg-id") or None,
            "declared_id": attrs.get("channel-id") or None,
            "input_stream": {},
            "properties": {},
        }

    def _split_title(self, info: str) -> tuple[str, str]:
        """Split '<duration> attrs...,Title' on the first comma outside quotes."""
        in_quotes = False
        for index, char in enumerate(info):
            if char == '"':
                in_quotes = not in_quotes
            elif char == "," and not in_quotes:
                return info[:index], info[index + 1:].strip()
        return info, ""

    def _apply_property(self, current_info: dict, prop: str):
        """Record a KODIPROP key=value on the pending entry."""
        key, sep, value = prop.partition("=")
        key = key.strip()
        if not key or not sep:
            return

        value = value.strip()
        current_info["properties"][key] = value

        field = INPUT_STREAM_KEYS.get(key.rsplit(".", 1)[-1].lower())
        if field:
            current_info["input_stream"][field] = value

    def _build_channel(self, current_info: dict, url: str) -> Channel:
        """Close the pending entry with its stream URL."""
        declared_id = current_info["declared_id"]
        channel_id = f"{ID_PREFIX}{declared_id}" if declared_id else channel_id_for_url(url)

        input_stream = InputStream(**current_info["input_stream"])
        drm_config = None
        if input_stream.is_clearkey:
            drm_config = split_clearkey(input_stream.license_key)
            if drm_config is None:
                logger.warning(f"Malformed clear-key license for {current_info['name']}")

        return Channel(
            id=channel_id,
            name=current_info["name"],
            logo=current_info["logo"],
            group=current_info["group"],
            language=current_info["language"],
            epg_id=current_info["epg_id"],
            url=url,
            input_stream=input_stream,
            drm_config=drm_config,
            properties=current_info["properties"],
        )
