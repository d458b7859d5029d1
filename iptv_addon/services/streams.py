"""
Stream resolution.
Turns a channel into playable stream descriptors, handling clear-key DRM
either inline (key material in behavior hints) or by rewriting DASH
manifests to an external decryption proxy that serves HLS.
"""
import logging
from typing import Optional
from urllib.parse import urlencode, urlparse

from iptv_addon.errors import DrmConfigError
from iptv_addon.models.addon import BehaviorHints, ClearKeyHints, StreamDescriptor
from iptv_addon.models.channel import Channel
from iptv_addon.models.tenant import Tenant

logger = logging.getLogger(__name__)

DASH = "dash"
HLS = "hls"
OTHER = "other"

MANIFEST_TYPES = {"mpd": DASH, "dash": DASH, "hls": HLS, "m3u8": HLS}

PROXY_MANIFEST_PATH = "/proxy/mpd/manifest.m3u8"


def classify_stream(channel: Channel) -> str:
    """Container type from the URL extension, else the declared manifest type."""
    path = urlparse(channel.url).path.lower()
    if path.endswith(".mpd"):
        return DASH
    if path.endswith(".m3u8"):
        return HLS
    declared = (channel.input_stream.manifest_type or "").lower()
    return MANIFEST_TYPES.get(declared, OTHER)


class StreamResolver:
    """Resolve a tenant's channel to stream descriptors."""

    def __init__(
        self,
        drm_strategy: str = "inline",
        proxy_url: Optional[str] = None,
        proxy_password: Optional[str] = None,
    ):
        self.drm_strategy = drm_strategy
        self.proxy_url = proxy_url.rstrip("/") if proxy_url else None
        self.proxy_password = proxy_password

    def resolve(self, tenant: Tenant, channel_id: str) -> list[StreamDescriptor]:
        """Streams for a channel; empty for unknown channels or unusable DRM keys."""
        channel = tenant.find_channel(channel_id)
        if channel is None:
            return []

        try:
            return [self._build_stream(channel)]
        except DrmConfigError as e:
            logger.warning(f"No stream for {channel.name}: {e}")
            return []

    def _build_stream(self, channel: Channel) -> StreamDescriptor:
        kind = classify_stream(channel)

        if not channel.input_stream.is_clearkey:
            return self._plain_stream(channel, kind)

        if channel.drm_config is None:
            raise DrmConfigError("clear-key license key is not of the form kid:key")

        if self.drm_strategy == "proxy" and kind == DASH and self.proxy_url:
            return self._proxied_stream(channel)
        return self._inline_clearkey_stream(channel, kind)

    def _plain_stream(self, channel: Channel, kind: str) -> StreamDescriptor:
        return StreamDescriptor(
            name=channel.name,
            title=channel.group,
            url=channel.url,
            description=channel.description,
            behavior_hints=BehaviorHints(
                binge_group=f"iptv-{channel.group}",
                not_web_ready=kind == DASH,
                player_type=kind,
            ),
        )

    def _inline_clearkey_stream(self, channel: Channel, kind: str) -> StreamDescriptor:
        stream = self._plain_stream(channel, kind)
        stream.behavior_hints.drm_config = ClearKeyHints(
            license_key=channel.input_stream.license_key,
            key_id=channel.drm_config.key_id,
            key=channel.drm_config.key,
            properties=channel.properties,
        )
        return stream

    def _proxied_stream(self, channel: Channel) -> StreamDescriptor:
        """Point the player at the decryption proxy, which repackages DASH as HLS."""
        params = {}
        if self.proxy_password:
            params["api_password"] = self.proxy_password
        params.update({
            "d": channel.url,
            "key_id": channel.drm_config.key_id,
            "key": channel.drm_config.key,
        })

        return StreamDescriptor(
            name=channel.name,
            title=channel.group,
            url=f"{self.proxy_url}{PROXY_MANIFEST_PATH}?{urlencode(params, safe=':/')}",
            description=channel.description,
            behavior_hints=BehaviorHints(
                binge_group=f"iptv-{channel.group}",
                not_web_ready=True,
                player_type=HLS,
            ),
        )
