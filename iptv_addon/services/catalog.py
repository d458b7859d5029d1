"""
Catalog resolution.
Filters a tenant's channels into catalogs and builds channel metas
with "now playing" information from the guide.
"""
import base64
import binascii
from datetime import datetime, timezone
from typing import Iterable, Optional

from iptv_addon.models.addon import ChannelMeta
from iptv_addon.models.channel import Channel
from iptv_addon.models.epg import Programme
from iptv_addon.models.tenant import Tenant

ALL_CATALOG = "all"
FAVORITES_CATALOG = "favorites"
CATEGORY_PREFIX = "category:"
# Groups that can't travel as a single path segment ("News/Local")
ENCODED_CATEGORY_PREFIX = "category64:"
ANY_LANGUAGE = "any"


def category_catalog_id(category: str) -> str:
    """Catalog id for a group; labels containing '/' are urlsafe base64 encoded."""
    if "/" not in category:
        return f"{CATEGORY_PREFIX}{category}"
    encoded = base64.urlsafe_b64encode(category.encode()).decode().rstrip("=")
    return f"{ENCODED_CATEGORY_PREFIX}{encoded}"


def category_from_catalog_id(catalog_id: str) -> Optional[str]:
    """Group label named by a category catalog id, or None for other catalogs."""
    if catalog_id.startswith(CATEGORY_PREFIX):
        return catalog_id[len(CATEGORY_PREFIX):]
    if catalog_id.startswith(ENCODED_CATEGORY_PREFIX):
        token = catalog_id[len(ENCODED_CATEGORY_PREFIX):]
        try:
            return base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode()
        except (binascii.Error, UnicodeDecodeError):
            # Matches no group
            return ""
    return None


def is_paged_catalog(catalog_id: str) -> bool:
    """Only the full channel list advertises the skip extra."""
    return catalog_id != FAVORITES_CATALOG and category_from_catalog_id(catalog_id) is None


def find_now_playing(programmes: Iterable[Programme], now: datetime) -> Optional[Programme]:
    """First programme in list order whose [start, stop) contains now."""
    for programme in programmes:
        if programme.is_live(now):
            return programme
    return None


class CatalogResolver:
    """Resolve catalog ids and channel ids to channel metas."""

    def __init__(self, page_size: int = 100):
        self.page_size = page_size

    def resolve(
        self,
        tenant: Tenant,
        catalog_id: str,
        now: Optional[datetime] = None,
        search: Optional[str] = None,
        skip: int = 0,
    ) -> list[ChannelMeta]:
        """
        Build the metas of one catalog.

        Filters run in order: language allow-list, catalog kind
        ("favorites", "category:<X>", anything else is the full list),
        then the optional search term. The full list is paged by skip;
        favorites and category catalogs are returned whole. Channel order
        from the playlist is preserved.
        """
        now = now or datetime.now(timezone.utc)

        channels = self._filter_languages(tenant.channels, tenant.config.languages)
        channels = self._filter_catalog(channels, catalog_id, tenant.favorites)

        if search:
            needle = search.casefold()
            channels = [ch for ch in channels if needle in ch.name.casefold()]

        if is_paged_catalog(catalog_id):
            start = max(skip, 0)
            channels = channels[start:start + self.page_size]

        return [self.build_meta(tenant, channel, now) for channel in channels]

    def meta(self, tenant: Tenant, channel_id: str, now: Optional[datetime] = None) -> Optional[ChannelMeta]:
        """Meta for a single channel, or None if the tenant doesn't have it."""
        channel = tenant.find_channel(channel_id)
        if channel is None:
            return None
        return self.build_meta(tenant, channel, now or datetime.now(timezone.utc))

    def build_meta(self, tenant: Tenant, channel: Channel, now: datetime) -> ChannelMeta:
        description = channel.description

        if channel.epg_id and channel.epg_id in tenant.guide_index:
            current = find_now_playing(tenant.guide_index[channel.epg_id], now)
            if current:
                description += f"\nNow: {current.title}"
                if current.desc:
                    description += f"\n{current.desc}"

        return ChannelMeta(
            id=channel.id,
            name=channel.name,
            poster=channel.logo,
            background=channel.logo,
            logo=channel.logo,
            description=description,
            genres=[channel.group],
        )

    def _filter_languages(self, channels: list[Channel], languages: list[str]) -> list[Channel]:
        allowed = set(languages)
        if not allowed or ANY_LANGUAGE in allowed:
            return list(channels)
        return [ch for ch in channels if ch.language in allowed]

    def _filter_catalog(self, channels: list[Channel], catalog_id: str, favorites: set[str]) -> list[Channel]:
        if catalog_id == FAVORITES_CATALOG:
            return [ch for ch in channels if ch.id in favorites]
        category = category_from_catalog_id(catalog_id)
        if category is not None:
            return [ch for ch in channels if ch.group == category]
        return channels
