"""
Tenant lifecycle service.
Handles configuration, re-ingestion of playlist/guide sources and favorites.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from iptv_addon.config import get_settings
from iptv_addon.errors import FormatError, NotFoundError
from iptv_addon.models.epg import GuideIndex
from iptv_addon.models.tenant import SourceConfig, Tenant, utcnow
from iptv_addon.services.epg_parser import EPGParser
from iptv_addon.services.fetcher import SourceFetcher, get_fetcher
from iptv_addon.services.identity import IdentityStrategy
from iptv_addon.services.m3u_parser import M3UParser, ParsedPlaylist
from iptv_addon.services.tenant_store import TenantStore, get_tenant_store

logger = logging.getLogger(__name__)


class TenantService:
    """Creates, refreshes and mutates tenants in a TenantStore."""

    def __init__(
        self,
        store: TenantStore,
        fetcher: SourceFetcher,
        identity: Optional[IdentityStrategy] = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.identity = identity or IdentityStrategy()
        self.m3u_parser = M3UParser()
        self.epg_parser = EPGParser()
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, tenant_id: str) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = self._locks[tenant_id] = asyncio.Lock()
        return lock

    async def get(self, tenant_id: str) -> Optional[Tenant]:
        return await self.store.get(tenant_id)

    async def configure(self, config: SourceConfig) -> Tenant:
        """Create (or, with digest ids, re-ingest) the tenant for a configuration."""
        tenant_id = self.identity.tenant_id(config)
        logger.info(f"Configuring tenant {tenant_id} from {config.playlist_url}")
        return await self.ingest(tenant_id, config)

    async def refresh(self, tenant_id: str) -> Tenant:
        """Re-ingest a tenant from its stored configuration."""
        tenant = await self.store.get(tenant_id)
        if tenant is None:
            raise NotFoundError(f"Unknown tenant {tenant_id}")
        return await self.ingest(tenant_id, tenant.config)

    async def ingest(self, tenant_id: str, config: SourceConfig) -> Tenant:
        """
        Fetch and parse the sources, then replace the tenant's catalog in one put.

        Any FetchError/FormatError propagates before the store is touched,
        so a failed ingestion leaves the previous state in place.
        Favorites of an existing tenant are carried over.
        """
        playlist = await self._load_playlist(config)
        guide = await self._load_guide(config)

        async with self._lock_for(tenant_id):
            previous = await self.store.get(tenant_id)
            now = utcnow()
            tenant = Tenant(
                tenant_id=tenant_id,
                config=config,
                channels=playlist.channels,
                categories=playlist.categories,
                guide_index=guide,
                favorites=set(previous.favorites) if previous else set(),
                last_access=now,
                refreshed_at=now,
            )
            await self.store.put(tenant)

        logger.info(
            f"Loaded {len(tenant.channels)} channels and guide data for "
            f"{len(tenant.guide_index)} channels for tenant {tenant_id}"
        )
        return tenant

    async def _load_playlist(self, config: SourceConfig) -> ParsedPlaylist:
        content = await self.fetcher.fetch_text(config.playlist_url)
        playlist = self.m3u_parser.parse(content)

        if not config.filter_groups:
            return playlist

        allowed = set(config.filter_groups)
        channels = [ch for ch in playlist.channels if ch.group in allowed]
        if not channels:
            raise FormatError("No channels found in the selected categories")
        return ParsedPlaylist(
            channels=channels,
            categories=[c for c in playlist.categories if c in allowed],
        )

    async def _load_guide(self, config: SourceConfig) -> GuideIndex:
        if not config.guide_url:
            return {}
        content = await self.fetcher.fetch_text(config.guide_url)
        return self.epg_parser.index(content)

    async def add_favorite(self, tenant_id: str, channel_id: str) -> Tenant:
        return await self._update_favorites(tenant_id, channel_id, add=True)

    async def remove_favorite(self, tenant_id: str, channel_id: str) -> Tenant:
        return await self._update_favorites(tenant_id, channel_id, add=False)

    async def _update_favorites(self, tenant_id: str, channel_id: str, add: bool) -> Tenant:
        async with self._lock_for(tenant_id):
            tenant = await self.store.get(tenant_id)
            if tenant is None:
                raise NotFoundError(f"Unknown tenant {tenant_id}")

            favorites = set(tenant.favorites)
            if add:
                favorites.add(channel_id)
            else:
                favorites.discard(channel_id)
            if favorites == tenant.favorites:
                return tenant

            updated = tenant.model_copy(update={"favorites": favorites})
            await self.store.put(updated)
            return updated

    async def touch(self, tenant_id: str):
        await self.store.touch(tenant_id, utcnow())

    async def evict_idle(self, max_idle: timedelta) -> list[str]:
        """Drop tenants not accessed within max_idle."""
        evicted = await self.store.evict_idle(utcnow() - max_idle)
        for tenant_id in evicted:
            self._locks.pop(tenant_id, None)
        if evicted:
            logger.info(f"Evicted {len(evicted)} idle tenants")
        return evicted

    async def stale_tenants(self, max_age: timedelta) -> list[str]:
        """Ids of tenants whose last successful ingestion is older than max_age."""
        cutoff: datetime = utcnow() - max_age
        return [t.tenant_id for t in await self.store.list_tenants() if t.refreshed_at < cutoff]


# Singleton
_tenant_service: Optional[TenantService] = None


async def get_tenant_service() -> TenantService:
    """Get or create tenant service singleton."""
    global _tenant_service
    if _tenant_service is None:
        settings = get_settings()
        _tenant_service = TenantService(
            store=await get_tenant_store(),
            fetcher=get_fetcher(),
            identity=IdentityStrategy(settings.identity_strategy),
        )
    return _tenant_service
