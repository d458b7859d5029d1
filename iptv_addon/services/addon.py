"""
Addon protocol handlers.

Transport-independent implementations of the manifest, catalog, meta and
stream resources. Lookup misses (unknown tenant, type or channel) degrade to
empty responses rather than errors.
"""
import logging
from typing import Optional

from iptv_addon.config import get_settings
from iptv_addon.models.tenant import Tenant
from iptv_addon.services.catalog import (
    ALL_CATALOG,
    FAVORITES_CATALOG,
    CatalogResolver,
    category_catalog_id,
)
from iptv_addon.services.m3u_parser import ID_PREFIX
from iptv_addon.services.streams import StreamResolver
from iptv_addon.services.tenant_service import TenantService, get_tenant_service

logger = logging.getLogger(__name__)

CONTENT_TYPE = "tv"


class AddonService:
    """Serves addon resources for configured tenants."""

    def __init__(
        self,
        tenants: TenantService,
        catalog: CatalogResolver,
        streams: StreamResolver,
        version: str = "1.0.0",
    ):
        self.tenants = tenants
        self.catalog = catalog
        self.streams = streams
        self.version = version

    async def _tenant(self, tenant_id: str) -> Optional[Tenant]:
        tenant = await self.tenants.get(tenant_id)
        if tenant is not None:
            await self.tenants.touch(tenant_id)
        return tenant

    def build_manifest(self, tenant: Tenant) -> dict:
        config = tenant.config
        catalogs = [
            {
                "type": CONTENT_TYPE,
                "id": ALL_CATALOG,
                "name": "All Channels",
                "extra": [{"name": "search"}, {"name": "skip"}],
            },
            {"type": CONTENT_TYPE, "id": FAVORITES_CATALOG, "name": "⭐ Favorites"},
        ]
        catalogs.extend(
            {"type": CONTENT_TYPE, "id": category_catalog_id(category), "name": category}
            for category in tenant.categories
        )

        return {
            "id": f"org.myiptvaddon.{tenant.tenant_id}",
            "version": self.version,
            "name": config.name,
            "description": config.description,
            "logo": config.logo,
            "resources": ["catalog", "meta", "stream"],
            "types": [CONTENT_TYPE],
            "catalogs": catalogs,
            "idPrefixes": [ID_PREFIX],
            "behaviorHints": {"configurable": True},
        }

    async def manifest(self, tenant_id: str) -> Optional[dict]:
        tenant = await self._tenant(tenant_id)
        if tenant is None:
            return None
        return self.build_manifest(tenant)

    async def provide_catalog(
        self,
        tenant_id: str,
        content_type: str,
        catalog_id: str,
        search: Optional[str] = None,
        skip: int = 0,
    ) -> dict:
        tenant = await self._tenant(tenant_id)
        if tenant is None or content_type != CONTENT_TYPE:
            return {"metas": []}

        metas = self.catalog.resolve(tenant, catalog_id, search=search, skip=skip)
        return {"metas": [meta.to_response() for meta in metas]}

    async def provide_meta(self, tenant_id: str, content_type: str, channel_id: str) -> dict:
        tenant = await self._tenant(tenant_id)
        if tenant is None or content_type != CONTENT_TYPE:
            return {"meta": None}

        meta = self.catalog.meta(tenant, channel_id)
        return {"meta": meta.to_response() if meta else None}

    async def provide_stream(self, tenant_id: str, content_type: str, channel_id: str) -> dict:
        tenant = await self._tenant(tenant_id)
        if tenant is None or content_type != CONTENT_TYPE:
            return {"streams": []}

        streams = self.streams.resolve(tenant, channel_id)
        return {"streams": [stream.to_response() for stream in streams]}


# Singleton
_addon_service: Optional[AddonService] = None


async def get_addon_service() -> AddonService:
    """Get or create addon service singleton."""
    global _addon_service
    if _addon_service is None:
        settings = get_settings()
        _addon_service = AddonService(
            tenants=await get_tenant_service(),
            catalog=CatalogResolver(page_size=settings.catalog_page_size),
            streams=StreamResolver(
                drm_strategy=settings.drm_strategy,
                proxy_url=settings.drm_proxy_url,
                proxy_password=settings.drm_proxy_password,
            ),
            version=settings.app_version,
        )
    return _addon_service
