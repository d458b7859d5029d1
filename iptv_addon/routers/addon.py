"""
Addon protocol endpoints.
Manifest, catalog, meta and stream resources, scoped by tenant id in the path.
"""
from fastapi import APIRouter, Depends

from iptv_addon.errors import NotFoundError
from iptv_addon.services.addon import AddonService, get_addon_service

router = APIRouter(tags=["addon"])


def _parse_extra(extra: str) -> tuple[str | None, int]:
    """
    Parse a 'search=...&skip=...' extra path segment.

    The path parameter is already percent-decoded, so values are taken verbatim.
    """
    params = {}
    for pair in extra.split("&"):
        key, sep, value = pair.partition("=")
        if sep and key not in params:
            params[key] = value

    search = params.get("search") or None
    try:
        skip = int(params.get("skip", "0"))
    except ValueError:
        skip = 0
    return search, skip


@router.get("/{tenant_id}/manifest.json")
async def get_manifest(tenant_id: str, addon: AddonService = Depends(get_addon_service)):
    manifest = await addon.manifest(tenant_id)
    if manifest is None:
        raise NotFoundError("Invalid configuration")
    return manifest


@router.get("/{tenant_id}/catalog/{content_type}/{catalog_id}.json")
async def get_catalog(
    tenant_id: str,
    content_type: str,
    catalog_id: str,
    addon: AddonService = Depends(get_addon_service),
):
    return await addon.provide_catalog(tenant_id, content_type, catalog_id)


@router.get("/{tenant_id}/catalog/{content_type}/{catalog_id}/{extra}.json")
async def get_catalog_with_extra(
    tenant_id: str,
    content_type: str,
    catalog_id: str,
    extra: str,
    addon: AddonService = Depends(get_addon_service),
):
    search, skip = _parse_extra(extra)
    return await addon.provide_catalog(tenant_id, content_type, catalog_id, search=search, skip=skip)


@router.get("/{tenant_id}/meta/{content_type}/{channel_id}.json")
async def get_meta(
    tenant_id: str,
    content_type: str,
    channel_id: str,
    addon: AddonService = Depends(get_addon_service),
):
    return await addon.provide_meta(tenant_id, content_type, channel_id)


@router.get("/{tenant_id}/stream/{content_type}/{channel_id}.json")
async def get_stream(
    tenant_id: str,
    content_type: str,
    channel_id: str,
    addon: AddonService = Depends(get_addon_service),
):
    return await addon.provide_stream(tenant_id, content_type, channel_id)
