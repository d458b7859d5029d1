"""
Favorites API endpoints.
"""
from fastapi import APIRouter, Depends

from iptv_addon.services.tenant_service import TenantService, get_tenant_service

router = APIRouter(prefix="/favorite", tags=["favorites"])


@router.post("/{tenant_id}/{channel_id}")
async def add_favorite(
    tenant_id: str,
    channel_id: str,
    tenants: TenantService = Depends(get_tenant_service),
):
    """Add a channel to the tenant's favorites catalog."""
    await tenants.add_favorite(tenant_id, channel_id)
    return {"success": True}


@router.delete("/{tenant_id}/{channel_id}")
async def remove_favorite(
    tenant_id: str,
    channel_id: str,
    tenants: TenantService = Depends(get_tenant_service),
):
    """Remove a channel from the tenant's favorites catalog."""
    await tenants.remove_favorite(tenant_id, channel_id)
    return {"success": True}
