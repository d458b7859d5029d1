"""
Configuration API endpoints.
Creates tenants from playlist/guide sources and re-ingests them on demand.
"""
import json
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from iptv_addon.config import get_settings
from iptv_addon.errors import ConfigError
from iptv_addon.models.tenant import SourceConfig
from iptv_addon.rate_limit import configure_limit, limiter
from iptv_addon.services.tenant_service import TenantService, get_tenant_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["configure"])


def _parse_config(body) -> SourceConfig:
    if not isinstance(body, dict):
        raise ConfigError("Configuration must be a JSON object")
    if not body.get("m3uUrl"):
        raise ConfigError("M3U URL is required")
    try:
        return SourceConfig.model_validate(body)
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ConfigError(f"Invalid configuration: {messages}") from e


def _addon_url(request: Request, tenant_id: str) -> str:
    base_url = get_settings().public_base_url or str(request.base_url)
    return f"{base_url.rstrip('/')}/{tenant_id}/manifest.json"


@router.post("/configure")
@limiter.limit(configure_limit)
async def configure(
    request: Request,
    tenants: TenantService = Depends(get_tenant_service),
):
    """
    Configure an addon from a playlist URL (and optional guide URL).

    Fetch and parse failures are reported as 400 with details.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError("Request body is not valid JSON") from e

    config = _parse_config(body)
    tenant = await tenants.configure(config)

    return {
        "success": True,
        "message": "Configuration updated",
        "tenantId": tenant.tenant_id,
        "addonUrl": _addon_url(request, tenant.tenant_id),
    }


@router.post("/refresh/{tenant_id}")
async def refresh(tenant_id: str, tenants: TenantService = Depends(get_tenant_service)):
    """Re-fetch the tenant's playlist and guide."""
    tenant = await tenants.refresh(tenant_id)
    return {"success": True, "channels": len(tenant.channels)}
