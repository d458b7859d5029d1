"""
Configuration management for the IPTV addon backend.
Uses pydantic-settings for environment variable loading.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "IPTV Addon"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 7000
    # Used to build addon URLs when the service sits behind a reverse proxy
    public_base_url: Optional[str] = None

    # CORS Configuration
    # Addon clients fetch cross-origin, so everything is allowed by default
    cors_origins: list[str] = ["*"]

    # Rate Limiting
    rate_limit_per_minute: int = 20

    # Storage
    storage_backend: Literal["memory", "sqlite"] = "memory"
    database_path: str = "data/iptv_addon.db"

    # Tenant identity: "digest" of the source config, or random "token"
    identity_strategy: Literal["digest", "token"] = "digest"

    # Clear-key DRM handling
    drm_strategy: Literal["inline", "proxy"] = "inline"
    drm_proxy_url: Optional[str] = None
    drm_proxy_password: Optional[str] = None

    # Outbound playlist/guide fetches
    fetch_timeout_seconds: float = 30.0
    fetch_max_retries: int = 2
    fetch_backoff_seconds: float = 0.5
    user_agent: str = "Stremio-IPTV-Addon"

    # Catalog paging (size of one "skip" page)
    catalog_page_size: int = 100

    # Maintenance (0 = disabled)
    tenant_idle_hours: int = 0
    refresh_interval_hours: int = 0

    # Pydantic V2 configuration
    model_config = SettingsConfigDict(env_prefix="IPTV_ADDON_", env_file=".env")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
