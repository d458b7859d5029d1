"""
Tenant models: one ingested addon configuration per user.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from iptv_addon.models.channel import Channel
from iptv_addon.models.epg import GuideIndex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceConfig(BaseModel):
    """
    Source configuration submitted on /configure.

    Field aliases match the JSON body sent by the configuration page.
    """
    model_config = ConfigDict(populate_by_name=True)

    playlist_url: str = Field(alias="m3uUrl")
    guide_url: Optional[str] = Field(default=None, alias="epgUrl")
    name: str = "My IPTV Addon"
    description: str = "Custom IPTV addon with DRM support"
    filter_groups: list[str] = Field(default_factory=list, alias="filterGroups")
    logo: str = ""
    languages: list[str] = Field(default_factory=list)

    @field_validator("playlist_url")
    @classmethod
    def _require_playlist_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("M3U URL is required")
        return value

    @field_validator("guide_url")
    @classmethod
    def _blank_guide_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


class Tenant(BaseModel):
    """All state owned by one tenant."""
    tenant_id: str
    config: SourceConfig
    channels: list[Channel] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    guide_index: GuideIndex = Field(default_factory=dict)
    favorites: set[str] = Field(default_factory=set)
    last_access: datetime = Field(default_factory=utcnow)
    refreshed_at: datetime = Field(default_factory=utcnow)

    def find_channel(self, channel_id: str) -> Optional[Channel]:
        """Find a channel by id. Duplicate declared ids resolve to the last one."""
        found = None
        for channel in self.channels:
            if channel.id == channel_id:
                found = channel
        return found
