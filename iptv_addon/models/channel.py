"""
Channel data models.
Produced by the playlist parser from EXTINF/KODIPROP/URL entries.
"""
from pydantic import BaseModel, Field
from typing import Optional

DEFAULT_GROUP = "No Category"
DEFAULT_NAME = "Unknown Channel"
CLEARKEY_LICENSE_TYPES = {"org.w3.clearkey", "clearkey"}


class InputStream(BaseModel):
    """Typed view of the inputstream.adaptive properties of a channel."""
    manifest_type: Optional[str] = None
    license_type: Optional[str] = None
    license_key: Optional[str] = None
    addon: Optional[str] = None

    @property
    def is_clearkey(self) -> bool:
        return (self.license_type or "").lower() in CLEARKEY_LICENSE_TYPES


class DrmConfig(BaseModel):
    """Clear-key material split out of a license key."""
    key_id: str
    key: str


class Channel(BaseModel):
    """A playable channel entry from a playlist."""
    id: str
    name: str = DEFAULT_NAME
    logo: str = ""
    group: str = DEFAULT_GROUP
    language: Optional[str] = None
    epg_id: Optional[str] = None
    url: str
    input_stream: InputStream = Field(default_factory=InputStream)
    drm_config: Optional[DrmConfig] = None
    properties: dict[str, str] = Field(default_factory=dict)

    @property
    def description(self) -> str:
        return f"{self.name} - {self.group}"
