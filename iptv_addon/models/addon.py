"""
Response models for the addon protocol (catalog metas and streams).
Serialized with camelCase aliases and without None fields.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class _AddonModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChannelMeta(_AddonModel):
    """Catalog/meta entry for one channel."""
    id: str
    type: str = "tv"
    name: str
    poster: str = ""
    poster_shape: str = Field(default="square", alias="posterShape")
    background: str = ""
    logo: str = ""
    description: Optional[str] = None
    genres: list[str] = Field(default_factory=list)


class ClearKeyHints(_AddonModel):
    """Inline clear-key material for players that decrypt locally."""
    type: str = "ClearKey"
    license_key: Optional[str] = Field(default=None, alias="licenseKey")
    key_id: str = Field(alias="keyId")
    key: str
    properties: dict[str, str] = Field(default_factory=dict)


class BehaviorHints(_AddonModel):
    binge_group: Optional[str] = Field(default=None, alias="bingeGroup")
    not_web_ready: bool = Field(default=False, alias="notWebReady")
    player_type: str = Field(default="other", alias="playerType")
    drm_config: Optional[ClearKeyHints] = Field(default=None, alias="drmConfig")


class StreamDescriptor(_AddonModel):
    """Playable URL plus player hints for one channel."""
    name: str
    title: Optional[str] = None
    url: str
    description: Optional[str] = None
    behavior_hints: BehaviorHints = Field(default_factory=BehaviorHints, alias="behaviorHints")
