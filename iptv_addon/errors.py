"""
Error taxonomy for ingestion and resolution.
"""


class AddonError(Exception):
    """Base class for all addon errors."""


class FetchError(AddonError):
    """Network or HTTP failure while retrieving playlist or guide text."""


class FormatError(AddonError):
    """Playlist or guide content that cannot be turned into a catalog."""


class ConfigError(AddonError):
    """Tenant configuration that is undecodable or missing required fields."""


class NotFoundError(AddonError):
    """Unknown tenant, catalog, or channel."""


class DrmConfigError(AddonError):
    """Recognized DRM scheme with unusable key material."""
