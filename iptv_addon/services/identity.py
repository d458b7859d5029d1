"""
Tenant identity strategies.

"digest" derives the id from the canonical source configuration, so the same
configuration always maps to the same tenant (idempotent re-configuration,
stable across restarts). "token" issues a random id per configure call.
"""
import hashlib
import json
import secrets

from iptv_addon.models.tenant import SourceConfig


def config_digest(config: SourceConfig) -> str:
    """Digest of the canonical JSON form of a source configuration."""
    data = config.model_dump()
    # Allow-list order carries no meaning
    data["filter_groups"] = sorted(data["filter_groups"])
    data["languages"] = sorted(data["languages"])
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:32]


def random_token() -> str:
    return secrets.token_hex(16)


class IdentityStrategy:
    """Derives tenant ids for new configurations."""

    def __init__(self, strategy: str = "digest"):
        if strategy not in ("digest", "token"):
            raise ValueError(f"Unknown identity strategy: {strategy}")
        self.strategy = strategy

    def tenant_id(self, config: SourceConfig) -> str:
        if self.strategy == "digest":
            return config_digest(config)
        return random_token()
