"""
Shared slowapi rate limiter.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from iptv_addon.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def configure_limit() -> str:
    """Limit string for /configure, read from settings at request time."""
    return f"{get_settings().rate_limit_per_minute}/minute"
