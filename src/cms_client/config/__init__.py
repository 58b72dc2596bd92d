"""Configuration package.

Re-exports the configuration symbols so callers can write::

    from cms_client.config import ClientConfig, get_settings
"""

from __future__ import annotations

from cms_client.config.connection import DEFAULT_TIMEOUT_SECONDS, ClientConfig
from cms_client.config.settings import Settings, get_settings

__all__ = [
    "ClientConfig",
    "DEFAULT_TIMEOUT_SECONDS",
    "Settings",
    "get_settings",
]
