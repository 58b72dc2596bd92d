"""Environment-backed settings for applications that use the client.

Uses Pydantic Settings v2.  This module is the only place that reads the
process environment or a ``.env`` file; the client itself only ever receives
a fully populated :class:`~cms_client.config.connection.ClientConfig`.
Applications opt in explicitly::

    from cms_client import CMSClient
    from cms_client.config import get_settings

    client = CMSClient.from_settings(get_settings())

Variables (all prefixed ``CMS_``):

- ``CMS_API_URL``: base URL of the CMS API.
- ``CMS_API_KEY``: project API key.
- ``CMS_PROJECT_ID``: project identifier.
- ``CMS_TIMEOUT_SECONDS``: per-request timeout (default 30).
- ``CMS_LOG_LEVEL``: verbosity passed to ``configure_logging``.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from cms_client.config.connection import DEFAULT_TIMEOUT_SECONDS, ClientConfig


class Settings(BaseSettings):
    """CMS connection settings read from the environment and an optional .env file.

    Missing values stay empty here; they are rejected with ``ConfigError``
    when :meth:`to_client_config` builds the client configuration.
    """

    model_config = SettingsConfigDict(
        env_prefix="CMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = ""
    """Base URL of the CMS API, e.g. ``https://api.example-cms.io/v1``."""

    api_key: str = ""
    """Project API key.  Generated out-of-band by the CMS CLI; never commit it."""

    project_id: str = ""
    """Project every request is scoped under."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    """Per-request timeout in seconds."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    def to_client_config(self) -> ClientConfig:
        """Build a validated :class:`ClientConfig`.

        Raises:
            ConfigError: If a connection value is missing or malformed.
        """
        return ClientConfig.build(
            api_url=self.api_url,
            api_key=self.api_key,
            project_id=self.project_id,
            timeout_seconds=self.timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings singleton.

    The environment and .env file are read once per process.  In tests,
    call ``get_settings.cache_clear()`` after patching environment variables.
    """
    return Settings()
