"""Connection configuration for one CMS project.

:class:`ClientConfig` is immutable once built and shared read-only with every
request a client issues.  Build it through :meth:`ClientConfig.build` so that
malformed values surface as :class:`~cms_client.core.exceptions.ConfigError`
rather than as raw Pydantic errors.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from cms_client.core.exceptions import ConfigError

DEFAULT_TIMEOUT_SECONDS: float = 30.0
"""Per-request timeout applied when none is configured."""


class ClientConfig(BaseModel):
    """Connection parameters for one CMS project.

    Attributes:
        api_url: Absolute ``http``/``https`` base URL of the CMS API.  A
            trailing slash is stripped.
        api_key: Key sent as a bearer token on every request.
        project_id: Project every request path is scoped under.
        timeout_seconds: Per-request timeout.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_url: str
    api_key: str = Field(repr=False)
    project_id: str
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("api_url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("api_url must not be empty")
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"api_url must be an absolute http(s) URL, got {value!r}")
        if parts.query or parts.fragment:
            raise ValueError("api_url must not carry a query string or fragment")
        return value.rstrip("/")

    @field_validator("api_key", "project_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @classmethod
    def build(cls, data: ClientConfig | Mapping[str, Any] | None = None, **overrides: Any) -> ClientConfig:
        """Validate *data* and *overrides* into a config.

        Keyword overrides that are ``None`` are ignored, so callers can pass
        optional arguments straight through.

        Raises:
            ConfigError: If a value is missing or malformed.  ``setting``
                names the first offending field.
        """
        if isinstance(data, ClientConfig) and not any(v is not None for v in overrides.values()):
            return data
        if isinstance(data, ClientConfig):
            values: dict[str, Any] = data.model_dump()
        elif data is None:
            values = {}
        elif isinstance(data, Mapping):
            values = dict(data)
        else:
            raise ConfigError(
                f"Client configuration must be a ClientConfig or a mapping, got {type(data).__name__}"
            )
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls.model_validate(values)
        except pydantic.ValidationError as exc:
            first = exc.errors()[0]
            setting = str(first["loc"][0]) if first.get("loc") else None
            raise ConfigError(
                f"Invalid client configuration: {setting or 'config'}: {first['msg']}",
                setting=setting,
            ) from exc
