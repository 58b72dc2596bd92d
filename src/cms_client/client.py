"""Top-level client for one CMS project.

Usage::

    from cms_client import CMSClient

    client = CMSClient(
        api_url="https://api.example-cms.io/v1",
        api_key=api_key,
        project_id="blog",
    )

    await client.migrate_schema({
        "fields": [
            {"name": "title", "type": "string", "required": True},
            {"name": "published", "type": "boolean", "default": False},
        ]
    }, collection="posts")

    post = await client.create_content("posts", {"title": "Hello", "published": True})
    recent = await client.collection("posts").find(where={"published": True}, limit=5)

The client holds only its immutable configuration (and an optional borrowed
``httpx.AsyncClient``).  Every operation is an independent request, so one
client may be shared by concurrent tasks.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from cms_client.config.connection import ClientConfig
from cms_client.config.settings import Settings, get_settings
from cms_client.core.exceptions import CMSError, NetworkError
from cms_client.core.schemas.content import ContentItem
from cms_client.core.schemas.schema import Schema
from cms_client.migrations.migrator import SchemaMigrator
from cms_client.query.builder import CollectionQueryBuilder, ContentInput
from cms_client.transport.http import RequestTransport

logger = structlog.get_logger(__name__)


class CMSClient:
    """Handle over one CMS project's connection parameters.

    Args:
        config: A :class:`ClientConfig` or a mapping with ``api_url``,
            ``api_key``, ``project_id`` and optionally ``timeout_seconds``.
        api_url: Overrides ``config.api_url``.
        api_key: Overrides ``config.api_key``.
        project_id: Overrides ``config.project_id``.
        timeout_seconds: Overrides ``config.timeout_seconds``.
        http_client: Optional ``httpx.AsyncClient`` to reuse across calls.
            The caller owns and closes it.

    Raises:
        ConfigError: If any connection value is empty or malformed.  Raised
            before any network access.
    """

    def __init__(
        self,
        config: ClientConfig | Mapping[str, Any] | None = None,
        *,
        api_url: str | None = None,
        api_key: str | None = None,
        project_id: str | None = None,
        timeout_seconds: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = ClientConfig.build(
            config,
            api_url=api_url,
            api_key=api_key,
            project_id=project_id,
            timeout_seconds=timeout_seconds,
        )
        self._transport = RequestTransport(self._config, http_client=http_client)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> CMSClient:
        """Build a client from environment-backed :class:`Settings`.

        This is the only path through which the client consumes environment
        configuration, and only when called explicitly.

        Raises:
            ConfigError: If a ``CMS_*`` value is missing or malformed.
        """
        if settings is None:
            settings = get_settings()
        return cls(settings.to_client_config(), http_client=http_client)

    def __repr__(self) -> str:
        return (
            f"CMSClient(api_url={self._config.api_url!r}, "
            f"project_id={self._config.project_id!r})"
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def collection(self, name: str) -> CollectionQueryBuilder:
        """Return an immutable query builder bound to collection *name*.

        Performs no I/O.

        Raises:
            ValidationError: If *name* is empty.
        """
        return CollectionQueryBuilder(name, self._transport)

    async def migrate_schema(
        self,
        schema: Schema | Mapping[str, Any],
        collection: str | None = None,
    ) -> None:
        """Push *schema* to the backend in one request.

        Args:
            schema: Schema model or ``{"fields": [...]}`` mapping.
            collection: Target collection.  Defaults to ``schema.collection``;
                when neither is set the project-wide schema is migrated.

        Raises:
            ValidationError: If the schema fails local checks (nothing is
                sent) or the backend rejects it.
        """
        await SchemaMigrator(self._transport).migrate(schema, collection=collection)

    async def fetch_schema(self, collection: str | None = None) -> Schema:
        """Read the schema currently applied on the backend."""
        return await SchemaMigrator(self._transport).fetch(collection=collection)

    async def create_content(self, collection: str, content: ContentInput) -> ContentItem:
        """Create one item in *collection*.

        Shorthand for ``client.collection(collection).create(content)``.  The
        collection is always explicit; there is no default collection.
        """
        return await self.collection(collection).create(content)

    async def health_check(self) -> dict[str, Any]:
        """Probe the project endpoint and report reachability.

        Never raises for backend or network failures.

        Returns:
            Dict with ``status`` (``"ok"`` | ``"degraded"`` | ``"down"``),
            ``project_id``, ``checked_at`` and, when not ok, ``detail``.
        """
        base: dict[str, Any] = {
            "project_id": self._config.project_id,
            "checked_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self._transport.request("GET", "")
        except NetworkError as exc:
            logger.warning("cms.health_check.down", error=str(exc))
            return {**base, "status": "down", "detail": f"Connection error: {exc}"}
        except CMSError as exc:
            logger.warning("cms.health_check.degraded", error=str(exc))
            return {**base, "status": "degraded", "detail": str(exc)}
        return {**base, "status": "ok"}
