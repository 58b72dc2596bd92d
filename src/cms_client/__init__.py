"""Python client for a hosted headless CMS.

Declare a content schema, push it with one migration request, then create
and query content items through collection-bound query builders::

    from cms_client import CMSClient

    client = CMSClient(api_url=..., api_key=..., project_id=...)
    await client.migrate_schema(schema, collection="posts")
    items = await client.collection("posts").find(where={"published": True}, limit=5)
"""

from __future__ import annotations

from cms_client.client import CMSClient
from cms_client.config.connection import ClientConfig
from cms_client.config.settings import Settings, get_settings
from cms_client.core.exceptions import (
    AuthError,
    CMSError,
    ConfigError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestError,
    ServerError,
    ValidationError,
)
from cms_client.core.logging_config import configure_logging
from cms_client.core.schemas import (
    ContentItem,
    FieldType,
    QueryOptions,
    Schema,
    SchemaField,
    SortOrder,
    SortSpec,
)
from cms_client.migrations.migrator import SchemaMigrator, validate_schema
from cms_client.query.builder import CollectionQueryBuilder
from cms_client.transport.http import RequestTransport

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # client
    "CMSClient",
    "CollectionQueryBuilder",
    "SchemaMigrator",
    "RequestTransport",
    "validate_schema",
    # configuration
    "ClientConfig",
    "Settings",
    "get_settings",
    "configure_logging",
    # models
    "ContentItem",
    "FieldType",
    "QueryOptions",
    "Schema",
    "SchemaField",
    "SortOrder",
    "SortSpec",
    # exceptions
    "CMSError",
    "ConfigError",
    "RequestError",
    "ValidationError",
    "AuthError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
]
