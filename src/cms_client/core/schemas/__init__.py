"""Value models for schemas, queries and content items.

Re-exports so callers can write::

    from cms_client.core.schemas import Schema, SchemaField, QueryOptions
"""

from __future__ import annotations

from cms_client.core.schemas.content import ContentItem, FieldValue
from cms_client.core.schemas.query import QueryOptions, SortOrder, SortSpec
from cms_client.core.schemas.schema import FieldType, Schema, SchemaField

__all__ = [
    "ContentItem",
    "FieldValue",
    "FieldType",
    "QueryOptions",
    "Schema",
    "SchemaField",
    "SortOrder",
    "SortSpec",
]
