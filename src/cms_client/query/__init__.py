"""Collection-bound query and mutation builder."""

from __future__ import annotations

from cms_client.query.builder import CollectionQueryBuilder

__all__ = ["CollectionQueryBuilder"]
