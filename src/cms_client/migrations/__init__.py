"""Schema migration."""

from __future__ import annotations

from cms_client.migrations.migrator import SchemaMigrator, validate_schema

__all__ = ["SchemaMigrator", "validate_schema"]
