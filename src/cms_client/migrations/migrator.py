"""Schema migration: push a declarative field list to the backend.

Migration is a single declarative ``PUT``: the request body carries the full
ordered field list and the backend reconciles it with its current state.
Re-running a migration with an unchanged schema is a no-op on the backend;
what happens when a field changes type or disappears is backend-defined and
not enforced here.

Before any network call the schema is checked locally by
:func:`validate_schema`.  A failing check raises
:class:`~cms_client.core.exceptions.ValidationError` naming the offending
field and no request is made.

Endpoints (relative to ``/projects/{project_id}``)::

    PUT schema                        project-wide schema
    PUT collections/{name}/schema     collection-scoped schema
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pydantic

from cms_client.core.exceptions import RequestError, ValidationError
from cms_client.core.schemas.schema import Schema
from cms_client.transport.http import RequestTransport, quote_segment

logger = logging.getLogger(__name__)


def coerce_schema(schema: Schema | Mapping[str, Any]) -> Schema:
    """Accept a :class:`Schema` or a plain ``{"fields": [...]}`` mapping.

    Raises:
        ValidationError: If the mapping cannot be read as a schema.  The
            ``field`` attribute names the offending field when it can be
            located.
    """
    if isinstance(schema, Schema):
        return schema
    try:
        return Schema.model_validate(schema)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field_name = _field_name_from_loc(schema, first.get("loc", ()))
        raise ValidationError(
            f"Invalid schema: {'.'.join(str(p) for p in first.get('loc', ()))}: {first['msg']}",
            field=field_name,
        ) from exc


def _field_name_from_loc(schema: Any, loc: tuple[Any, ...]) -> str | None:
    """Map a Pydantic error location like ``("fields", 2, "type")`` to a field name."""
    if len(loc) < 2 or loc[0] != "fields" or not isinstance(loc[1], int):
        return None
    try:
        raw = schema["fields"][loc[1]]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(raw, Mapping) and isinstance(raw.get("name"), str):
        return raw["name"]
    return None


def validate_schema(schema: Schema) -> None:
    """Check the invariants a schema must satisfy before it is pushed.

    - every field name is non-blank and unique;
    - a required field carries no default;
    - a default, when present, matches the field's declared type.

    Raises:
        ValidationError: On the first violation, with ``field`` set to the
            offending field name.
    """
    seen: set[str] = set()
    for position, field in enumerate(schema.fields):
        if not field.name.strip():
            raise ValidationError(
                f"Field at position {position} has an empty name",
                field=field.name,
            )
        if field.name in seen:
            raise ValidationError(
                f"Duplicate field name {field.name!r}",
                field=field.name,
            )
        seen.add(field.name)

        if field.default is None:
            continue
        if field.required:
            raise ValidationError(
                f"Field {field.name!r} is required and cannot declare a default",
                field=field.name,
            )
        if not field.type.accepts(field.default):
            raise ValidationError(
                f"Default for field {field.name!r} does not match type "
                f"{field.type.value!r}: {field.default!r}",
                field=field.name,
            )


def schema_path(collection: str | None = None) -> str:
    """Project-relative path of the schema endpoint."""
    if collection is None:
        return "schema"
    return f"collections/{quote_segment(collection)}/schema"


class SchemaMigrator:
    """Compiles a :class:`Schema` into one migration request.

    Args:
        transport: Transport used to reach the backend.
    """

    def __init__(self, transport: RequestTransport) -> None:
        self._transport = transport

    async def migrate(
        self,
        schema: Schema | Mapping[str, Any],
        collection: str | None = None,
    ) -> None:
        """Validate *schema* locally and push it in a single ``PUT``.

        Args:
            schema: Schema model or ``{"fields": [...]}`` mapping.
            collection: Target collection.  Falls back to
                ``schema.collection``; when both are unset the project-wide
                schema endpoint is used.

        Raises:
            ValidationError: On a local check failure (no request is made)
                or when the backend rejects the schema with 400/422.
            AuthError, RequestError, ServerError, NetworkError: As mapped
                by the transport.
        """
        model = coerce_schema(schema)
        validate_schema(model)
        target = collection if collection is not None else model.collection
        if target is not None and not target.strip():
            raise ValidationError("Collection name must not be empty")

        logger.info(
            "cms: migrating schema (%d fields) for %s",
            len(model.fields),
            f"collection {target!r}" if target else "project",
        )
        await self._transport.request("PUT", schema_path(target), json=model.to_payload())

    async def fetch(self, collection: str | None = None) -> Schema:
        """Read the schema currently applied on the backend.

        An empty response decodes to an empty schema.
        """
        data = await self._transport.request("GET", schema_path(collection))
        if isinstance(data, dict) and isinstance(data.get("data"), (dict, list)):
            data = data["data"]
        try:
            return Schema.from_payload(data, collection=collection)
        except (pydantic.ValidationError, AttributeError) as exc:
            raise RequestError(
                f"Backend returned a malformed schema: {exc}",
                method="GET",
                url=self._transport.build_url(schema_path(collection)),
            ) from exc
