"""Collection query builder.

A :class:`CollectionQueryBuilder` is bound to one collection name and one
transport.  It holds no mutable state, so a single instance can be reused
from any number of concurrent call sites.  Each operation compiles its
arguments into exactly one request.

Endpoints (relative to ``/projects/{project_id}``)::

    GET    collections/{name}/items          find / find_one / iterate
    GET    collections/{name}/items/{id}     get
    POST   collections/{name}/items          create
    PATCH  collections/{name}/items/{id}     update
    DELETE collections/{name}/items/{id}     delete
    PUT    collections/{name}/schema         migrate_schema

Example::

    posts = client.collection("posts")
    created = await posts.create({"title": "Hello", "published": True})
    page = await posts.find(where={"published": True}, sort="-title", limit=5)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from datetime import date, datetime
from typing import Any

import pydantic

from cms_client.core.exceptions import RequestError, ValidationError
from cms_client.core.schemas.content import ContentItem, FieldValue
from cms_client.core.schemas.query import QueryOptions
from cms_client.core.schemas.schema import Schema
from cms_client.migrations.migrator import SchemaMigrator
from cms_client.transport.http import RequestTransport, quote_segment

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE: int = 100
"""Page size used by :meth:`CollectionQueryBuilder.iterate`."""

ContentInput = ContentItem | Mapping[str, FieldValue]


class CollectionQueryBuilder:
    """Find and mutate content items of one collection.

    Args:
        name: Collection name.
        transport: Transport shared with the owning client.

    Raises:
        ValidationError: If *name* is empty.
    """

    __slots__ = ("_name", "_transport")

    def __init__(self, name: str, transport: RequestTransport) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Collection name must not be empty")
        self._name = name.strip()
        self._transport = transport

    def __repr__(self) -> str:
        return f"CollectionQueryBuilder(name={self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def items_path(self) -> str:
        return f"collections/{quote_segment(self._name)}/items"

    def item_path(self, item_id: str) -> str:
        if item_id is None or not str(item_id).strip():
            raise ValidationError("Item id must not be empty", field="id")
        return f"{self.items_path}/{quote_segment(str(item_id))}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find(
        self,
        options: QueryOptions | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> list[ContentItem]:
        """Return the items matching *options*, in backend order.

        Options may be given as a :class:`QueryOptions`, a mapping, keyword
        arguments, or a mix (keywords win).  Omitted members are not sent:
        without ``limit`` the backend's default page size applies.

        The window is ``offset`` items skipped, then at most ``limit``
        returned.  An offset past the end yields ``[]``.  Sort ties follow
        the backend's natural order.

        Raises:
            ValidationError: If the options are malformed (no request is
                made) or the backend rejects the filter with 400/422.
        """
        query = _coerce_options(options, kwargs)
        data = await self._transport.request("GET", self.items_path, params=query.to_params())
        items = [ContentItem.from_payload(raw) for raw in _unwrap_items(data)]
        if query.limit is not None and len(items) > query.limit:
            logger.warning(
                "cms: backend returned %d items for %r with limit=%d; truncating",
                len(items),
                self._name,
                query.limit,
            )
            items = items[: query.limit]
        return items

    async def find_one(
        self,
        options: QueryOptions | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> ContentItem | None:
        """Return the first matching item, or ``None``."""
        query = _coerce_options(options, kwargs).merged(limit=1)
        items = await self.find(query)
        return items[0] if items else None

    async def iterate(
        self,
        options: QueryOptions | Mapping[str, Any] | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        **kwargs: Any,
    ) -> AsyncIterator[ContentItem]:
        """Yield every matching item, fetching one page per request.

        Pages are requested with increasing ``offset`` until a short page is
        returned.  An overall ``limit`` in *options* bounds the total number
        of items yielded.  Pages are fetched sequentially; items written
        concurrently may be skipped or repeated.

        Raises:
            ValidationError: If *page_size* is below 1 or the options are
                malformed.
        """
        if page_size < 1:
            raise ValidationError("page_size must be at least 1", field="page_size")
        base = _coerce_options(options, kwargs)
        remaining = base.limit
        offset = base.offset or 0
        while remaining is None or remaining > 0:
            size = page_size if remaining is None else min(page_size, remaining)
            page = await self.find(base.merged(limit=size, offset=offset))
            for item in page:
                yield item
            if len(page) < size:
                return
            offset += len(page)
            if remaining is not None:
                remaining -= len(page)

    async def get(self, item_id: str) -> ContentItem:
        """Fetch one item by id.

        Raises:
            NotFoundError: If the item does not exist.
        """
        data = await self._transport.request("GET", self.item_path(item_id))
        return ContentItem.from_payload(self._unwrap_item(data, "GET", self.item_path(item_id)))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, content: ContentInput) -> ContentItem:
        """Create an item and return it as stored by the backend.

        The mapping is sent as-is apart from an ``id`` key, which is dropped
        because ids are assigned by the backend.  Dates are sent as ISO 8601
        strings.  No local schema check is made.

        Returns:
            The backend's item: its assigned ``id`` merged with the
            (possibly normalised) field values.

        Raises:
            ValidationError: If the backend reports field mismatches (400/422).
            RequestError: If the response carries no item id.
        """
        payload = _content_payload(content)
        data = await self._transport.request("POST", self.items_path, json=payload)
        item = ContentItem.from_payload(self._unwrap_item(data, "POST", self.items_path))
        if not item.id:
            raise RequestError(
                f"Backend did not assign an id to the new {self._name!r} item",
                method="POST",
                url=self._transport.build_url(self.items_path),
            )
        logger.info("cms: created item %s in %r", item.id, self._name)
        return item

    async def update(self, item_id: str, changes: ContentInput) -> ContentItem:
        """Apply a partial update and return the updated item.

        Raises:
            ValidationError: If the backend rejects the changes (400/422).
            NotFoundError: If the item does not exist.
        """
        path = self.item_path(item_id)
        data = await self._transport.request("PATCH", path, json=_content_payload(changes))
        item = ContentItem.from_payload(self._unwrap_item(data, "PATCH", path))
        if item.id is None:
            item = ContentItem.from_payload({**item.fields, "id": item_id})
        return item

    async def delete(self, item_id: str) -> None:
        """Delete one item.

        Raises:
            NotFoundError: If the item does not exist.
        """
        await self._transport.request("DELETE", self.item_path(item_id))
        logger.info("cms: deleted item %s from %r", item_id, self._name)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def migrate_schema(self, schema: Schema | Mapping[str, Any]) -> None:
        """Push *schema* as this collection's schema."""
        await SchemaMigrator(self._transport).migrate(schema, collection=self._name)

    async def fetch_schema(self) -> Schema:
        """Read this collection's current schema."""
        return await SchemaMigrator(self._transport).fetch(collection=self._name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _unwrap_item(self, data: Any, method: str, path: str) -> dict[str, Any]:
        """Return the item object from a response, unwrapping ``data``/``item``."""
        if isinstance(data, dict):
            for key in ("data", "item"):
                inner = data.get(key)
                if isinstance(inner, dict):
                    return inner
            return data
        raise RequestError(
            f"Expected an item object from {method} {path}, got {type(data).__name__}",
            method=method,
            url=self._transport.build_url(path),
        )


def _coerce_options(
    options: QueryOptions | Mapping[str, Any] | None,
    overrides: Mapping[str, Any],
) -> QueryOptions:
    """Merge *options* and keyword *overrides* into a validated QueryOptions.

    Raises:
        ValidationError: If the result is not a valid QueryOptions.
    """
    if isinstance(options, QueryOptions) and not overrides:
        return options
    if isinstance(options, QueryOptions):
        data: dict[str, Any] = options.model_dump(exclude_none=True)
    else:
        data = dict(options or {})
    data.update(overrides)
    try:
        return QueryOptions.model_validate(data)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc", ())
        raise ValidationError(
            f"Invalid query options: {'.'.join(str(p) for p in loc)}: {first['msg']}",
            field=str(loc[0]) if loc else None,
        ) from exc


def _unwrap_items(data: Any) -> list[dict[str, Any]]:
    """Return the item list from a ``find`` response.

    Accepts a bare list or an object with an ``items`` or ``data`` list.
    """
    if data is None:
        return []
    if isinstance(data, dict):
        for key in ("items", "data"):
            inner = data.get(key)
            if isinstance(inner, list):
                data = inner
                break
        else:
            return []
    if not isinstance(data, list):
        return []
    return [raw for raw in data if isinstance(raw, dict)]


def _content_payload(content: ContentInput) -> dict[str, Any]:
    if isinstance(content, ContentItem):
        raw = content.to_payload()
    elif isinstance(content, Mapping):
        raw = {k: v for k, v in content.items() if k != "id"}
    else:
        raise ValidationError(
            f"Content must be a mapping, got {type(content).__name__}"
        )
    return {key: _jsonable(value) for key, value in raw.items()}


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
