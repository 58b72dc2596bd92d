"""Content item model.

Content is data, not a compile-time type: a :class:`ContentItem` is an open
Pydantic model holding the backend-assigned ``id`` plus whatever fields the
collection's schema declares.  The client performs no local cross-check of
keys against a schema; validation is the backend's responsibility.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

#: Runtime value of a content field: one variant per schema field type.
FieldValue = Union[str, int, float, bool, date, datetime, None]


class ContentItem(BaseModel):
    """One record within a collection.

    Field values are exposed both as attributes (``item.title``) and through
    a read-only mapping interface (``item["title"]``, ``"title" in item``,
    ``item.get("title")``).  Key order follows the payload the item was
    built from.

    Attributes:
        id: Backend-assigned identifier; ``None`` before creation.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: Optional[str] = Field(default=None, description="Backend-assigned identifier.")

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> ContentItem:
        """Build an item from a decoded backend object.

        Numeric ids are normalised to strings so that ids compare equal
        across calls regardless of how the backend encodes them.
        """
        payload = dict(data)
        raw_id = payload.get("id")
        if raw_id is not None and not isinstance(raw_id, str):
            payload["id"] = str(raw_id)
        return cls.model_validate(payload)

    @property
    def fields(self) -> dict[str, Any]:
        """All non-id field values, in payload order."""
        return dict(self.model_extra or {})

    def to_payload(self) -> dict[str, Any]:
        """Return the field values as a plain dict, without ``id``."""
        return self.fields

    def as_dict(self) -> dict[str, Any]:
        """Return ``id`` followed by every field value."""
        return {"id": self.id, **self.fields}

    def get(self, key: str, default: Any = None) -> Any:
        if key == "id":
            return self.id
        return (self.model_extra or {}).get(key, default)

    def __getitem__(self, key: str) -> Any:
        if key == "id":
            return self.id
        extra = self.model_extra or {}
        if key not in extra:
            raise KeyError(key)
        return extra[key]

    def __contains__(self, key: object) -> bool:
        if key == "id":
            return self.id is not None
        return key in (self.model_extra or {})

    def keys(self) -> Iterator[str]:
        if self.id is not None:
            yield "id"
        yield from (self.model_extra or {})
