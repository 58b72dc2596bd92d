"""Content schema models.

A :class:`Schema` is an ordered list of :class:`SchemaField` declarations.
The models only describe the schema; the invariants that must hold before
the schema is pushed (unique names, default/type compatibility) are checked
by :func:`cms_client.migrations.migrator.validate_schema` so that a
malformed schema is reported as a :class:`~cms_client.core.exceptions.ValidationError`
naming the offending field.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    """Value types a schema field may declare.

    Attributes:
        STRING: Short single-line text.
        TEXT: Long-form text.
        NUMBER: Integer or floating point number.
        BOOLEAN: ``True`` / ``False``.
        DATE: Calendar date or timestamp, sent as ISO 8601.
    """

    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"

    def accepts(self, value: Any) -> bool:
        """Return ``True`` if *value* is a valid runtime value for this type.

        ``None`` is never accepted here; callers treat ``None`` as "no value".
        ``bool`` is rejected for ``NUMBER`` even though it subclasses ``int``.
        ``DATE`` accepts ``date``/``datetime`` objects and ISO 8601 strings.
        """
        if self in (FieldType.STRING, FieldType.TEXT):
            return isinstance(value, str)
        if self is FieldType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self is FieldType.BOOLEAN:
            return isinstance(value, bool)
        if isinstance(value, (date, datetime)):
            return True
        if isinstance(value, str):
            return _parse_iso(value) is not None
        return False


def _parse_iso(value: str) -> datetime | date | None:
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


class SchemaField(BaseModel):
    """One field declaration within a :class:`Schema`.

    Attributes:
        name: Field name, unique within its schema.
        type: Declared value type.
        required: Whether content items must carry a value for this field.
        default: Value the backend applies when a non-required field is
            omitted.  Must match ``type``; must be ``None`` when
            ``required`` is set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., description="Field name, unique within the schema.")
    type: FieldType = Field(..., description="Declared value type.")
    required: bool = Field(default=False, description="Whether a value is mandatory.")
    default: Optional[Any] = Field(
        default=None,
        description="Default value for optional fields; must match ``type``.",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the wire shape ``{name, type, required, default}``."""
        return self.model_dump(mode="json")


class Schema(BaseModel):
    """Ordered field list describing one collection's content shape.

    Field order is preserved and sent verbatim; it affects display order on
    the backend but not correctness.

    Attributes:
        fields: Field declarations, in display order.
        collection: Optional collection the schema belongs to.  When set,
            migration targets that collection's schema endpoint.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    fields: list[SchemaField] = Field(default_factory=list)
    collection: Optional[str] = Field(default=None)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> SchemaField | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the migration request body ``{"fields": [...]}``."""
        return {"fields": [f.to_payload() for f in self.fields]}

    @classmethod
    def from_payload(cls, data: Any, collection: str | None = None) -> Schema:
        """Build a schema from a backend response body.

        Accepts ``{"fields": [...]}``, a bare list of field dicts, or
        ``None`` (an empty schema).  Unknown keys on field dicts are dropped.
        """
        if data is None:
            raw_fields: list[Any] = []
        elif isinstance(data, list):
            raw_fields = data
        else:
            raw_fields = data.get("fields") or []
        known = set(SchemaField.model_fields)
        fields = [
            SchemaField.model_validate({k: v for k, v in raw.items() if k in known})
            for raw in raw_fields
            if isinstance(raw, dict)
        ]
        return cls(fields=fields, collection=collection)
