"""Query option models for collection reads.

:class:`QueryOptions` captures the filter/select/sort/pagination intent of a
single ``find`` call.  Every member is optional; an absent member means "no
constraint of that kind" and is not sent to the backend, so the backend's
own defaults apply.  In particular an omitted ``limit`` means the backend's
default page size, not "unlimited".

Wire encoding (see :meth:`QueryOptions.to_params`)::

    where   -> compact JSON object, e.g. '{"published":true}'
    select  -> comma-joined names, e.g. 'title,published'
    limit   -> integer
    offset  -> integer
    sort    -> field name
    order   -> 'asc' | 'desc'
"""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

#: Scalar types allowed as equality-filter values.
_SCALAR_TYPES = (str, int, float, bool, date, datetime)


class SortOrder(str, Enum):
    """Direction of a single-key sort."""

    ASC = "asc"
    DESC = "desc"


class SortSpec(BaseModel):
    """Single-key ordering.

    Ties are broken by the backend's natural order, which is unspecified.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str = Field(..., min_length=1, description="Field to order by.")
    order: SortOrder = Field(default=SortOrder.ASC, description="Sort direction.")

    @classmethod
    def parse(cls, value: Any) -> SortSpec:
        """Coerce ``"title"``, ``"-title"``, a dict, or a SortSpec into a SortSpec.

        A leading ``-`` on a string selects descending order.
        """
        if isinstance(value, SortSpec):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("-"):
                return cls(field=text[1:].strip(), order=SortOrder.DESC)
            return cls(field=text)
        return cls.model_validate(value)


class QueryOptions(BaseModel):
    """Filter, projection, ordering and page window for one ``find`` call.

    Attributes:
        where: Field -> expected value.  Equality on every key, ANDed.
        select: Ordered set of fields to project.  Duplicates are dropped,
            keeping the first occurrence.
        limit: Maximum number of items to return.
        offset: Number of items to skip before the window starts.
        sort: Single-key ordering.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    where: Optional[dict[str, Any]] = Field(default=None)
    select: Optional[list[str]] = Field(default=None)
    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)
    sort: Optional[SortSpec] = Field(default=None)

    @field_validator("where")
    @classmethod
    def _scalar_where_values(cls, value: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
        if value is None:
            return None
        for key, expected in value.items():
            if not key:
                raise ValueError("where keys must be non-empty field names")
            if expected is not None and not isinstance(expected, _SCALAR_TYPES):
                raise ValueError(
                    f"where[{key!r}] must be a scalar value, got {type(expected).__name__}"
                )
        return value

    @field_validator("select")
    @classmethod
    def _dedupe_select(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        seen: set[str] = set()
        names: list[str] = []
        for name in value:
            name = name.strip()
            if not name:
                raise ValueError("select entries must be non-empty field names")
            if name not in seen:
                seen.add(name)
                names.append(name)
        return names

    @field_validator("sort", mode="before")
    @classmethod
    def _coerce_sort(cls, value: Any) -> Any:
        if value is None:
            return None
        return SortSpec.parse(value)

    def merged(self, **changes: Any) -> QueryOptions:
        """Return a copy with *changes* applied and re-validated."""
        data = self.model_dump(exclude_none=True)
        data.update({k: v for k, v in changes.items() if v is not None})
        return QueryOptions.model_validate(data)

    def to_params(self) -> dict[str, Any]:
        """Compile the options into HTTP query parameters.

        Members that are ``None`` are omitted.  An empty ``where`` or
        ``select`` is treated as absent.
        """
        params: dict[str, Any] = {}
        if self.where:
            params["where"] = json.dumps(
                self.where, separators=(",", ":"), default=_json_default
            )
        if self.select:
            params["select"] = ",".join(self.select)
        if self.limit is not None:
            params["limit"] = self.limit
        if self.offset is not None:
            params["offset"] = self.offset
        if self.sort is not None:
            params["sort"] = self.sort.field
            params["order"] = self.sort.order.value
        return params


def _json_default(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
