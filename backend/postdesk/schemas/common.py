"""
PostDesk Backend — Shared Schemas (Query, Pagination, Envelopes)
==================================================================

What:  Resource-agnostic models used by the request-processing pipeline.
Why:   Every endpoint speaks the same envelope; every list endpoint returns the
       same pagination shape. Defining them once keeps the contract stable.
How:   Pydantic v2 models with a camelCase alias generator so Python code uses
       snake_case while the wire uses camelCase (statusCode, lastPage, ...).

Lifecycle:
    QuerySpec        → built fresh per request, never persisted
    PaginatedResult  → produced per call, discarded after serialization
    Envelopes        → terminal, write-once, serialized immediately
"""

import enum
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")
U = TypeVar("U")


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Query Specification
# ══════════════════════════════════════════════════════════════════════════


class SortOrder(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


class QuerySpec(BaseModel):
    """
    Normalized filter/sort/paging intent derived from a request.

    Built by QuerySpecBuilder, consumed by Repository.find(). Field names in
    `filters`, `search_fields` and `sort_by` are model attribute names, already
    checked against the resource's allow-lists.

    Invariants:
        - page >= 1
        - 1 <= limit (the builder clamps to the resource ceiling)
    """

    model_config = ConfigDict(frozen=True)

    search_term: Optional[str] = None
    search_fields: Tuple[str, ...] = ()
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.DESC
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        """Rows skipped before the requested page: (page - 1) * limit."""
        return (self.page - 1) * self.limit


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════


class PageMeta(CamelModel):
    """
    Pagination metadata returned next to every page of items.

    last_page = ceil(total / limit), and 0 exactly when total == 0.
    """

    total: int = Field(ge=0, description="Rows matching filters before pagination")
    page: int = Field(ge=1, description="Requested page (1-based)")
    last_page: int = Field(ge=0, description="ceil(total / limit); 0 when empty")
    limit: int = Field(ge=1, description="Effective page size after clamping")


class PaginatedResult(CamelModel, Generic[T]):
    """A page of items plus its metadata."""

    items: List[T] = Field(default_factory=list)
    meta: PageMeta

    def map(self, fn: Callable[[T], U]) -> "PaginatedResult[U]":
        """Convert each item (e.g. ORM entity → response schema), keeping meta."""
        return PaginatedResult(items=[fn(item) for item in self.items], meta=self.meta)


# ══════════════════════════════════════════════════════════════════════════
# Envelopes: the stable wire contract
# ══════════════════════════════════════════════════════════════════════════


class SuccessEnvelope(CamelModel, Generic[T]):
    """
    Example:
        {"status": true, "statusCode": 200, "message": "Success", "data": {...}}
    """

    status: bool = True
    status_code: int
    message: str
    data: Optional[T] = None


class FieldError(CamelModel):
    """One field with every rule it violated."""

    field: str
    messages: List[str]


class ErrorEnvelope(CamelModel):
    """
    Example:
        {
            "status": false,
            "statusCode": 409,
            "message": "User with email 'jane@mail.com' already exists",
            "timestamp": "2024-01-15T12:00:00+00:00",
            "path": "/users",
            "method": "POST"
        }

    `errors` is present only for validation failures; `stack` only when the
    service runs in development mode. Both are dropped from the JSON when unset.
    """

    status: bool = False
    status_code: int
    message: str
    timestamp: datetime
    path: str
    method: str
    errors: Optional[List[FieldError]] = None
    stack: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HealthResponse(CamelModel):
    """Health check response showing service and dependency status."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected, disconnected, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
