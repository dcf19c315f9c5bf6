"""
PostDesk Backend — Query Specification Builder
================================================

What:  Turns raw query-string parameters into a canonical QuerySpec.
Why:   Every list endpoint accepts the same paging/sorting/search vocabulary;
       parsing it once, against a per-resource allow-list, keeps the
       repositories free of request concerns.
How:   Pure transformation, no I/O:
         page     → int, default 1, values below 1 become 1
                    (and above the last addressable page become it)
         limit    → int, default from settings, clamped to [1, max_limit]
         sortBy   → allow-listed API name → model attribute, else default
         sortOrder→ ASC/DESC (case-insensitive), else resource default
         searchTerm → trimmed, empty means absent
         filters  → declared parameters only, coerced per field
Who:   Called by UserService / PostService for every list request.

Sort policy:
    Unknown sortBy/sortOrder values fall back to the resource default unless
    `strict_sort` is on, in which case they are rejected with a 400. Sorting is
    not safety-critical, so the permissive policy is the default.
    Filter values are always strict: a malformed filter is a 400, because
    silently ignoring it would widen the result set.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from postdesk.exceptions import ValidationFailure
from postdesk.schemas.common import QuerySpec, SortOrder

logger = logging.getLogger(__name__)

# Stores take OFFSET as a signed 64-bit integer
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class FilterField:
    """An equality filter: model attribute plus a coercer for the raw string."""

    attribute: str
    coerce: Callable[[str], Any] = str


@dataclass(frozen=True)
class ResourceQueryConfig:
    """
    Per-resource declaration of what a list query may touch.

    Attributes:
        name:          Resource name for log messages
        sort_fields:   API sort name → model attribute (the allow-list)
        default_sort:  API sort name used when sortBy is absent or rejected
        search_fields: Model attributes OR-combined by searchTerm
        filter_fields: Query parameter → FilterField
    """

    name: str
    sort_fields: Mapping[str, str]
    default_sort: str
    search_fields: Tuple[str, ...] = ()
    filter_fields: Mapping[str, FilterField] = field(default_factory=dict)
    default_sort_order: SortOrder = SortOrder.DESC

    def __post_init__(self) -> None:
        if self.default_sort not in self.sort_fields:
            raise ValueError(
                f"default_sort '{self.default_sort}' is not a sortable field of {self.name}"
            )


def _to_int(value: Any) -> Optional[int]:
    """'5' → 5; None, '', 'abc', '2.5' → None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class QuerySpecBuilder:
    """
    Builds QuerySpec objects for one resource family.

    Args:
        default_limit: Page size when `limit` is missing or not numeric
        max_limit:     Ceiling; larger requests are reduced to it
        strict_sort:   Reject unknown sortBy/sortOrder instead of falling back
    """

    def __init__(self, default_limit: int = 10, max_limit: int = 100, strict_sort: bool = False):
        if max_limit < 1:
            raise ValueError("max_limit must be at least 1")
        self.max_limit = max_limit
        self.default_limit = self._clamp_limit(default_limit)
        self.strict_sort = strict_sort

    def build(
        self,
        params: Mapping[str, Optional[str]],
        resource: ResourceQueryConfig,
    ) -> QuerySpec:
        """
        Args:
            params:   Raw parameters (query-string values are strings or None)
            resource: The resource's allow-lists

        Returns:
            QuerySpec with attribute-level names, ready for Repository.find()

        Raises:
            ValidationFailure: malformed filter value, or unknown sort input
                               while strict_sort is on
        """
        limit = self._parse_limit(params.get("limit"))
        page = self._parse_page(params.get("page"), limit)
        sort_by = self._parse_sort_by(params.get("sortBy"), resource)
        sort_order = self._parse_sort_order(
            params.get("sortOrder") or params.get("order"), resource
        )
        search_term = self._parse_search(params.get("searchTerm"))
        filters = self._parse_filters(params, resource)

        spec = QuerySpec(
            search_term=search_term,
            search_fields=tuple(resource.search_fields),
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
        logger.debug("Built %s query spec: %s", resource.name, spec)
        return spec

    # ── Paging ────────────────────────────────────────────────────────────

    def _clamp_limit(self, limit: int) -> int:
        return min(max(limit, 1), self.max_limit)

    @staticmethod
    def _parse_page(raw: Any, limit: int) -> int:
        page = _to_int(raw)
        if page is None or page < 1:
            return 1
        return min(page, MAX_OFFSET // limit + 1)

    def _parse_limit(self, raw: Any) -> int:
        limit = _to_int(raw)
        if limit is None:
            return self.default_limit
        return self._clamp_limit(limit)

    # ── Sorting ───────────────────────────────────────────────────────────

    def _parse_sort_by(self, raw: Optional[str], resource: ResourceQueryConfig) -> str:
        candidate = (raw or "").strip()
        if candidate in resource.sort_fields:
            return resource.sort_fields[candidate]

        if candidate and self.strict_sort:
            allowed = ", ".join(resource.sort_fields)
            raise ValidationFailure.for_field("sortBy", f"sortBy must be one of: {allowed}")

        if candidate:
            logger.debug(
                "Unknown sortBy '%s' for %s; using '%s'",
                candidate, resource.name, resource.default_sort,
            )
        return resource.sort_fields[resource.default_sort]

    def _parse_sort_order(self, raw: Optional[str], resource: ResourceQueryConfig) -> SortOrder:
        candidate = (raw or "").strip().upper()
        if candidate in (SortOrder.ASC.value, SortOrder.DESC.value):
            return SortOrder(candidate)

        if candidate and self.strict_sort:
            raise ValidationFailure.for_field("sortOrder", "sortOrder must be one of: ASC, DESC")
        return resource.default_sort_order

    # ── Search & filters ──────────────────────────────────────────────────

    @staticmethod
    def _parse_search(raw: Optional[str]) -> Optional[str]:
        if raw is None:
            return None
        term = str(raw).strip()
        return term or None

    @staticmethod
    def _parse_filters(
        params: Mapping[str, Optional[str]], resource: ResourceQueryConfig
    ) -> Dict[str, Any]:
        filters: Dict[str, Any] = {}
        for param, filter_field in resource.filter_fields.items():
            raw = params.get(param)
            if raw is None or not str(raw).strip():
                continue
            try:
                filters[filter_field.attribute] = filter_field.coerce(str(raw).strip())
            except (TypeError, ValueError):
                raise ValidationFailure.for_field(param, f"Invalid {param} format")
        return filters
