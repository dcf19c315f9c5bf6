"""
PostDesk Backend — Generic Query Executor
===========================================

What:  execute(spec, repo) → PaginatedResult, for any entity type.
Why:   Pagination arithmetic and deadline handling are identical for every
       resource; repositories only have to return (items, total).
How:   Delegates filtering/search/sort/paging to Repository.find(), then
       builds the page metadata.

Deadlines & cancellation:
    An optional deadline (per call, or the executor default) wraps the store
    read in asyncio.wait_for(); on expiry the store call is cancelled and
    TimeoutError propagates. Cancellation from the transport (client gone)
    travels through the same await, so the store call is cancelled
    cooperatively. The executor never retries.

Consistency:
    `total` and `items` come from two reads. They are consistent at the
    instant of each read, not with each other under concurrent writes.
"""

import asyncio
import logging
from typing import Optional, TypeVar

from postdesk.repositories.base import Repository
from postdesk.schemas.common import PageMeta, PaginatedResult, QuerySpec

logger = logging.getLogger(__name__)

T = TypeVar("T")


def last_page(total: int, limit: int) -> int:
    """ceil(total / limit) with integer arithmetic; 0 when there are no rows."""
    if limit < 1:
        raise ValueError("limit must be at least 1")
    if total <= 0:
        return 0
    return -(-total // limit)


class QueryExecutor:
    """
    Args:
        timeout: Default deadline in seconds for store reads (None = no deadline)
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def execute(
        self,
        spec: QuerySpec,
        repo: Repository[T],
        timeout: Optional[float] = None,
    ) -> PaginatedResult[T]:
        """
        Run `spec` against `repo`.

        Raises:
            asyncio.TimeoutError: the deadline expired
            Exception:            any store failure, unchanged
        """
        deadline = timeout if timeout is not None else self.timeout

        if deadline is None:
            items, total = await repo.find(spec)
        else:
            items, total = await asyncio.wait_for(repo.find(spec), timeout=deadline)

        if len(items) > spec.limit:
            logger.warning(
                "Repository returned %d items for limit %d; clipping page",
                len(items), spec.limit,
            )
            items = items[: spec.limit]

        meta = PageMeta(
            total=total,
            page=spec.page,
            last_page=last_page(total, spec.limit),
            limit=spec.limit,
        )
        return PaginatedResult(items=list(items), meta=meta)
