"""
PostDesk Backend — Repository Interface
=========================================

What:  Abstract persistence capability consumed by services and the executor.
Why:   The pipeline is written once; the backing store is swapped by providing
       another Repository implementation (SQL in production, an in-memory stub
       in tests).
How:   Four async operations. `find` returns the requested page AND the total
       row count matching the filters before pagination.

Contract:
    find(spec)       → (items, total)   items already filtered/sorted/paged
    find_by_id(id)   → entity | None    None is not an error here
    save(entity)     → entity           insert or update; may raise ConflictError
    delete(id)       → None
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from postdesk.schemas.common import QuerySpec

T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """Abstract store for one entity type."""

    @abstractmethod
    async def find(self, spec: QuerySpec) -> Tuple[List[T], int]:
        ...

    @abstractmethod
    async def find_by_id(self, entity_id: Any) -> Optional[T]:
        ...

    @abstractmethod
    async def save(self, entity: T) -> T:
        ...

    @abstractmethod
    async def delete(self, entity_id: Any) -> None:
        ...
