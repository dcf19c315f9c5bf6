"""
PostDesk Backend — Test Doubles
=================================

What:  In-memory Repository, hasher and phone validator for tests.
Why:   Service and endpoint tests exercise the whole pipeline without a
       database or Argon2's CPU cost. Production code never imports this.

InMemoryRepository mirrors SqlRepository's contract:
    - equality filters, OR-combined case-insensitive substring search
    - sort by one attribute, then offset/limit
    - total counted before pagination
    - unique fields raise ConflictError naming the camelCase field
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic.alias_generators import to_camel

from postdesk.exceptions import ConflictError
from postdesk.repositories.base import Repository
from postdesk.schemas.common import QuerySpec, SortOrder
from postdesk.services.hashing import Hasher
from postdesk.services.phone import PhoneValidator


def _sort_key(value: Any) -> Tuple[bool, Any]:
    return (value is None, "" if value is None else value)


class InMemoryRepository(Repository[Any]):
    def __init__(self, resource_name: str = "Resource", unique_fields: Iterable[str] = ()):
        self.resource_name = resource_name
        self.unique_fields = tuple(unique_fields)
        self.rows: Dict[uuid.UUID, Any] = {}

    async def find(self, spec: QuerySpec) -> Tuple[List[Any], int]:
        rows = list(self.rows.values())

        for attribute, value in spec.filters.items():
            rows = [row for row in rows if getattr(row, attribute) == value]

        if spec.search_term and spec.search_fields:
            term = spec.search_term.lower()
            rows = [
                row for row in rows
                if any(term in str(getattr(row, f) or "").lower() for f in spec.search_fields)
            ]

        total = len(rows)
        rows.sort(
            key=lambda row: _sort_key(getattr(row, spec.sort_by)),
            reverse=spec.sort_order == SortOrder.DESC,
        )
        return rows[spec.offset: spec.offset + spec.limit], total

    async def find_by_id(self, entity_id: Any) -> Optional[Any]:
        try:
            key = entity_id if isinstance(entity_id, uuid.UUID) else uuid.UUID(str(entity_id))
        except ValueError:
            return None
        return self.rows.get(key)

    async def save(self, entity: Any) -> Any:
        for field in self.unique_fields:
            value = getattr(entity, field)
            for other in self.rows.values():
                if other.id != entity.id and getattr(other, field) == value:
                    raise ConflictError(
                        resource=self.resource_name, field=to_camel(field), value=value
                    )

        now = datetime.now(timezone.utc)
        if entity.id is None:
            entity.id = uuid.uuid4()
        if entity.created_at is None:
            entity.created_at = now
        entity.updated_at = now
        if hasattr(entity, "is_active") and entity.is_active is None:
            entity.is_active = True

        self.rows[entity.id] = entity
        return entity

    async def delete(self, entity_id: Any) -> None:
        entity = await self.find_by_id(entity_id)
        if entity is not None:
            self.rows.pop(entity.id, None)


class FakeHasher(Hasher):
    def hash(self, plaintext: str) -> str:
        return f"hashed::{plaintext}"


class FakePhoneValidator(PhoneValidator):
    """Accepts '+' followed by 8 to 15 digits."""

    def is_valid(self, value: str) -> bool:
        digits = value[1:] if value.startswith("+") else ""
        return digits.isdigit() and 8 <= len(digits) <= 15


def principal_headers(user_id: str = "user-1", role: str = "USER") -> Dict[str, str]:
    """Identity headers as the upstream gateway would forward them."""
    return {"X-User-Id": user_id, "X-User-Role": role}
