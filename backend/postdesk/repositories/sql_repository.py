"""
PostDesk Backend — SQLAlchemy Repository
==========================================

What:  Repository implementation backed by an async SQLAlchemy session factory.
Why:   One generic class serves every ORM model; the resource-specific parts
       (sortable/searchable/filterable columns) arrive already resolved in the
       QuerySpec.
How:   Each call opens its own session from the injected factory.

find() query plan:
    1. SELECT model WHERE <filters (equality, AND)>
    2.           AND (<col1> ILIKE :term OR <col2> ILIKE :term ...)
    3. count    = SELECT count(*) FROM (1+2)           ← before pagination
    4. page     = (1+2) ORDER BY <sort> OFFSET :skip LIMIT :take
                  (skipped when :skip >= count; the page is empty anyway)

    The count and the page are two reads; under concurrent writes `total`
    may momentarily disagree with the page contents (best effort).

Duplicate keys:
    A unique-constraint IntegrityError on save() is translated into
    ConflictError naming the API field. The driver message is parsed for the
    SQLite, PostgreSQL and MySQL phrasings; any other IntegrityError (and any
    other store failure) propagates unchanged.
"""

import logging
import re
import uuid
from typing import Any, List, Optional, Tuple, Type, TypeVar

from pydantic.alias_generators import to_camel
from sqlalchemy import delete, func, inspect, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from postdesk.database import Base
from postdesk.exceptions import ConflictError
from postdesk.repositories.base import Repository
from postdesk.schemas.common import QuerySpec, SortOrder

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

# ── Driver phrasings of a unique violation ────────────────────────────────
# SQLite:     UNIQUE constraint failed: users.email
# PostgreSQL: duplicate key value violates unique constraint "users_email_key"
#             DETAIL:  Key (email)=(jane@mail.com) already exists.
# MySQL:      Duplicate entry 'jane@mail.com' for key 'users.email'
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?:\w+\.)?(?P<field>\w+)")
_POSTGRES_UNIQUE = re.compile(r"Key \((?P<field>[^)]+)\)=\((?P<value>.*?)\) already exists")
_MYSQL_UNIQUE = re.compile(r"Duplicate entry '(?P<value>.*?)' for key '(?:[\w]+\.)?(?P<field>\w+)'")


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_unique_violation(message: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Extract (column, value) from a driver's unique-violation message.

    Returns None when the message is not a unique violation. The value is
    None when the driver does not report it (SQLite).
    """
    match = _POSTGRES_UNIQUE.search(message) or _MYSQL_UNIQUE.search(message)
    if match:
        return match.group("field"), match.group("value")
    match = _SQLITE_UNIQUE.search(message)
    if match:
        return match.group("field"), None
    return None


class SqlRepository(Repository[ModelT]):
    """
    Generic async SQL repository.

    Args:
        model:           ORM class (subclass of Base) with a UUID `id` column
        session_factory: async_sessionmaker from database.build_session_factory
        resource_name:   Human name used in conflict messages ("User", "Post")
    """

    def __init__(
        self,
        model: Type[ModelT],
        session_factory: async_sessionmaker[AsyncSession],
        resource_name: str,
    ):
        self.model = model
        self.session_factory = session_factory
        self.resource_name = resource_name
        self._columns = inspect(model).columns

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find(self, spec: QuerySpec) -> Tuple[List[ModelT], int]:
        stmt = select(self.model)

        for attribute, value in spec.filters.items():
            stmt = stmt.where(self._column(attribute) == value)

        if spec.search_term and spec.search_fields:
            pattern = f"%{escape_like(spec.search_term)}%"
            stmt = stmt.where(
                or_(
                    *(
                        self._column(attribute).ilike(pattern, escape="\\")
                        for attribute in spec.search_fields
                    )
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())

        sort_column = self._column(spec.sort_by)
        ordering = sort_column.asc() if spec.sort_order == SortOrder.ASC else sort_column.desc()
        page_stmt = stmt.order_by(ordering).offset(spec.offset).limit(spec.limit)

        async with self.session_factory() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            items: List[ModelT] = []
            if spec.offset < total:
                items = list((await session.execute(page_stmt)).scalars().all())

        logger.debug(
            "%s.find: %d of %d rows (page=%d, limit=%d)",
            self.resource_name, len(items), total, spec.page, spec.limit,
        )
        return items, total

    async def find_by_id(self, entity_id: Any) -> Optional[ModelT]:
        key = self._coerce_id(entity_id)
        if key is None:
            return None
        async with self.session_factory() as session:
            return await session.get(self.model, key)

    # ── Writes ────────────────────────────────────────────────────────────

    async def save(self, entity: ModelT) -> ModelT:
        """
        Insert or update `entity` and return the persisted state.

        Raises:
            ConflictError: unique constraint violated
            IntegrityError: any other constraint violation
        """
        async with self.session_factory() as session:
            try:
                merged = await session.merge(entity)
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                conflict = self._translate_integrity_error(exc, entity)
                if conflict is None:
                    raise
                raise conflict from exc
            await session.refresh(merged)
            return merged

    async def delete(self, entity_id: Any) -> None:
        key = self._coerce_id(entity_id)
        if key is None:
            return
        async with self.session_factory() as session:
            await session.execute(delete(self.model).where(self._column("id") == key))
            await session.commit()

    # ── Helpers ───────────────────────────────────────────────────────────

    def _column(self, attribute: str):
        if attribute not in self._columns:
            raise ValueError(f"{self.model.__name__} has no column '{attribute}'")
        return self._columns[attribute]

    @staticmethod
    def _coerce_id(entity_id: Any) -> Optional[uuid.UUID]:
        """Path parameters arrive as strings; a malformed id can match nothing."""
        if isinstance(entity_id, uuid.UUID):
            return entity_id
        try:
            return uuid.UUID(str(entity_id))
        except ValueError:
            return None

    def _translate_integrity_error(
        self, exc: IntegrityError, entity: ModelT
    ) -> Optional[ConflictError]:
        parsed = parse_unique_violation(str(exc.orig))
        if parsed is None:
            return None

        column, value = parsed
        if value is None:
            value = getattr(entity, column, None)
        logger.info(
            "Unique violation on %s.%s translated to conflict", self.resource_name, column
        )
        return ConflictError(
            resource=self.resource_name,
            field=to_camel(column),
            value=None if value is None else str(value),
        )
