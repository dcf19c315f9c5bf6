"""
PostDesk Backend — User Service (Business Logic)
==================================================

What:  Create, list, look up, update and delete users.
Why:   Keeps validation, uniqueness and hashing out of the route handlers and
       independent of the backing store.
How:   All collaborators arrive through the constructor (repository, hasher,
       phone validator, query builder, executor). Entities never leave the
       service; callers receive UserResponse schemas.

Create / update flow:
    normalize (trim, strip phone formatting)
      → validate_fields(rule table)          400 with every violation
      → uniqueness pre-check (email, phone)  409 naming the field
      → hash password (thread pool)
      → repository.save()                    409 again if a concurrent write won
"""

import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from postdesk.exceptions import ConflictError, NotFoundError, ValidationFailure
from postdesk.models.user import User
from postdesk.repositories.base import Repository
from postdesk.schemas.auth import Role
from postdesk.schemas.common import PaginatedResult, QuerySpec
from postdesk.schemas.user import UserCreate, UserResponse, UserUpdate, user_rules
from postdesk.services.hashing import Hasher
from postdesk.services.phone import PhoneValidator, normalize_phone_number
from postdesk.services.query_builder import FilterField, QuerySpecBuilder, ResourceQueryConfig
from postdesk.services.query_executor import QueryExecutor
from postdesk.services.validation import validate_fields

logger = logging.getLogger(__name__)

USER_QUERY = ResourceQueryConfig(
    name="users",
    sort_fields={
        "firstName": "first_name",
        "lastName": "last_name",
        "email": "email",
        "createdAt": "created_at",
    },
    default_sort="createdAt",
    search_fields=("first_name", "last_name", "email"),
    filter_fields={"phoneNumber": FilterField("phone_number", normalize_phone_number)},
)

# Wire field → model attribute for writable fields
_WRITABLE = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phoneNumber": "phone_number",
}

# Wire field → model attribute for fields that must be unique
_UNIQUE = {"email": "email", "phoneNumber": "phone_number"}


def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = dict(data)
    for key in ("firstName", "lastName", "email"):
        if isinstance(cleaned.get(key), str):
            cleaned[key] = cleaned[key].strip()
    if isinstance(cleaned.get("phoneNumber"), str):
        cleaned["phoneNumber"] = normalize_phone_number(cleaned["phoneNumber"])
    return cleaned


class UserService:
    def __init__(
        self,
        repository: Repository[User],
        hasher: Hasher,
        phone_validator: PhoneValidator,
        query_builder: QuerySpecBuilder,
        executor: QueryExecutor,
    ):
        self.repository = repository
        self.hasher = hasher
        self.query_builder = query_builder
        self.executor = executor
        self.rules = user_rules(phone_validator)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_users(self, params: Mapping[str, Optional[str]]) -> PaginatedResult[UserResponse]:
        spec = self.query_builder.build(params, USER_QUERY)
        page = await self.executor.execute(spec, self.repository)
        return page.map(UserResponse.model_validate)

    async def get_user(self, user_id: Any) -> UserResponse:
        return UserResponse.model_validate(await self._get_entity(user_id))

    async def find_by_phone(self, phone_number: Optional[str]) -> UserResponse:
        normalized = normalize_phone_number(phone_number or "")
        if not normalized:
            raise ValidationFailure.for_field("phoneNumber", "phoneNumber should not be empty")

        matches, _ = await self.repository.find(
            QuerySpec(filters={"phone_number": normalized}, limit=1)
        )
        if not matches:
            raise NotFoundError("User", context={"phone_number": normalized})
        return UserResponse.model_validate(matches[0])

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_user(self, payload: UserCreate) -> UserResponse:
        """
        Raises:
            ValidationFailure: one or more rules failed
            ConflictError:     email or phone number already registered
        """
        data = _normalize(payload.model_dump(by_alias=True))
        validate_fields(data, self.rules)

        for wire_name, attribute in _UNIQUE.items():
            await self._ensure_unique(wire_name, attribute, data[wire_name])

        digest = await run_in_threadpool(self.hasher.hash, data["password"])
        user = User(
            id=uuid.uuid4(),
            first_name=data["firstName"],
            last_name=data["lastName"],
            email=data["email"],
            phone_number=data["phoneNumber"],
            password=digest,
            role=Role.USER,
            is_active=True,
        )
        saved = await self.repository.save(user)
        logger.info("User created: %s", saved.id)
        return UserResponse.model_validate(saved)

    async def update_user(self, user_id: Any, payload: UserUpdate) -> UserResponse:
        """
        Partial update: only fields present in the body are validated and
        applied. Uniqueness is re-checked for changed email / phone.
        """
        user = await self._get_entity(user_id)
        data = _normalize(payload.model_dump(by_alias=True, exclude_unset=True))
        validate_fields(data, self.rules, partial=True)

        for wire_name, attribute in _UNIQUE.items():
            if wire_name in data and data[wire_name] != getattr(user, attribute):
                await self._ensure_unique(wire_name, attribute, data[wire_name], exclude_id=user.id)

        for wire_name, attribute in _WRITABLE.items():
            if wire_name in data:
                setattr(user, attribute, data[wire_name])
        if "password" in data:
            user.password = await run_in_threadpool(self.hasher.hash, data["password"])

        saved = await self.repository.save(user)
        logger.info("User updated: %s (fields: %s)", saved.id, ", ".join(sorted(data)))
        return UserResponse.model_validate(saved)

    async def delete_user(self, user_id: Any) -> None:
        user = await self._get_entity(user_id)
        await self.repository.delete(user.id)
        logger.info("User deleted: %s", user.id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_entity(self, user_id: Any) -> User:
        user = await self.repository.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    async def _ensure_unique(
        self,
        wire_name: str,
        attribute: str,
        value: Any,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        existing, _ = await self.repository.find(QuerySpec(filters={attribute: value}, limit=2))
        if any(item.id != exclude_id for item in existing):
            raise ConflictError(resource="User", field=wire_name, value=value)
