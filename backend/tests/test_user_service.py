"""
PostDesk Backend — User Service Unit Tests
============================================

What we test:
    ✅ Create: validation, phone normalization, hashing, duplicate detection
    ✅ List: search, sort and limit clamping through the query pipeline
    ✅ Lookup by id and by phone number
    ✅ Partial update with uniqueness re-check
    ✅ Delete
"""

import uuid

import pytest

from fakes import FakeHasher, FakePhoneValidator, InMemoryRepository
from postdesk.exceptions import ConflictError, NotFoundError, ValidationFailure
from postdesk.schemas.auth import Role
from postdesk.schemas.user import UserCreate, UserUpdate
from postdesk.services.query_builder import QuerySpecBuilder
from postdesk.services.query_executor import QueryExecutor
from postdesk.services.user_service import UserService


def _create_payload(**overrides) -> UserCreate:
    data = {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane@mail.com",
        "phoneNumber": "+44 20 8366 1177",
        "password": "StrongP@ss1",
    }
    data.update(overrides)
    return UserCreate(**data)


class UserServiceTestBase:
    def setup_method(self):
        self.repo = InMemoryRepository("User", unique_fields=("email", "phone_number"))
        self.service = UserService(
            repository=self.repo,
            hasher=FakeHasher(),
            phone_validator=FakePhoneValidator(),
            query_builder=QuerySpecBuilder(default_limit=10, max_limit=100),
            executor=QueryExecutor(),
        )


class TestCreateUser(UserServiceTestBase):
    @pytest.mark.asyncio
    async def test_create_success(self):
        user = await self.service.create_user(_create_payload())

        assert user.first_name == "Jane"
        assert user.phone_number == "+442083661177"
        assert user.role == Role.USER
        assert user.is_active is True
        assert not hasattr(user, "password")

        stored = self.repo.rows[user.id]
        assert stored.password == "hashed::StrongP@ss1"

    @pytest.mark.asyncio
    async def test_invalid_payload_reports_every_field(self):
        with pytest.raises(ValidationFailure) as exc_info:
            await self.service.create_user(_create_payload(email="nope", password="short"))

        assert set(exc_info.value.errors) == {"email", "password"}
        assert self.repo.rows == {}

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self):
        await self.service.create_user(_create_payload())

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_user(_create_payload(phoneNumber="+16502530000"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.field == "email"
        assert exc_info.value.message == "User with email 'jane@mail.com' already exists"

    @pytest.mark.asyncio
    async def test_duplicate_phone_detected_after_normalization(self):
        await self.service.create_user(_create_payload())

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_user(
                _create_payload(email="other@mail.com", phoneNumber="+44 (20) 8366-1177")
            )

        assert exc_info.value.field == "phoneNumber"

    @pytest.mark.asyncio
    async def test_store_level_conflict_propagates(self):
        """A concurrent writer can win between pre-check and save."""
        await self.service.create_user(_create_payload())
        self.service._ensure_unique = _no_precheck

        with pytest.raises(ConflictError):
            await self.service.create_user(_create_payload(phoneNumber="+16502530000"))


async def _no_precheck(*args, **kwargs):
    return None


class TestQueryUsers(UserServiceTestBase):
    async def _seed(self):
        people = [
            ("Alice", "Smith", "alice@mail.com", "+4420000001"),
            ("Bob", "Jones", "bob@mail.com", "+4420000002"),
            ("Carol", "Smithers", "carol@mail.com", "+4420000003"),
        ]
        for first, last, email, phone in people:
            await self.service.create_user(
                _create_payload(firstName=first, lastName=last, email=email, phoneNumber=phone)
            )

    @pytest.mark.asyncio
    async def test_search_and_sort(self):
        await self._seed()

        page = await self.service.list_users(
            {"searchTerm": "smith", "sortBy": "firstName", "sortOrder": "ASC"}
        )

        assert [u.first_name for u in page.items] == ["Alice", "Carol"]
        assert page.meta.total == 2
        assert page.meta.last_page == 1

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self):
        await self._seed()
        page = await self.service.list_users({"limit": "500"})
        assert page.meta.limit == 100
        assert len(page.items) == 3

    @pytest.mark.asyncio
    async def test_phone_filter(self):
        await self._seed()
        page = await self.service.list_users({"phoneNumber": "+44 2000 0002"})
        assert [u.first_name for u in page.items] == ["Bob"]

    @pytest.mark.asyncio
    async def test_get_user(self):
        created = await self.service.create_user(_create_payload())
        fetched = await self.service.get_user(str(created.id))
        assert fetched.email == "jane@mail.com"

    @pytest.mark.asyncio
    async def test_get_missing_user(self):
        missing = str(uuid.uuid4())
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_user(missing)
        assert exc_info.value.message == f"User with ID '{missing}' was not found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self):
        with pytest.raises(NotFoundError):
            await self.service.get_user("not-a-uuid")

    @pytest.mark.asyncio
    async def test_find_by_phone(self):
        await self.service.create_user(_create_payload())
        user = await self.service.find_by_phone("+44 20 8366-1177")
        assert user.email == "jane@mail.com"

    @pytest.mark.asyncio
    async def test_find_by_unknown_phone(self):
        with pytest.raises(NotFoundError):
            await self.service.find_by_phone("+16502530000")

    @pytest.mark.asyncio
    async def test_find_by_blank_phone(self):
        with pytest.raises(ValidationFailure):
            await self.service.find_by_phone("  ")


class TestUpdateAndDelete(UserServiceTestBase):
    @pytest.mark.asyncio
    async def test_partial_update(self):
        created = await self.service.create_user(_create_payload())

        updated = await self.service.update_user(created.id, UserUpdate(firstName="Janet"))

        assert updated.first_name == "Janet"
        assert updated.last_name == "Doe"
        assert self.repo.rows[created.id].password == "hashed::StrongP@ss1"

    @pytest.mark.asyncio
    async def test_password_is_rehashed(self):
        created = await self.service.create_user(_create_payload())
        await self.service.update_user(created.id, UserUpdate(password="N3wPassword!"))
        assert self.repo.rows[created.id].password == "hashed::N3wPassword!"

    @pytest.mark.asyncio
    async def test_keeping_own_email_is_not_a_conflict(self):
        created = await self.service.create_user(_create_payload())
        updated = await self.service.update_user(created.id, UserUpdate(email="jane@mail.com"))
        assert updated.email == "jane@mail.com"

    @pytest.mark.asyncio
    async def test_taking_another_users_email_is_conflict(self):
        await self.service.create_user(_create_payload())
        other = await self.service.create_user(
            _create_payload(email="other@mail.com", phoneNumber="+16502530000")
        )

        with pytest.raises(ConflictError):
            await self.service.update_user(other.id, UserUpdate(email="jane@mail.com"))

    @pytest.mark.asyncio
    async def test_invalid_update_rejected(self):
        created = await self.service.create_user(_create_payload())
        with pytest.raises(ValidationFailure) as exc_info:
            await self.service.update_user(created.id, UserUpdate(email="broken"))
        assert "email" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_delete(self):
        created = await self.service.create_user(_create_payload())
        await self.service.delete_user(str(created.id))

        with pytest.raises(NotFoundError):
            await self.service.get_user(created.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self):
        with pytest.raises(NotFoundError):
            await self.service.delete_user(uuid.uuid4())
