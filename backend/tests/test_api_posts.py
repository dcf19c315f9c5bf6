"""
PostDesk Backend — /posts and /health API Tests
=================================================

What we test:
    ✅ Creating a post needs a principal; the caller becomes the owner
    ✅ Search + paging metadata over a realistic data set
    ✅ Post page size ceiling (50)
    ✅ Only the owner may update or delete
    ✅ Health check with and without a database
"""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from fakes import principal_headers
from postdesk.config import Settings
from postdesk.main import create_app
from postdesk.models.post import Post

NEW_POST = {"title": "My First Post", "content": "This is the content of my first post"}


async def _seed(repo, count, title, content="Some ordinary content", owner_id="user-1"):
    for i in range(count):
        await repo.save(
            Post(id=uuid.uuid4(), title=f"{title} {i}", content=content, owner_id=owner_id)
        )


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_anonymous_create_is_403(self, test_client, post_repo):
        response = await test_client.post("/posts", json=NEW_POST)

        assert response.status_code == 403
        assert response.json()["status"] is False
        assert post_repo.rows == {}

    @pytest.mark.asyncio
    async def test_owner_is_caller(self, test_client):
        response = await test_client.post("/posts", json=NEW_POST, headers=principal_headers())

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Post created successfully"
        assert body["data"]["ownerId"] == "user-1"
        assert body["data"]["title"] == "My First Post"

    @pytest.mark.asyncio
    async def test_over_long_owner_id_is_anonymous(self, test_client, post_repo):
        response = await test_client.post(
            "/posts", json=NEW_POST, headers=principal_headers(user_id="u" * 65)
        )

        assert response.status_code == 403
        assert post_repo.rows == {}

    @pytest.mark.asyncio
    async def test_short_fields_rejected(self, test_client):
        response = await test_client.post(
            "/posts", json={"title": "ab", "content": "short"}, headers=principal_headers()
        )

        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} == {"title", "content"}


class TestListPosts:
    @pytest.mark.asyncio
    async def test_search_pages_over_matches(self, test_client, post_repo):
        await _seed(post_repo, 25, "Post about technology")
        await _seed(post_repo, 7, "Gardening diary")

        response = await test_client.get(
            "/posts", params={"searchTerm": "technology", "page": "1", "limit": "10"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["items"]) == 10
        assert data["meta"] == {"total": 25, "page": 1, "lastPage": 3, "limit": 10}

    @pytest.mark.asyncio
    async def test_last_page_is_partial(self, test_client, post_repo):
        await _seed(post_repo, 25, "Post about technology")

        response = await test_client.get("/posts", params={"searchTerm": "technology", "page": "3"})

        data = response.json()["data"]
        assert len(data["items"]) == 5
        assert data["meta"]["lastPage"] == 3

    @pytest.mark.asyncio
    async def test_post_limit_ceiling(self, test_client, post_repo):
        await _seed(post_repo, 3, "Short list")

        response = await test_client.get("/posts", params={"limit": "500"})

        assert response.json()["data"]["meta"]["limit"] == 50

    @pytest.mark.asyncio
    async def test_owner_filter_and_sort(self, test_client, post_repo):
        await _seed(post_repo, 3, "Mine", owner_id="user-1")
        await _seed(post_repo, 2, "Theirs", owner_id="user-2")

        response = await test_client.get(
            "/posts", params={"userId": "user-1", "sortBy": "title", "order": "DESC"}
        )

        titles = [p["title"] for p in response.json()["data"]["items"]]
        assert titles == ["Mine 2", "Mine 1", "Mine 0"]

    @pytest.mark.asyncio
    async def test_unknown_sort_field_falls_back(self, test_client, post_repo):
        await _seed(post_repo, 2, "Anything")

        response = await test_client.get("/posts", params={"sortBy": "content; DROP TABLE posts"})

        assert response.status_code == 200
        assert response.json()["data"]["meta"]["total"] == 2

    @pytest.mark.asyncio
    async def test_strict_sort_rejects_unknown_field(self, make_app):
        transport = ASGITransport(app=make_app(strict_sort_validation=True), raise_app_exceptions=False)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/posts", params={"sortBy": "content"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "sortBy"


class TestOwnership:
    async def _create(self, client, user_id="user-1"):
        response = await client.post(
            "/posts", json=NEW_POST, headers=principal_headers(user_id=user_id)
        )
        return response.json()["data"]

    @pytest.mark.asyncio
    async def test_stranger_cannot_update(self, test_client):
        post = await self._create(test_client)

        response = await test_client.patch(
            f"/posts/{post['id']}",
            json={"title": "Hijacked"},
            headers=principal_headers(user_id="user-2"),
        )

        assert response.status_code == 403
        assert response.json()["message"] == "You can only modify your own posts"

    @pytest.mark.asyncio
    async def test_admin_is_not_owner(self, test_client):
        post = await self._create(test_client)

        response = await test_client.delete(
            f"/posts/{post['id']}", headers=principal_headers("admin-1", "ADMIN")
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_owner_update_trims_title(self, test_client):
        post = await self._create(test_client)

        response = await test_client.patch(
            f"/posts/{post['id']}",
            json={"title": "  Renamed post  "},
            headers=principal_headers(),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Post updated successfully"
        assert response.json()["data"]["title"] == "Renamed post"

    @pytest.mark.asyncio
    async def test_owner_delete(self, test_client, post_repo):
        post = await self._create(test_client)

        response = await test_client.delete(f"/posts/{post['id']}", headers=principal_headers())

        assert response.status_code == 200
        assert response.json()["data"] is None
        assert post_repo.rows == {}

    @pytest.mark.asyncio
    async def test_update_missing_post_is_404(self, test_client):
        response = await test_client.patch(
            f"/posts/{uuid.uuid4()}", json={"title": "Whatever"}, headers=principal_headers()
        )

        assert response.status_code == 404


class TestHealth:
    @pytest.mark.asyncio
    async def test_without_database(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "not_configured"

    @pytest.mark.asyncio
    async def test_with_sqlite(self):
        app = create_app(settings=Settings(database_url="sqlite+aiosqlite://", environment="test"))
        transport = ASGITransport(app=app)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        await app.state.engine.dispose()
