"""
PostDesk Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (fake repositories, app factory,
       API client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, fresh per test):
    ├── user_repo / post_repo: in-memory Repository stubs
    ├── make_app:              factory building an app around the stubs
    ├── app:                   app in the `test` environment
    ├── test_client:           HTTPX AsyncClient bound to `app`
    └── sql_session_factory:   session factory over a fresh in-memory SQLite DB
"""

import os

# Override settings for testing BEFORE any postdesk imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fakes import FakeHasher, FakePhoneValidator, InMemoryRepository
from postdesk.config import Settings
from postdesk.database import build_engine, build_session_factory, dispose_engine, init_models
from postdesk.main import create_app


@pytest.fixture
def user_repo():
    return InMemoryRepository("User", unique_fields=("email", "phone_number"))


@pytest.fixture
def post_repo():
    return InMemoryRepository("Post")


@pytest.fixture
def make_app(user_repo, post_repo):
    """
    Build an app around the in-memory repositories.

    Usage:
        app = make_app(environment="development")
    """

    def factory(**overrides):
        config = Settings(**{"environment": "test", **overrides})
        return create_app(
            settings=config,
            user_repository=user_repo,
            post_repository=post_repo,
            hasher=FakeHasher(),
            phone_validator=FakePhoneValidator(),
        )

    return factory


@pytest.fixture
def app(make_app):
    return make_app()


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    raise_app_exceptions=False: a 500 must come back as an envelope, not
    surface as an exception in the test.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def sql_session_factory():
    """Fresh in-memory SQLite database with all tables created."""
    engine = build_engine(Settings(database_url="sqlite+aiosqlite://", environment="test"))
    await init_models(engine)
    try:
        yield build_session_factory(engine)
    finally:
        await dispose_engine(engine)
