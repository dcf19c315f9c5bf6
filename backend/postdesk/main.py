"""
PostDesk Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, explicit component wiring, middleware,
       exception handlers and route mounting in one place.
How:   create_app() builds every component from settings (or from the
       collaborators passed in) and stores them on app.state.
Who:   Called by the ASGI server (postdesk.main:app) and by tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  GZip → Request ID → Audit Log → Principal → CORS       │
    │       → Unhandled Error                                 │
    │                                                         │
    │  Routes:                                                │
    │  /users  /users/search  /users/{id}                     │
    │  /posts  /posts/{id}    /health                         │
    │                                                         │
    │  Exception Handlers (all via ErrorNormalizer):          │
    │  PostDeskError │ RequestValidationError │ HTTPException │
    └─────────────────────────────────────────────────────────┘

Wiring (no container, no global lookups below this module):
    settings ─┬─ QuerySpecBuilder (users: max 100, posts: max 50)
              ├─ QueryExecutor (optional deadline)
              ├─ Argon2Hasher, LibPhoneNumberValidator
              ├─ SqlRepository[User], SqlRepository[Post]  (unless injected)
              ├─ UserService, PostService
              ├─ AccessGuard, EnvelopeTransformer, ErrorNormalizer
              └─ AuditLogger, GatewayHeaderAuthenticator
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from postdesk import __version__
from postdesk.config import Settings, settings as default_settings
from postdesk.database import build_engine, build_session_factory, dispose_engine, init_models
from postdesk.exceptions import PostDeskError
from postdesk.middleware.errors import UnhandledErrorMiddleware
from postdesk.middleware.logging import AuditLoggingMiddleware
from postdesk.middleware.principal import PrincipalMiddleware
from postdesk.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from postdesk.models.post import Post
from postdesk.models.user import User
from postdesk.repositories.base import Repository
from postdesk.repositories.sql_repository import SqlRepository
from postdesk.routes import health, posts, users
from postdesk.services.access_guard import AccessGuard
from postdesk.services.audit_logger import AuditLogger
from postdesk.services.authentication import Authenticator, GatewayHeaderAuthenticator
from postdesk.services.envelope import EnvelopeTransformer
from postdesk.services.error_normalizer import ErrorNormalizer
from postdesk.services.hashing import Argon2Hasher, Hasher
from postdesk.services.phone import LibPhoneNumberValidator, PhoneValidator
from postdesk.services.post_service import PostService
from postdesk.services.query_builder import QuerySpecBuilder
from postdesk.services.query_executor import QueryExecutor
from postdesk.services.user_service import UserService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings) -> None:
    """
    Configure logging for the entire application.

    Structured fields travel in `extra=` on each record (request_id, phase,
    status, duration_ms, ...); swapping the formatter for a JSON one exposes
    them without touching the call sites.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:  configure logging; create missing tables when enabled and a
              database is wired.
    Shutdown: dispose the engine so pooled connections are closed.
    """
    config: Settings = app.state.settings
    engine = app.state.engine

    setup_logging(config)
    logger.info("=" * 60)
    logger.info("PostDesk Backend starting up (environment=%s)", config.environment)

    if engine is not None and config.db_auto_create_tables:
        await init_models(engine)
        logger.info("Database tables verified")

    logger.info("=" * 60)

    yield

    logger.info("PostDesk Backend shutting down...")
    if engine is not None:
        await dispose_engine(engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI, normalizer: ErrorNormalizer) -> None:
    """
    Route every classified failure through the ErrorNormalizer.

    Handler coverage:
        PostDeskError           → declared status (400/403/404/409/...)
        RequestValidationError  → 400 with field errors
        HTTPException           → its status (unknown route 404, 405, ...)

    Unclassified exceptions are caught by UnhandledErrorMiddleware and go
    through the same normalizer as 500.
    """

    @app.exception_handler(PostDeskError)
    async def handle_domain_error(request: Request, exc: PostDeskError):
        return normalizer.to_response(exc, request)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return normalizer.to_response(exc, request)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        response = normalizer.to_response(exc, request)
        if exc.headers:
            response.headers.update(exc.headers)
        return response


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    user_repository: Optional[Repository[User]] = None,
    post_repository: Optional[Repository[Post]] = None,
    hasher: Optional[Hasher] = None,
    phone_validator: Optional[PhoneValidator] = None,
    authenticator: Optional[Authenticator] = None,
) -> FastAPI:
    """
    Assemble the application.

    Every collaborator may be injected; anything not injected is built from
    `settings`. When both repositories are injected no database engine is
    created at all (the health check then reports `not_configured`).
    """
    config = settings or default_settings

    # ── Persistence ───────────────────────────────────────────────────────
    engine = None
    if user_repository is None or post_repository is None:
        engine = build_engine(config)
        session_factory = build_session_factory(engine)
        if user_repository is None:
            user_repository = SqlRepository(User, session_factory, "User")
        if post_repository is None:
            post_repository = SqlRepository(Post, session_factory, "Post")

    # ── Pipeline components ───────────────────────────────────────────────
    executor = QueryExecutor(timeout=config.query_timeout_seconds)
    normalizer = ErrorNormalizer(development=config.is_development)

    user_service = UserService(
        repository=user_repository,
        hasher=hasher or Argon2Hasher(
            time_cost=config.argon2_time_cost,
            memory_cost=config.argon2_memory_cost,
            parallelism=config.argon2_parallelism,
        ),
        phone_validator=phone_validator or LibPhoneNumberValidator(),
        query_builder=QuerySpecBuilder(
            default_limit=config.default_page_limit,
            max_limit=config.user_max_page_limit,
            strict_sort=config.strict_sort_validation,
        ),
        executor=executor,
    )
    post_service = PostService(
        repository=post_repository,
        query_builder=QuerySpecBuilder(
            default_limit=config.default_page_limit,
            max_limit=config.post_max_page_limit,
            strict_sort=config.strict_sort_validation,
        ),
        executor=executor,
    )

    app = FastAPI(
        title="PostDesk API",
        description=(
            "Users and posts behind a uniform request pipeline: paginated search, "
            "role-based access, and one envelope for every response."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = config
    app.state.engine = engine
    app.state.user_service = user_service
    app.state.post_service = post_service
    app.state.access_guard = AccessGuard()
    app.state.envelope = EnvelopeTransformer()
    app.state.error_normalizer = normalizer

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost)
    app.add_middleware(UnhandledErrorMiddleware, normalizer=normalizer)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(
        PrincipalMiddleware,
        authenticator=authenticator or GatewayHeaderAuthenticator(
            id_header=config.principal_id_header,
            role_header=config.principal_role_header,
        ),
    )
    app.add_middleware(
        AuditLoggingMiddleware,
        auditor=AuditLogger(max_chars=config.audit_payload_max_chars),
        log_response_payloads=config.log_response_payloads,
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app, normalizer)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(posts.router)
    app.include_router(health.router)

    return app


# Module-level instance for `uvicorn postdesk.main:app`
app = create_app()
