"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. The Settings object is built exactly once (here, or by the
caller) and everything that needs it gets it from there: the TokenService
at construction time, the engine during lifespan startup.

There is no module-level app. Missing TASKLIST_JWT_SECRET or
TASKLIST_DATABASE_URL makes Settings() raise when create_app() runs at
startup (uvicorn with factory=True, or `tasklist serve`), so the server
fails to start instead of serving requests with a half-configured app.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasklist import __version__
from tasklist.api import api_router
from tasklist.auth.tokens import TokenService
from tasklist.config import Settings
from tasklist.db.engine import create_engine, create_session_factory
from tasklist.errors import register_error_handlers
from tasklist.observability import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    engine = create_engine(settings)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    logger.info(
        "tasklist.starting",
        version=__version__,
        environment=settings.environment,
        db_backend=engine.url.get_backend_name(),
        pool_size=settings.db_pool_size,
    )

    yield

    logger.info("tasklist.shutdown")
    await engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or Settings()
    configure_logging(settings.environment, settings.debug)

    app = FastAPI(
        title="Tasklist",
        description="Multi-user todo service with ownership-scoped access",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tokens = TokenService(settings)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from tasklist.middleware.request_id import RequestIdMiddleware
    from tasklist.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)
    app.include_router(api_router)

    return app
