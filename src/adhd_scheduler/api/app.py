"""Web application factory.

The app factory creates a FastAPI instance with:
- Signed-cookie session middleware (the cookie carries only a session id)
- Request-id and catch-all error middleware
- Localized HTML exception handlers for sign-in and calendar failures
- Page and sign-in routers
- Health endpoint at GET /health and Prometheus metrics at GET /metrics

Collaborators are built eagerly and parked on ``app.state`` so the app is
usable without running the lifespan (e.g. under ``httpx.ASGITransport``).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

import httpx
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.sessions import SessionMiddleware

from adhd_scheduler.api.middleware import RequestContextMiddleware, register_error_handlers
from adhd_scheduler.api.routers.auth import router as auth_router
from adhd_scheduler.api.routers.pages import router as pages_router
from adhd_scheduler.auth import AuthorizationFlow
from adhd_scheduler.config import Settings, load_settings
from adhd_scheduler.gateway import DelegationGateway
from adhd_scheduler.sessions import SessionStore

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "adhd_scheduler_session"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Scheduler web app starting (timezone=%s, calendar=%s)",
        app.state.settings.timezone,
        app.state.settings.calendar_id,
    )

    yield

    if app.state.owns_http_client:
        await app.state.http_client.aclose()
    app.state.session_store.clear()


def create_app(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings:
        Validated settings. Loaded from the environment when omitted, which
        raises ``ConfigError`` if required variables are missing.
    http_client:
        Outbound client for Google endpoints. When omitted the app builds
        (and on shutdown closes) its own client.
    session_store:
        Server-side session storage. Defaults to a fresh in-memory store whose
        idle ttl matches the session cookie's max age.
    """
    if settings is None:
        settings = load_settings()

    owns_http_client = http_client is None
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    app = FastAPI(
        title="ADHD Daily Scheduler",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.router.redirect_slashes = False

    app.state.settings = settings
    app.state.http_client = http_client
    app.state.owns_http_client = owns_http_client
    if session_store is None:
        session_store = SessionStore(ttl=timedelta(seconds=settings.session_max_age_seconds))
    app.state.session_store = session_store
    app.state.authorization_flow = AuthorizationFlow(settings, http_client)
    app.state.gateway = DelegationGateway(http_client, calendar_id=settings.calendar_id)

    # Middleware added last runs first: sessions wrap the error handlers so
    # the error pages can still read the caller's language preference.
    register_error_handlers(app)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        max_age=settings.session_max_age_seconds,
        same_site="lax",
        https_only=settings.session_cookie_secure,
    )

    app.include_router(pages_router)
    app.include_router(auth_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
