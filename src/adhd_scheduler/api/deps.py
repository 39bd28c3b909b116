"""FastAPI dependencies for the web surface.

Shared collaborators (settings, session store, authorization flow, delegation
gateway) live on ``app.state`` and are injected into handlers through the
functions below, so tests can swap any of them with
``app.dependency_overrides``.

The signed session cookie holds only the opaque session id under
``SESSION_ID_KEY``; everything else stays server-side in the ``SessionStore``.
"""

from __future__ import annotations

from fastapi import Depends, Request

from adhd_scheduler.auth import AuthorizationFlow
from adhd_scheduler.config import Settings
from adhd_scheduler.gateway import DelegationGateway
from adhd_scheduler.i18n import resolve_language
from adhd_scheduler.sessions import Session, SessionStore

SESSION_ID_KEY = "sid"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_authorization_flow(request: Request) -> AuthorizationFlow:
    return request.app.state.authorization_flow


def get_gateway(request: Request) -> DelegationGateway:
    return request.app.state.gateway


def _cookie_session_id(request: Request) -> str | None:
    if "session" not in request.scope:
        return None
    value = request.session.get(SESSION_ID_KEY)
    return value if isinstance(value, str) else None


def bind_session(request: Request, store: SessionStore) -> Session:
    """Return the caller's session, creating one and setting the cookie if needed."""
    session = store.get_or_create(_cookie_session_id(request))
    request.session[SESSION_ID_KEY] = session.id
    return session


def get_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> Session:
    """Return the caller's session, creating an empty one on first visit.

    Only for endpoints that always keep state on the session.
    """
    return bind_session(request, store)


def get_existing_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> Session | None:
    """Return the caller's session without creating one.

    A cookie naming an unknown or expired session is dropped.
    """
    session_id = _cookie_session_id(request)
    session = store.get(session_id)
    if session is None and session_id is not None:
        request.session.pop(SESSION_ID_KEY, None)
    return session


def request_language(request: Request, session: Session | None = None) -> str:
    """Resolve the display language for *request*.

    Usable outside dependency injection (e.g. from exception handlers).
    """
    if session is None:
        store = getattr(request.app.state, "session_store", None)
        if store is not None:
            session = store.get(_cookie_session_id(request))
    return resolve_language(
        request.query_params.get("lang"),
        request.headers.get("accept-language"),
        session.language if session is not None else None,
    )
