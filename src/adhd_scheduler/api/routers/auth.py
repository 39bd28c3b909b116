"""Google sign-in endpoints.

  1. GET /auth/start
     - Stores a one-time CSRF state on the caller's session.
     - Redirects the browser to Google's consent screen.

  2. GET /auth/callback
     - Rejects provider errors and missing codes with 400.
     - Exchanges the code for a credential bundle (500 on exchange failure).
     - Redirects to the landing page on success.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from adhd_scheduler.api.deps import get_authorization_flow, get_existing_session, get_session
from adhd_scheduler.auth import AuthorizationFlow, sanitize_provider_error
from adhd_scheduler.errors import AuthorizationExchangeError
from adhd_scheduler.sessions import Session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_MAX_LOGGED_ERROR_CHARS = 64


@router.get("/start")
async def auth_start(
    session: Session = Depends(get_session),
    flow: AuthorizationFlow = Depends(get_authorization_flow),
) -> RedirectResponse:
    """Redirect to the Google consent screen."""
    return RedirectResponse(url=flow.begin_authorization(session), status_code=302)


@router.get("/callback")
async def auth_callback(
    code: str | None = Query(default=None, description="Authorization code from Google."),
    state: str | None = Query(default=None, description="CSRF state token."),
    error: str | None = Query(default=None, description="OAuth error code from Google."),
    existing: Session | None = Depends(get_existing_session),
    flow: AuthorizationFlow = Depends(get_authorization_flow),
) -> RedirectResponse:
    """Complete sign-in and return to the landing page.

    A callback without a session has no pending state to match, so it is
    checked against a throwaway session that is never stored.
    """
    session = existing if existing is not None else Session()
    if error:
        logger.warning(
            "Google OAuth provider error: %r (session=%s...)",
            error[:_MAX_LOGGED_ERROR_CHARS],
            session.short_id,
        )
        session.clear_pending()
        raise AuthorizationExchangeError(
            sanitize_provider_error(error),
            error_code="provider_error",
            status_code=400,
        )

    await flow.complete_authorization(session, code, state)
    return RedirectResponse(url="/", status_code=302)
