"""Error handling and request-context middleware.

Registers FastAPI exception handlers that convert domain exceptions into
localized HTML error pages.

Status code mapping:
- ``MissingAuthorizationCode`` → 400 Bad Request
- ``AuthorizationExchangeError`` → 400 for state/provider errors, else 500
- ``CalendarSubmissionError`` → 500 Internal Server Error (generic message)
- Any other ``Exception`` → 500 Internal Server Error
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from starlette.middleware.base import BaseHTTPMiddleware

from adhd_scheduler.api.deps import request_language
from adhd_scheduler.core.logging import new_request_id, set_request_context
from adhd_scheduler.errors import (
    AuthorizationError,
    CalendarSubmissionError,
    MissingAuthorizationCode,
)
from adhd_scheduler.i18n import translate
from adhd_scheduler.presentation import render_message

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def _handle_authorization_error(
    request: Request,
    exc: AuthorizationError,
) -> HTMLResponse:
    """Return 400/500 when sign-in cannot be completed."""
    language = request_language(request)
    detail = None
    if isinstance(exc, MissingAuthorizationCode):
        detail = translate("missingCode", language)
    body = render_message(language, "authFailed", detail)
    logger.info("Authorization failed: %s (%s)", exc.error_code, exc.status_code)
    return HTMLResponse(body, status_code=exc.status_code)


async def _handle_calendar_submission_error(
    request: Request,
    exc: CalendarSubmissionError,
) -> HTMLResponse:
    """Return 500 with a generic message when calendar submission fails."""
    logger.error("Calendar submission failed: %s", exc)
    language = request_language(request)
    return HTMLResponse(render_message(language, "calendarFailed"), status_code=500)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and echo it in the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        set_request_context(request_id)
        try:
            response = await call_next(request)
        finally:
            set_request_context(None)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class CatchAllErrorMiddleware(BaseHTTPMiddleware):
    """Turn any exception the registered handlers did not claim into the
    localized "something went wrong" page. The exception text never reaches
    the browser.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error(
                "Unhandled exception on %s %s",
                request.method,
                request.url.path,
                exc_info=True,
            )
            language = request_language(request)
            return HTMLResponse(render_message(language, "unexpectedError"), status_code=500)


def register_error_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI application.

    Call this from ``create_app()`` after constructing the ``FastAPI`` instance.
    """
    app.add_exception_handler(
        AuthorizationError,
        _handle_authorization_error,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        CalendarSubmissionError,
        _handle_calendar_submission_error,  # type: ignore[arg-type]
    )
    app.add_middleware(CatchAllErrorMiddleware)
