"""Landing page, schedule generation, and logout."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from adhd_scheduler.api.deps import (
    bind_session,
    get_authorization_flow,
    get_existing_session,
    get_gateway,
    get_session_store,
    get_settings,
    request_language,
)
from adhd_scheduler.auth import AuthorizationFlow
from adhd_scheduler.config import Settings
from adhd_scheduler.gateway import DelegationGateway
from adhd_scheduler.i18n import normalize_language, translate
from adhd_scheduler.materializer import materialize, today_in
from adhd_scheduler.messages import compose_summary
from adhd_scheduler.presentation import render_landing, render_message
from adhd_scheduler.schedule import DEFAULT_TEMPLATE
from adhd_scheduler.sessions import Session, SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def landing(
    request: Request,
    lang: str | None = Query(default=None, description="Display language (en, he, ru)."),
    session: Session | None = Depends(get_existing_session),
    store: SessionStore = Depends(get_session_store),
) -> HTMLResponse:
    """Render the landing page. Only a language choice creates a session."""
    language = request_language(request, session)
    if normalize_language(lang):
        session = session or bind_session(request, store)
        session.language = language
    return HTMLResponse(render_landing(session, language))


@router.post("/schedule", response_class=HTMLResponse, response_model=None)
async def create_schedule(
    request: Request,
    target: str | None = Form(default=None, alias="date"),
    session: Session | None = Depends(get_existing_session),
    settings: Settings = Depends(get_settings),
    flow: AuthorizationFlow = Depends(get_authorization_flow),
    gateway: DelegationGateway = Depends(get_gateway),
) -> HTMLResponse | RedirectResponse:
    """Write the day's events to the calendar, then mail a summary.

    A calendar failure fails the request; a mail failure does not.
    """
    if session is None or not session.is_authenticated:
        return RedirectResponse(url="/", status_code=303)

    bundle = await flow.ensure_fresh(session)
    if bundle is None:
        return RedirectResponse(url="/", status_code=303)

    language = request_language(request, session)

    if target:
        try:
            target_date = date.fromisoformat(target.strip())
        except ValueError:
            return HTMLResponse(
                render_message(language, "invalidDate"),
                status_code=400,
            )
    else:
        target_date = today_in(settings.timezone)

    events = materialize(DEFAULT_TEMPLATE, target_date, settings.timezone)
    logger.info(
        "Submitting %d events for %s (session=%s...)",
        len(events),
        target_date.isoformat(),
        session.short_id,
    )
    created = await gateway.submit_schedule(bundle, events)

    outcome = await gateway.send_summary(bundle, compose_summary(language, to=session.email))
    if outcome.ok:
        note = None
        summary = translate("summarySent", language)
    else:
        note = translate("mailFailedNote", language)
        summary = None

    body = translate(
        "scheduleCreatedBody", language, count=created, date=target_date.isoformat()
    )
    if summary:
        body = f"{body} {summary}"
    return HTMLResponse(render_message(language, "scheduleCreated", body, note=note))


@router.post("/logout")
async def logout(
    request: Request,
    session: Session | None = Depends(get_existing_session),
    store: SessionStore = Depends(get_session_store),
) -> RedirectResponse:
    if session is not None:
        store.destroy(session.id)
    request.session.clear()
    return RedirectResponse(url="/", status_code=303)
