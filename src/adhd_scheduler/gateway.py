"""Delegation gateway: outbound Google Calendar and Gmail calls.

Calendar failures are fatal to the schedule request and raise
``CalendarSubmissionError``. Mail failures are not: ``send_summary`` returns an
``Outcome`` so the asymmetry is visible at the call site.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from email.mime.text import MIMEText
from typing import Any
from urllib.parse import quote

import httpx

from adhd_scheduler.core.metrics import record_calendar_event, record_summary_mail
from adhd_scheduler.credentials import CredentialBundle
from adhd_scheduler.errors import CalendarSubmissionError, MailSubmissionError
from adhd_scheduler.materializer import CalendarEventRecord
from adhd_scheduler.messages import encode_raw

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"
GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"


@dataclass(frozen=True)
class Outcome:
    """Result of a non-fatal delegation step."""

    ok: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> Outcome:
        return cls(ok=True)

    @classmethod
    def failed(cls, reason: str) -> Outcome:
        return cls(ok=False, reason=reason)


class _ProviderRequestError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def _redact_credential_values(message: str) -> str:
    """Pattern-based redaction of token-like values in an error message."""
    redacted = re.sub(
        r"(?i)\b(client_secret|refresh_token|access_token|token|code)\s*=\s*([^\s,;&]+)",
        r"\1=[REDACTED]",
        message,
    )
    redacted = re.sub(
        r"""(?i)(['"]?(?:client_secret|refresh_token|access_token|token)['"]?\s*:\s*)(['"]).*?\2""",
        r'\1"[REDACTED]"',
        redacted,
    )
    return re.sub(r"(?i)\bBearer\s+[A-Za-z0-9._\-~+/]+=*", "Bearer [REDACTED]", redacted)


def safe_google_error_message(response: httpx.Response) -> str:
    """Extract a short, credential-free error message from a Google response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    message: str | None = None
    if isinstance(payload, dict):
        error_payload = payload.get("error")
        if isinstance(error_payload, dict):
            candidate = error_payload.get("message")
            if isinstance(candidate, str) and candidate.strip():
                message = candidate
        elif isinstance(error_payload, str) and error_payload.strip():
            message = error_payload

    if message is None:
        message = response.text.strip() or "Request failed without an error payload"
    return " ".join(_redact_credential_values(message).split())[:200]


class DelegationGateway:
    """Submits calendar events and summary mail on the user's behalf."""

    def __init__(self, http_client: httpx.AsyncClient, *, calendar_id: str = "primary") -> None:
        self._http_client = http_client
        self._calendar_id = calendar_id

    @property
    def calendar_id(self) -> str:
        return self._calendar_id

    async def _post_json(
        self,
        url: str,
        bundle: CredentialBundle,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            response = await self._http_client.post(
                url,
                json=body,
                headers=bundle.authorization_header(),
            )
        except httpx.HTTPError as exc:
            raise _ProviderRequestError(f"request failed: {type(exc).__name__}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise _ProviderRequestError(
                safe_google_error_message(response), status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    async def _insert_event(
        self, bundle: CredentialBundle, event: CalendarEventRecord
    ) -> dict[str, Any]:
        calendar = quote(self._calendar_id, safe="")
        url = f"{GOOGLE_CALENDAR_API_BASE_URL}/calendars/{calendar}/events"
        try:
            created = await self._post_json(url, bundle, event.to_google_body())
        except _ProviderRequestError:
            record_calendar_event(ok=False)
            raise
        record_calendar_event(ok=True)
        return created

    async def submit_schedule(
        self,
        bundle: CredentialBundle,
        events: Sequence[CalendarEventRecord],
    ) -> int:
        """Create every event concurrently and wait for all of them.

        Returns the number of events created.

        Raises
        ------
        CalendarSubmissionError
            Describing the first failed event in template order. Events that
            were created are not rolled back.
        """
        results = await asyncio.gather(
            *(self._insert_event(bundle, event) for event in events),
            return_exceptions=True,
        )

        failures = [
            (index, result)
            for index, result in enumerate(results)
            if isinstance(result, BaseException)
        ]
        created = len(results) - len(failures)
        if not failures:
            logger.info("Created %d calendar events in %s", created, self._calendar_id)
            return created

        index, first = failures[0]
        if not isinstance(first, Exception):
            raise first
        logger.error(
            "Calendar submission failed for %d of %d events (created=%d, first=#%d)",
            len(failures),
            len(results),
            created,
            index + 1,
        )
        raise CalendarSubmissionError(
            index=index,
            label=events[index].label,
            message=str(first),
            status_code=getattr(first, "status_code", None),
            failed_count=len(failures),
        ) from first

    # ------------------------------------------------------------------
    # Mail
    # ------------------------------------------------------------------

    async def _send_raw(self, bundle: CredentialBundle, message: MIMEText) -> None:
        try:
            await self._post_json(GMAIL_SEND_URL, bundle, {"raw": encode_raw(message)})
        except _ProviderRequestError as exc:
            raise MailSubmissionError(str(exc)) from exc

    async def send_summary(self, bundle: CredentialBundle, message: MIMEText) -> Outcome:
        """Send the summary message. Never raises for delivery failures."""
        try:
            await self._send_raw(bundle, message)
        except MailSubmissionError as exc:
            record_summary_mail(ok=False)
            logger.warning("Summary email could not be sent: %s", exc)
            return Outcome.failed(str(exc))
        record_summary_mail(ok=True)
        logger.info("Summary email sent")
        return Outcome.success()
