"""Google OAuth 2.0 authorization-code flow for browser sessions.

The flow:
  1. ``begin_authorization`` builds the consent URL with a one-time CSRF
     state token stored on the session. Offline access and a forced consent
     prompt guarantee a refresh token on every authorization.
  2. ``complete_authorization`` validates the state, exchanges the code at
     Google's token endpoint, and installs the resulting ``CredentialBundle``
     on the session (overwriting any prior bundle). A failed callback only
     drops the pending state, so a bundle from an earlier sign-in survives.
  3. ``ensure_fresh`` runs one refresh-token grant when a stored bundle has
     expired, or drops the bundle so the user is asked to sign in again.

Codes, tokens, and client secrets are never logged; log lines carry only the
session-id prefix and HTTP status codes.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any
from urllib.parse import urlencode

import httpx

from adhd_scheduler.config import Settings
from adhd_scheduler.core.metrics import record_oauth_exchange
from adhd_scheduler.credentials import CredentialBundle, InvalidTokenResponseError
from adhd_scheduler.errors import AuthorizationExchangeError, MissingAuthorizationCode
from adhd_scheduler.sessions import Session

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/userinfo.email",
)

_KNOWN_PROVIDER_ERRORS: dict[str, str] = {
    "access_denied": "The user denied access. Sign-in was cancelled.",
    "invalid_request": "The sign-in request was malformed. Please try again.",
    "unauthorized_client": "This application is not authorized to use Google sign-in.",
    "invalid_scope": "One or more requested permissions are invalid or not permitted.",
    "server_error": "Google encountered an internal error. Please try again.",
    "temporarily_unavailable": "Google sign-in is temporarily unavailable. Please try again later.",
}


def sanitize_provider_error(error: str) -> str:
    """Convert a provider error code into a safe user-facing message.

    Unknown error codes are replaced with a generic message to avoid
    leaking internal provider state.
    """
    return _KNOWN_PROVIDER_ERRORS.get(error, "Sign-in failed. Please try again.")


def generate_state() -> str:
    """Generate a cryptographically random CSRF state token."""
    return secrets.token_urlsafe(32)


class AuthorizationFlow:
    """Builds consent URLs and exchanges codes for one OAuth client."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._client_id = settings.client_id
        self._client_secret = settings.client_secret
        self._redirect_uri = settings.redirect_uri
        self._http_client = http_client

    # ------------------------------------------------------------------
    # Consent
    # ------------------------------------------------------------------

    def begin_authorization(self, session: Session) -> str:
        """Return the Google consent URL and mark *session* as awaiting callback."""
        state = generate_state()
        session.pending_state = state

        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent",  # Force refresh token to be returned
            "state": state,
        }
        logger.info("OAuth flow started (session=%s...)", session.short_id)
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    async def complete_authorization(
        self,
        session: Session,
        code: str | None,
        state: str | None = None,
    ) -> CredentialBundle:
        """Exchange *code* for a credential bundle and store it on *session*.

        Raises
        ------
        MissingAuthorizationCode
            If *code* is absent or blank.
        AuthorizationExchangeError
            If the state does not match, or the provider rejects the code.
        """
        if not code or not code.strip():
            session.clear_pending()
            raise MissingAuthorizationCode()

        expected_state = session.pending_state
        if expected_state is None or state is None or not secrets.compare_digest(
            expected_state, state
        ):
            logger.warning(
                "OAuth callback received invalid or missing state (session=%s...)",
                session.short_id,
            )
            session.clear_pending()
            raise AuthorizationExchangeError(
                "State parameter is invalid or expired. Please restart sign-in.",
                error_code="invalid_state",
                status_code=400,
            )

        try:
            payload = await self._token_request(
                {
                    "code": code.strip(),
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "redirect_uri": self._redirect_uri,
                    "grant_type": "authorization_code",
                }
            )
            bundle = CredentialBundle.from_token_response(payload)
        except (AuthorizationExchangeError, InvalidTokenResponseError) as exc:
            record_oauth_exchange("authorization_code", ok=False)
            logger.warning(
                "OAuth token exchange failed (session=%s...): %s", session.short_id, exc
            )
            session.clear_pending()
            if isinstance(exc, AuthorizationExchangeError):
                raise
            raise AuthorizationExchangeError(str(exc)) from exc

        record_oauth_exchange("authorization_code", ok=True)
        if bundle.refresh_token is None:
            logger.warning(
                "Token response did not include a refresh token (session=%s...)",
                session.short_id,
            )

        email = await self.fetch_email(bundle)
        session.store_credentials(bundle, email=email)
        logger.info(
            "OAuth flow complete (session=%s..., scope=%s)", session.short_id, bundle.scope
        )
        return bundle

    # ------------------------------------------------------------------
    # Expiry handling
    # ------------------------------------------------------------------

    async def ensure_fresh(self, session: Session) -> CredentialBundle | None:
        """Return usable credentials for *session*, refreshing once if expired.

        Returns None (and clears the session's credentials) when the bundle
        has expired and cannot be refreshed; the caller should send the user
        back through sign-in.
        """
        bundle = session.credentials
        if bundle is None:
            return None
        if not bundle.is_expired():
            return bundle

        if bundle.refresh_token is None:
            logger.info(
                "Stored credentials expired without refresh token (session=%s...)",
                session.short_id,
            )
            session.clear_credentials()
            return None

        try:
            payload = await self._token_request(
                {
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "refresh_token": bundle.refresh_token,
                    "grant_type": "refresh_token",
                }
            )
            refreshed = bundle.with_refreshed(payload)
        except (AuthorizationExchangeError, InvalidTokenResponseError) as exc:
            record_oauth_exchange("refresh_token", ok=False)
            logger.warning("Token refresh failed (session=%s...): %s", session.short_id, exc)
            session.clear_credentials()
            return None

        record_oauth_exchange("refresh_token", ok=True)
        session.store_credentials(refreshed)
        logger.info("Access token refreshed (session=%s...)", session.short_id)
        return refreshed

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _token_request(self, data: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._http_client.post(
                GOOGLE_TOKEN_URL,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise AuthorizationExchangeError(
                f"Network error contacting token endpoint: {type(exc).__name__}"
            ) from exc

        if response.status_code != 200:
            # Log status code but not the raw body (may contain sensitive details)
            raise AuthorizationExchangeError(
                f"Token endpoint returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthorizationExchangeError("Invalid JSON in token response") from exc
        if not isinstance(payload, dict):
            raise AuthorizationExchangeError("Token response must be a JSON object")
        return payload

    async def fetch_email(self, bundle: CredentialBundle) -> str | None:
        """Best-effort lookup of the signed-in mailbox address."""
        try:
            response = await self._http_client.get(
                GOOGLE_USERINFO_URL, headers=bundle.authorization_header()
            )
        except httpx.HTTPError as exc:
            logger.warning("Userinfo lookup failed: %s", type(exc).__name__)
            return None
        if response.status_code != 200:
            logger.warning("Userinfo lookup returned HTTP %d", response.status_code)
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Userinfo lookup returned invalid JSON")
            return None
        email = payload.get("email") if isinstance(payload, dict) else None
        return email.strip() if isinstance(email, str) and email.strip() else None
