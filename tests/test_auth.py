"""Tests for the OAuth authorization-code flow.

All Google traffic goes through ``FakeGoogle``; no real network requests.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from adhd_scheduler.auth import (
    SCOPES,
    AuthorizationFlow,
    generate_state,
    sanitize_provider_error,
)
from adhd_scheduler.credentials import CredentialBundle
from adhd_scheduler.errors import AuthorizationExchangeError, MissingAuthorizationCode
from adhd_scheduler.sessions import Session, SessionState

pytestmark = pytest.mark.unit


@pytest.fixture
def flow(settings, google_http) -> AuthorizationFlow:
    return AuthorizationFlow(settings, google_http)


def _query(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestStateAndErrors:
    def test_generate_state_is_url_safe_string(self):
        state = generate_state()
        assert len(state) >= 32
        valid_chars = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
        assert all(c in valid_chars for c in state)

    def test_generate_state_unique(self):
        assert len({generate_state() for _ in range(10)}) == 10

    def test_known_provider_error_is_friendly(self):
        assert "denied" in sanitize_provider_error("access_denied").lower()

    def test_unknown_provider_error_is_generic(self):
        msg = sanitize_provider_error("some_weird_google_error_xyz")
        assert "some_weird_google_error_xyz" not in msg


class TestBeginAuthorization:
    def test_url_requests_offline_consent(self, flow, settings):
        session = Session()
        params = _query(flow.begin_authorization(session))

        assert params["client_id"] == settings.client_id
        assert params["redirect_uri"] == settings.redirect_uri
        assert params["response_type"] == "code"
        assert params["access_type"] == "offline"
        assert params["prompt"] == "consent"
        assert params["scope"].split() == list(SCOPES)

    def test_state_is_stored_on_session(self, flow):
        session = Session()
        params = _query(flow.begin_authorization(session))
        assert session.pending_state == params["state"]
        assert session.state is SessionState.awaiting_callback

    def test_url_targets_google(self, flow):
        url = flow.begin_authorization(Session())
        assert url.startswith("https://accounts.google.com/")

    def test_scopes_cover_calendar_mail_and_drive(self):
        joined = " ".join(SCOPES)
        assert "auth/calendar" in joined
        assert "auth/gmail.send" in joined
        assert "auth/drive.file" in joined


class TestCompleteAuthorization:
    async def test_success_stores_bundle_and_email(self, flow, fake_google):
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]

        bundle = await flow.complete_authorization(session, "4/code", state)

        assert session.state is SessionState.authenticated
        assert session.credentials is bundle
        assert bundle.access_token == "ya29.fake_access_token"
        assert session.email == "user@example.com"

        [token_request] = fake_google.token_requests
        form = parse_qs(token_request.content.decode())
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["4/code"]
        assert form["redirect_uri"] == ["http://localhost:3000/auth/callback"]

    async def test_missing_code_raises(self, flow, fake_google):
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]
        with pytest.raises(MissingAuthorizationCode):
            await flow.complete_authorization(session, None, state)
        assert session.state is SessionState.unauthenticated
        assert fake_google.requests == []

    async def test_blank_code_raises(self, flow):
        session = Session()
        with pytest.raises(MissingAuthorizationCode):
            await flow.complete_authorization(session, "   ")

    async def test_state_mismatch_rejected_without_exchange(self, flow, fake_google):
        session = Session()
        flow.begin_authorization(session)
        with pytest.raises(AuthorizationExchangeError) as exc_info:
            await flow.complete_authorization(session, "4/code", "forged-state")
        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "invalid_state"
        assert fake_google.token_requests == []

    async def test_callback_without_start_rejected(self, flow):
        with pytest.raises(AuthorizationExchangeError):
            await flow.complete_authorization(Session(), "4/code", "any-state")

    async def test_state_is_single_use(self, flow):
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]
        await flow.complete_authorization(session, "4/code", state)
        with pytest.raises(AuthorizationExchangeError):
            await flow.complete_authorization(session, "4/code", state)

    async def test_provider_rejection_is_500_and_drops_pending_state(self, flow, fake_google):
        fake_google.token_status = 400
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]
        with pytest.raises(AuthorizationExchangeError) as exc_info:
            await flow.complete_authorization(session, "4/bad", state)
        assert exc_info.value.status_code == 500
        assert "HTTP 400" in str(exc_info.value)
        assert session.credentials is None
        assert session.pending_state is None

    async def test_failed_reauthorization_keeps_prior_bundle(self, flow, fake_google):
        session = Session()
        prior = CredentialBundle(access_token="ya29.prior", refresh_token="1//r")
        session.store_credentials(prior, email="user@example.com")

        state = _query(flow.begin_authorization(session))["state"]
        assert session.is_authenticated

        fake_google.token_status = 400
        with pytest.raises(AuthorizationExchangeError):
            await flow.complete_authorization(session, "4/bad", state)
        with pytest.raises(AuthorizationExchangeError):
            await flow.complete_authorization(session, "4/code", "forged-state")
        with pytest.raises(MissingAuthorizationCode):
            await flow.complete_authorization(session, None, state)

        assert session.credentials is prior
        assert session.email == "user@example.com"
        assert session.pending_state is None
        assert session.state is SessionState.authenticated

    async def test_payload_without_access_token_fails(self, flow, fake_google):
        fake_google.token_payload = {"token_type": "Bearer"}
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]
        with pytest.raises(AuthorizationExchangeError):
            await flow.complete_authorization(session, "4/code", state)

    async def test_error_message_never_contains_code(self, flow, fake_google):
        fake_google.token_status = 401
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]
        with pytest.raises(AuthorizationExchangeError) as exc_info:
            await flow.complete_authorization(session, "4/very-secret-code", state)
        assert "very-secret-code" not in str(exc_info.value)

    async def test_userinfo_failure_is_not_fatal(self, flow, fake_google):
        fake_google.email = None
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]
        await flow.complete_authorization(session, "4/code", state)
        assert session.is_authenticated
        assert session.email is None

    async def test_network_error_becomes_exchange_error(self, settings):
        def _boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        flow = AuthorizationFlow(settings, httpx.AsyncClient(transport=httpx.MockTransport(_boom)))
        session = Session()
        state = _query(flow.begin_authorization(session))["state"]
        with pytest.raises(AuthorizationExchangeError, match="ConnectError"):
            await flow.complete_authorization(session, "4/code", state)


class TestEnsureFresh:
    async def test_unexpired_bundle_returned_as_is(self, flow, fake_google):
        session = Session()
        bundle = CredentialBundle(
            access_token="a", expires_at=datetime.now(UTC) + timedelta(hours=1)
        )
        session.store_credentials(bundle)
        assert await flow.ensure_fresh(session) is bundle
        assert fake_google.requests == []

    async def test_no_credentials_returns_none(self, flow):
        assert await flow.ensure_fresh(Session()) is None

    async def test_expired_bundle_is_refreshed_once(self, flow, fake_google):
        fake_google.token_payload = {"access_token": "ya29.refreshed", "expires_in": 3600}
        session = Session()
        session.store_credentials(
            CredentialBundle(
                access_token="old",
                refresh_token="1//keep",
                expires_at=datetime.now(UTC) - timedelta(minutes=1),
            ),
            email="user@example.com",
        )

        refreshed = await flow.ensure_fresh(session)

        assert refreshed.access_token == "ya29.refreshed"
        assert refreshed.refresh_token == "1//keep"
        assert session.credentials is refreshed
        assert session.email == "user@example.com"
        [token_request] = fake_google.token_requests
        assert parse_qs(token_request.content.decode())["grant_type"] == ["refresh_token"]

    async def test_expired_without_refresh_token_signs_out(self, flow, fake_google):
        session = Session()
        session.store_credentials(
            CredentialBundle(access_token="old", expires_at=datetime.now(UTC) - timedelta(1))
        )
        assert await flow.ensure_fresh(session) is None
        assert session.state is SessionState.unauthenticated
        assert fake_google.requests == []

    async def test_failed_refresh_signs_out(self, flow, fake_google):
        fake_google.token_status = 400
        session = Session()
        session.store_credentials(
            CredentialBundle(
                access_token="old",
                refresh_token="1//revoked",
                expires_at=datetime.now(UTC) - timedelta(minutes=1),
            )
        )
        assert await flow.ensure_fresh(session) is None
        assert session.credentials is None
