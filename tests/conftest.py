"""Shared fixtures for the scheduler test suite.

``FakeGoogle`` stands in for every Google endpoint the app talks to (token,
userinfo, Calendar events.insert, Gmail messages.send) behind an
``httpx.MockTransport``, and records each request so tests can assert on
outbound traffic.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi import FastAPI

from adhd_scheduler.api.app import create_app
from adhd_scheduler.config import Settings
from adhd_scheduler.schedule import DEFAULT_TEMPLATE
from adhd_scheduler.sessions import SessionStore

TOKEN_RESPONSE = {
    "access_token": "ya29.fake_access_token",
    "refresh_token": "1//fake_refresh_token",
    "scope": "https://www.googleapis.com/auth/calendar https://www.googleapis.com/auth/gmail.send",
    "token_type": "Bearer",
    "expires_in": 3600,
}


@dataclass
class FakeGoogle:
    """Programmable stand-in for Google's OAuth, Calendar, and Gmail APIs."""

    token_status: int = 200
    token_payload: dict = field(default_factory=lambda: dict(TOKEN_RESPONSE))
    email: str | None = "user@example.com"
    calendar_failures: dict[int, int] = field(default_factory=dict)
    mail_status: int = 200
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if host == "oauth2.googleapis.com" and path == "/token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json=self.token_payload)

        if path.endswith("/userinfo"):
            if self.email is None:
                return httpx.Response(401, json={"error": "unauthorized"})
            return httpx.Response(200, json={"email": self.email, "verified_email": True})

        if "/calendar/v3/calendars/" in path and request.method == "POST":
            body = json.loads(request.content)
            status = self._calendar_status_for(body["summary"])
            if status != 200:
                return httpx.Response(status, json={"error": {"message": "Rate Limit Exceeded"}})
            return httpx.Response(200, json={"id": f"evt-{len(self.calendar_requests)}", **body})

        if path.endswith("/messages/send"):
            if self.mail_status != 200:
                return httpx.Response(self.mail_status, json={"error": {"message": "Bad Request"}})
            return httpx.Response(200, json={"id": "msg-1", "labelIds": ["SENT"]})

        return httpx.Response(404, json={"error": "unexpected request"})

    def _calendar_status_for(self, summary: str) -> int:
        for index, entry in enumerate(DEFAULT_TEMPLATE):
            if entry.label == summary:
                return self.calendar_failures.get(index, 200)
        return 200

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/token"]

    @property
    def calendar_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if "/calendar/v3/" in r.url.path]

    @property
    def mail_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/messages/send")]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        client_id="test-client-id.apps.googleusercontent.com",
        client_secret="test-client-secret",
        redirect_uri="http://localhost:3000/auth/callback",
        session_secret="test-session-secret",
        timezone="UTC",
    )


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def google_http(fake_google: FakeGoogle) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=fake_google.transport())


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def app(settings: Settings, google_http: httpx.AsyncClient, session_store: SessionStore) -> FastAPI:
    return create_app(settings, http_client=google_http, session_store=session_store)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
        follow_redirects=False,
    ) as c:
        yield c


async def _sign_in(client: httpx.AsyncClient, code: str = "4/fake_auth_code") -> httpx.Response:
    start = await client.get("/auth/start")
    state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]
    return await client.get("/auth/callback", params={"code": code, "state": state})


@pytest.fixture
def sign_in() -> Callable[..., object]:
    """Drive the browser side of the OAuth round trip against ``FakeGoogle``."""
    return _sign_in
