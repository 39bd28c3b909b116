"""Session store: per-browser-session credential holder.

The browser only carries a signed cookie with an opaque session id; all
session data lives in a ``SessionStore`` instance that the app factory puts on
``app.state`` and request handlers receive through a FastAPI dependency.

A session lives until logout or until it has been idle for longer than the
store's ttl, which defaults to the signed cookie's max age. Concurrent requests
against the same session are not coordinated: the last write wins.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from adhd_scheduler.config import DEFAULT_SESSION_MAX_AGE_SECONDS
from adhd_scheduler.credentials import CredentialBundle

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(seconds=DEFAULT_SESSION_MAX_AGE_SECONDS)


class SessionState(StrEnum):
    """Authorization state of one browser session."""

    unauthenticated = "unauthenticated"
    awaiting_callback = "awaiting_callback"
    authenticated = "authenticated"


def _new_session_id() -> str:
    return secrets.token_urlsafe(32)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Session:
    id: str = field(default_factory=_new_session_id)
    credentials: CredentialBundle | None = None
    language: str | None = None
    pending_state: str | None = None
    email: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    last_seen_at: datetime = field(default_factory=_utcnow)

    @property
    def state(self) -> SessionState:
        # A second sign-in attempt must not hide a bundle that still works.
        if self.credentials is not None:
            return SessionState.authenticated
        if self.pending_state is not None:
            return SessionState.awaiting_callback
        return SessionState.unauthenticated

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.authenticated

    @property
    def short_id(self) -> str:
        """Log-safe prefix of the session id."""
        return self.id[:8]

    def is_idle(self, ttl: timedelta, now: datetime) -> bool:
        return now - self.last_seen_at > ttl

    def store_credentials(self, bundle: CredentialBundle, *, email: str | None = None) -> None:
        """Install *bundle*, overwriting any prior one, and leave the callback state."""
        self.credentials = bundle
        self.pending_state = None
        if email is not None:
            self.email = email

    def clear_pending(self) -> None:
        """Abandon an in-flight sign-in; stored credentials are kept."""
        self.pending_state = None

    def clear_credentials(self) -> None:
        self.credentials = None
        self.pending_state = None
        self.email = None


class SessionStore:
    """In-memory mapping of session id to ``Session``.

    Sessions idle for longer than *ttl* are evicted: on lookup, and by a sweep
    each time a new session is created. Process-local: do not run several
    worker processes against one store.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str | None) -> Session | None:
        """Return the live session for *session_id* and mark it as seen."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        now = self._clock()
        if session.is_idle(self._ttl, now):
            self._evict(session)
            return None
        session.last_seen_at = now
        return session

    def create(self) -> Session:
        self.purge_expired()
        now = self._clock()
        session = Session(created_at=now, last_seen_at=now)
        self._sessions[session.id] = session
        logger.debug("Session created (session=%s...)", session.short_id)
        return session

    def get_or_create(self, session_id: str | None) -> Session:
        """Return the session for *session_id*, or a fresh empty one."""
        session = self.get(session_id)
        if session is None:
            session = self.create()
        return session

    def purge_expired(self) -> int:
        """Evict every idle session. Returns how many were removed."""
        now = self._clock()
        expired = [s for s in self._sessions.values() if s.is_idle(self._ttl, now)]
        for session in expired:
            self._evict(session)
        return len(expired)

    def destroy(self, session_id: str | None) -> bool:
        """Remove a session and its credential bundle. Returns True if one existed."""
        if not session_id:
            return False
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.clear_credentials()
        logger.info("Session destroyed (session=%s...)", session.short_id)
        return True

    def clear(self) -> None:
        self._sessions.clear()

    def _evict(self, session: Session) -> None:
        self._sessions.pop(session.id, None)
        session.clear_credentials()
        logger.info("Session expired (session=%s...)", session.short_id)
