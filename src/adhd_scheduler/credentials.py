"""Per-session Google credential bundle.

A ``CredentialBundle`` is what the token endpoint hands back after a
successful authorization-code exchange. It lives only inside one session and
is never persisted. Token values are redacted from ``repr``/``str`` so a stray
log line cannot leak them.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Treat a token as expired slightly before Google does.
EXPIRY_SKEW = timedelta(seconds=60)

_DEFAULT_EXPIRES_IN_SECONDS = 3600


class InvalidTokenResponseError(ValueError):
    """Raised when a token endpoint payload cannot form a credential bundle."""


def _coerce_expires_in_seconds(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return _DEFAULT_EXPIRES_IN_SECONDS
    if isinstance(value, int | float):
        return int(value) if value > 0 else _DEFAULT_EXPIRES_IN_SECONDS
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) or _DEFAULT_EXPIRES_IN_SECONDS
    return _DEFAULT_EXPIRES_IN_SECONDS


class CredentialBundle(BaseModel):
    """Access token, optional refresh token, and expiry for one session."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scope: str | None = None
    token_type: str = "Bearer"

    @field_validator("access_token")
    @classmethod
    def _normalize_access_token(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("access_token must be a non-empty string")
        return normalized

    @field_validator("refresh_token", "scope")
    @classmethod
    def _normalize_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    @field_validator("expires_at")
    @classmethod
    def _normalize_expiry(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @classmethod
    def from_token_response(
        cls,
        payload: Any,
        *,
        now: datetime | None = None,
        fallback_refresh_token: str | None = None,
    ) -> CredentialBundle:
        """Build a bundle from a Google token endpoint JSON payload.

        ``expires_in`` is converted to an absolute UTC timestamp relative to
        *now*. Refresh-token grants usually omit ``refresh_token``; pass the
        previous one as *fallback_refresh_token* to keep it.
        """
        if not isinstance(payload, dict):
            raise InvalidTokenResponseError("Token response must be a JSON object")

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token.strip():
            raise InvalidTokenResponseError("Token response is missing a non-empty access_token")

        refresh_token = payload.get("refresh_token")
        if not isinstance(refresh_token, str) or not refresh_token.strip():
            refresh_token = fallback_refresh_token

        scope = payload.get("scope")
        token_type = payload.get("token_type")

        expires_in = _coerce_expires_in_seconds(payload.get("expires_in"))
        expires_at = None
        if expires_in is not None:
            issued_at = now or datetime.now(UTC)
            expires_at = issued_at + timedelta(seconds=expires_in)

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            scope=scope if isinstance(scope, str) else None,
            token_type=token_type if isinstance(token_type, str) and token_type else "Bearer",
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """True when the expiry is known and falls within the skew window."""
        if self.expires_at is None:
            return False
        current = now or datetime.now(UTC)
        return current >= self.expires_at - EXPIRY_SKEW

    def with_refreshed(self, payload: Any, *, now: datetime | None = None) -> CredentialBundle:
        """Return a new bundle from a refresh-token grant response."""
        return CredentialBundle.from_token_response(
            payload, now=now, fallback_refresh_token=self.refresh_token
        )

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def __repr__(self) -> str:
        return (
            f"CredentialBundle("
            f"access_token=<REDACTED>, "
            f"refresh_token={'<REDACTED>' if self.refresh_token else None}, "
            f"expires_at={self.expires_at!r}, "
            f"scope={self.scope!r})"
        )

    __str__ = __repr__
