"""Environment-provided configuration.

All settings come from process environment variables. The four OAuth/session
values are required; their absence is a startup-time fatal condition surfaced
as ``ConfigError``. Error messages name missing variables but never echo
configured values.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "Asia/Jerusalem"
DEFAULT_CALENDAR_ID = "primary"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_SESSION_MAX_AGE_SECONDS = 14 * 24 * 60 * 60

_REQUIRED_VARS: tuple[tuple[str, str], ...] = (
    ("client_id", "GOOGLE_OAUTH_CLIENT_ID"),
    ("client_secret", "GOOGLE_OAUTH_CLIENT_SECRET"),
    ("redirect_uri", "GOOGLE_OAUTH_REDIRECT_URI"),
    ("session_secret", "SESSION_SECRET"),
)

_VALID_LOG_FORMATS = frozenset({"text", "json"})


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    """Validated application settings."""

    client_id: str
    client_secret: str
    redirect_uri: str
    session_secret: str
    timezone: str = DEFAULT_TIMEZONE
    calendar_id: str = DEFAULT_CALENDAR_ID
    log_level: str = "INFO"
    log_format: str = "text"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    session_cookie_secure: bool = False
    session_max_age_seconds: int = DEFAULT_SESSION_MAX_AGE_SECONDS

    def __repr__(self) -> str:
        return (
            f"Settings(client_id={self.client_id!r}, client_secret=<REDACTED>, "
            f"redirect_uri={self.redirect_uri!r}, session_secret=<REDACTED>, "
            f"timezone={self.timezone!r}, calendar_id={self.calendar_id!r})"
        )

    __str__ = __repr__


def _get_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive")
    return value


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive")
    return value


def _validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"SCHEDULER_TIMEZONE is not a known IANA timezone: {name!r}") from exc
    return name


def missing_required_vars(env: Mapping[str, str] | None = None) -> list[str]:
    """Return the names of required variables that are absent or blank."""
    env = os.environ if env is None else env
    return [var for _, var in _REQUIRED_VARS if not env.get(var, "").strip()]


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from *env* (defaults to ``os.environ``).

    Raises
    ------
    ConfigError
        If any required variable is missing or an optional one is malformed.
    """
    env = os.environ if env is None else env

    missing = missing_required_vars(env)
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    required = {field: env[var].strip() for field, var in _REQUIRED_VARS}

    log_format = env.get("LOG_FORMAT", "text").strip().lower() or "text"
    if log_format not in _VALID_LOG_FORMATS:
        raise ConfigError(f"LOG_FORMAT must be one of: {', '.join(sorted(_VALID_LOG_FORMATS))}")

    return Settings(
        **required,
        timezone=_validate_timezone(
            env.get("SCHEDULER_TIMEZONE", DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE
        ),
        calendar_id=env.get("GOOGLE_CALENDAR_ID", DEFAULT_CALENDAR_ID).strip()
        or DEFAULT_CALENDAR_ID,
        log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        log_format=log_format,
        host=env.get("HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
        port=_get_int(env, "PORT", DEFAULT_PORT),
        http_timeout_seconds=_get_float(env, "HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        session_cookie_secure=_get_bool(env, "SESSION_COOKIE_SECURE", False),
        session_max_age_seconds=_get_int(
            env, "SESSION_MAX_AGE_SECONDS", DEFAULT_SESSION_MAX_AGE_SECONDS
        ),
    )
