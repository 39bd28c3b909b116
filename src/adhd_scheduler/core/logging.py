"""Process-wide log setup for the scheduler web app and CLI.

Modules log through plain ``logging.getLogger(__name__)``; structlog's
``ProcessorFormatter`` renders those records either as console text
(``LOG_FORMAT=text``) or as JSON lines (``LOG_FORMAT=json``).

Each record is enriched with the current request id (set per request by
``RequestContextMiddleware``) and, when a span is active, its OpenTelemetry
trace and span ids. OAuth secrets are scrubbed before any handler sees them.
"""

from __future__ import annotations

import logging
import re
import sys
import uuid
from contextvars import ContextVar

import structlog
from opentelemetry import trace

# ---------------------------------------------------------------------------
# Request context (asyncio-safe via ContextVar)
# ---------------------------------------------------------------------------

_request_context: ContextVar[str | None] = ContextVar("request_id", default=None)


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def set_request_context(request_id: str | None) -> None:
    """Set the request id for the current async context."""
    _request_context.set(request_id)


def get_request_context() -> str | None:
    """Get the request id for the current async context."""
    return _request_context.get()


# ---------------------------------------------------------------------------
# Structlog processors
# ---------------------------------------------------------------------------


def add_request_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Inject ``request_id`` from the ContextVar into the event dict."""
    event_dict["request_id"] = _request_context.get()
    return event_dict


def add_otel_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Inject ``trace_id`` and ``span_id`` from the current OTel span."""
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if ctx and ctx.trace_id:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


# ---------------------------------------------------------------------------
# Credential redaction
# ---------------------------------------------------------------------------

_REDACTION_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?i)\bBearer\s+[A-Za-z0-9._\-~+/]+=*"), "Bearer [REDACTED]"),
    (
        re.compile(r"(?i)\b(access_token|refresh_token|client_secret|code)=([^\s&;,]+)"),
        r"\1=[REDACTED]",
    ),
)


class CredentialRedactionFilter(logging.Filter):
    """Scrub OAuth tokens, codes, and client secrets from log records.

    Applied to the fully formatted message; when anything is redacted the
    record's ``args`` are cleared so the message is not re-interpolated.
    Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        redacted = message
        for pattern, replacement in _REDACTION_PATTERNS:
            redacted = pattern.sub(replacement, redacted)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


# ---------------------------------------------------------------------------
# Noise suppression
# ---------------------------------------------------------------------------

_NOISE_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
)


def _build_processors(
    time_fmt: str,
) -> list[structlog.types.Processor]:
    """Build the pre-chain processor list with the given timestamp format."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=time_fmt),
        add_request_context,
        add_otel_context,
        structlog.stdlib.ExtraAdder(),
    ]


# ---------------------------------------------------------------------------
# configure_logging()
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install the scheduler's log handler on the root logger.

    Safe to call more than once; each call replaces the previous handler and
    redaction filter. Unknown *level* names fall back to INFO.
    """
    if fmt == "json":
        processors = _build_processors(time_fmt="iso")
        renderer = structlog.processors.JSONRenderer()
    else:
        processors = _build_processors(time_fmt="%H:%M:%S")
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    # Logger filters do not see records propagated from child loggers.
    handler.addFilter(CredentialRedactionFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    for existing in [f for f in root.filters if isinstance(f, CredentialRedactionFilter)]:
        root.removeFilter(existing)
    root.addFilter(CredentialRedactionFilter())
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISE_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Direct structlog.get_logger() callers share the same pipeline.
    structlog.configure(
        processors=[
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
