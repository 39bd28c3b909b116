"""Prometheus counters for outbound provider calls.

Metrics exported:
- scheduler_oauth_exchanges_total: authorization-code and refresh grants
- scheduler_calendar_events_total: calendar event insert attempts
- scheduler_summary_mail_total: summary email send attempts

All counters carry a ``status`` label (``success`` or ``error``).
"""

from __future__ import annotations

from prometheus_client import Counter

oauth_exchanges_total = Counter(
    "scheduler_oauth_exchanges_total",
    "Total number of OAuth token endpoint grants",
    labelnames=["grant_type", "status"],
)

calendar_events_total = Counter(
    "scheduler_calendar_events_total",
    "Total number of calendar event insert attempts",
    labelnames=["status"],
)

summary_mail_total = Counter(
    "scheduler_summary_mail_total",
    "Total number of summary email send attempts",
    labelnames=["status"],
)


def record_oauth_exchange(grant_type: str, *, ok: bool) -> None:
    oauth_exchanges_total.labels(grant_type=grant_type, status="success" if ok else "error").inc()


def record_calendar_event(*, ok: bool) -> None:
    calendar_events_total.labels(status="success" if ok else "error").inc()


def record_summary_mail(*, ok: bool) -> None:
    summary_mail_total.labels(status="success" if ok else "error").inc()
