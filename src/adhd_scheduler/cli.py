"""CLI for the ADHD daily scheduler: run the web app and inspect the day plan."""

from __future__ import annotations

import logging
import os
import sys
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click
import uvicorn

from adhd_scheduler.config import (
    DEFAULT_TIMEZONE,
    ConfigError,
    load_settings,
    missing_required_vars,
)
from adhd_scheduler.core.logging import configure_logging
from adhd_scheduler.materializer import materialize, today_in
from adhd_scheduler.schedule import DEFAULT_TEMPLATE

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """ADHD daily scheduler: one-click structured days in Google Calendar."""


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides HOST)")
@click.option("--port", type=int, default=None, help="Listen port (overrides PORT)")
@click.option("--reload", is_flag=True, help="Reload on source changes (development only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the web application under uvicorn."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    configure_logging(settings.log_level, settings.log_format)
    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Serving on http://%s:%d", bind_host, bind_port)

    uvicorn.run(
        "adhd_scheduler.api.app:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_config=None,
    )


@cli.command()
@click.option(
    "--date",
    "target",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Date to preview (YYYY-MM-DD); defaults to today in the timezone",
)
@click.option(
    "--timezone",
    default=None,
    help="IANA timezone (overrides SCHEDULER_TIMEZONE)",
)
def preview(target, timezone: str | None) -> None:
    """Print the events that would be created, without contacting Google."""
    tz_name = timezone or os.environ.get("SCHEDULER_TIMEZONE") or DEFAULT_TIMEZONE
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        click.echo(f"Unknown timezone: {tz_name}", err=True)
        sys.exit(1)

    day: date = target.date() if target is not None else today_in(tz_name)
    events = materialize(DEFAULT_TEMPLATE, day, tz_name)

    click.echo(f"Schedule for {day.isoformat()} ({tz_name}): {len(events)} event(s)")
    click.echo("-" * 60)
    for event in events:
        reminders = "/".join(str(m) for m in event.reminder_minutes)
        click.echo(
            f"{event.start:%H:%M}-{event.end:%H:%M}  {event.label:<40} [{reminders} min]"
        )


@cli.command("check-config")
def check_config() -> None:
    """Validate the environment and report what is missing."""
    missing = missing_required_vars()
    if missing:
        click.echo("Missing required environment variables:")
        for name in missing:
            click.echo(f"  {name}")
        sys.exit(1)

    try:
        settings = load_settings()
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}")
        sys.exit(1)

    click.echo("Configuration OK")
    click.echo(f"  timezone:  {settings.timezone}")
    click.echo(f"  calendar:  {settings.calendar_id}")
    click.echo(f"  redirect:  {settings.redirect_uri}")
    click.echo(f"  listen:    {settings.host}:{settings.port}")
