"""Project schedule template entries onto a concrete calendar date."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from adhd_scheduler.schedule import ScheduleEntry

# Popup reminders attached to every event, in minutes before start.
REMINDER_MINUTES: tuple[int, ...] = (10, 30)


@dataclass(frozen=True)
class CalendarEventRecord:
    """A date-bound, timezone-resolved schedule entry ready for submission."""

    label: str
    start: datetime
    end: datetime
    timezone: str
    reminder_minutes: tuple[int, ...] = REMINDER_MINUTES

    def to_google_body(self) -> dict[str, Any]:
        """Render the Google Calendar v3 ``events.insert`` request body."""
        return {
            "summary": self.label,
            "start": {"dateTime": self.start.isoformat(), "timeZone": self.timezone},
            "end": {"dateTime": self.end.isoformat(), "timeZone": self.timezone},
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "popup", "minutes": minutes} for minutes in self.reminder_minutes
                ],
            },
        }


def materialize(
    template: Sequence[ScheduleEntry],
    target_date: date,
    timezone: str,
) -> list[CalendarEventRecord]:
    """Build one event record per template entry, preserving order.

    *timezone* must be a valid IANA name; an unknown one raises
    ``ZoneInfoNotFoundError`` from the caller's side of the contract.
    """
    tz = ZoneInfo(timezone)
    return [
        CalendarEventRecord(
            label=entry.label,
            start=datetime.combine(target_date, entry.start, tzinfo=tz),
            end=datetime.combine(target_date, entry.end, tzinfo=tz),
            timezone=timezone,
        )
        for entry in template
    ]


def today_in(timezone: str, now: datetime | None = None) -> date:
    """Return the current calendar date in *timezone*."""
    current = now or datetime.now(UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    return current.astimezone(ZoneInfo(timezone)).date()
