"""Static daily schedule template.

The default day follows evidence-based time-management blocks for adults with
ADHD: short focused sessions separated by movement, meals, and reflection.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class ScheduleEntry:
    """One time block of the day, e.g. 08:00-09:30 "Focused work session 1"."""

    start: time
    end: time
    label: str

    def __post_init__(self) -> None:
        if not self.label.strip():
            raise ValueError("schedule entry label must be non-empty")
        if self.start >= self.end:
            raise ValueError(
                f"schedule entry '{self.label}' must start before it ends "
                f"({self.start:%H:%M} >= {self.end:%H:%M})"
            )

    @classmethod
    def parse(cls, start: str, end: str, label: str) -> ScheduleEntry:
        """Build an entry from ``HH:MM`` strings."""
        return cls(start=time.fromisoformat(start), end=time.fromisoformat(end), label=label)

    @property
    def duration_minutes(self) -> int:
        return (self.end.hour * 60 + self.end.minute) - (self.start.hour * 60 + self.start.minute)


def validate_template(entries: Sequence[ScheduleEntry]) -> None:
    """Check ordering and overlap invariants.

    Entries must be ordered non-decreasing by start time and no entry may
    begin before the previous one ends.

    Raises
    ------
    ValueError
        On the first violation found.
    """
    for previous, current in zip(entries, entries[1:]):
        if current.start < previous.start:
            raise ValueError(
                f"schedule entries out of order: '{current.label}' starts before '{previous.label}'"
            )
        if current.start < previous.end:
            raise ValueError(f"schedule entries overlap: '{previous.label}' and '{current.label}'")


DEFAULT_TEMPLATE: tuple[ScheduleEntry, ...] = tuple(
    ScheduleEntry.parse(start, end, label)
    for start, end, label in (
        ("07:00", "07:30", "Morning routine & hygiene"),
        ("07:30", "08:00", "Breakfast & medication check"),
        ("08:00", "09:30", "Focused work session 1"),
        ("09:30", "09:45", "Short break"),
        ("09:45", "11:15", "Focused work session 2"),
        ("11:15", "11:30", "Outdoor movement / stretching"),
        ("11:30", "12:00", "Email & admin check"),
        ("12:00", "12:30", "Lunch"),
        ("12:30", "13:00", "Mindfulness / therapy exercise"),
        ("13:00", "14:30", "Creative project or hobby"),
        ("14:30", "15:00", "Break / snack"),
        ("15:00", "16:30", "Work session 3"),
        ("16:30", "17:00", "Exercise / physical activity"),
        ("17:00", "18:00", "Personal errands & household chores"),
        ("18:00", "19:00", "Dinner and downtime"),
        ("19:00", "19:30", "Reflection & journal entry"),
        ("19:30", "20:30", "Leisure time (hobby, social)"),
        ("20:30", "21:00", "Prepare for next day"),
        ("21:00", "21:30", "Evening routine & hygiene"),
    )
)

validate_template(DEFAULT_TEMPLATE)
