"""Data models shared across the planner."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Union


CATEGORIES = [
    "Open Opp Tasks",
    "Internal Meeting",
    "External Meeting",
    "Meeting Follow-Up",
    "Admin",
    "Prospecting",
    "Personal",
]
UNCATEGORIZED = "Uncategorized"


def parse_time_of_day(value: Union[str, time]) -> time:
    """Parse an ``HH:MM`` string (``time`` objects pass through)."""
    if isinstance(value, time):
        return value
    hours, _, minutes = value.strip().partition(":")
    return time(int(hours), int(minutes or 0))


def minutes_of_day(value: Union[str, time]) -> int:
    parsed = parse_time_of_day(value)
    return parsed.hour * 60 + parsed.minute


def normalize_category(category: Optional[str]) -> str:
    """Map unknown or empty labels to the uncategorized fallback."""
    if category in CATEGORIES:
        return category
    return UNCATEGORIZED


@dataclass
class Task:
    """A unit of work to plan, as held by the task store."""

    name: str
    duration: int
    category: str
    due_date: date
    fixed_time: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[int] = None
    workspace: str = ""
    created_at: Optional[str] = None

    def is_anchor(self) -> bool:
        """Return True when the task must start at its fixed time."""
        return bool(self.fixed_time)

    def fixed_minutes(self) -> int:
        return minutes_of_day(self.fixed_time or "00:00")


@dataclass
class ScheduleBlock:
    """One task placed on the day's timeline."""

    task: str
    category: str
    duration: int
    start: datetime
    end: datetime
    is_fixed: bool = False
    original_fixed_time: Optional[str] = None
    notes: Optional[str] = None
    completed: bool = False
    task_id: Optional[int] = None

    def fixed_minutes(self) -> int:
        return minutes_of_day(self.original_fixed_time or "00:00")
