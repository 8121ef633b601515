"""Export helpers for iCalendar and CSV."""
from __future__ import annotations

import csv
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from .models import ScheduleBlock

CSV_HEADERS = ["Start", "End", "Task", "Category", "Duration", "Fixed", "Completed"]
CSV_TIME_FORMAT = "%H:%M"
CSV_YES_MARKER = "X"

ICS_PRODID = "-//Day Planner//EN"
ICS_UID_DOMAIN = "day-planner"
ICS_LINE_END = "\r\n"


def format_ics_datetime(value: datetime) -> str:
    """UTC basic format, e.g. ``20250101T090000Z``. Naive values are local time."""
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def escape_ics_text(value: str) -> str:
    """Escape a TEXT property value (RFC 5545, 3.3.11)."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def schedule_to_ics(schedule: Iterable[ScheduleBlock], *, now: Optional[datetime] = None) -> str:
    """Render the schedule as a VCALENDAR document, one VEVENT per block."""
    stamp_time = now or datetime.now(timezone.utc)
    stamp = format_ics_datetime(stamp_time)
    uid_seed = int(stamp_time.timestamp() * 1000)

    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    for index, block in enumerate(schedule):
        description = f"Category: {block.category}"
        if block.notes:
            description += f"\nNotes: {block.notes}"
        lines.extend([
            "BEGIN:VEVENT",
            f"UID:{uid_seed}-{index}@{ICS_UID_DOMAIN}",
            f"DTSTAMP:{stamp}",
            f"DTSTART:{format_ics_datetime(block.start)}",
            f"DTEND:{format_ics_datetime(block.end)}",
            f"SUMMARY:{escape_ics_text(block.task)}",
            f"DESCRIPTION:{escape_ics_text(description)}",
            f"CATEGORIES:{escape_ics_text(block.category)}",
            "END:VEVENT",
        ])
    lines.append("END:VCALENDAR")
    return ICS_LINE_END.join(lines)


def default_ics_filename(day: date) -> str:
    return f"daily-schedule-{day.isoformat()}.ics"


def export_as_ics(path: Path | str, schedule: Iterable[ScheduleBlock], *, now: Optional[datetime] = None) -> None:
    """Write the schedule as an .ics file calendar apps can import."""
    ics_path = Path(path)
    ics_path.parent.mkdir(parents=True, exist_ok=True)
    ics_path.write_bytes(schedule_to_ics(schedule, now=now).encode("utf-8"))


def export_as_csv(path: Path | str, schedule: Iterable[ScheduleBlock]) -> None:
    """Export a flat CSV listing of the schedule."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_HEADERS)
        for block in schedule:
            writer.writerow([
                block.start.strftime(CSV_TIME_FORMAT),
                block.end.strftime(CSV_TIME_FORMAT),
                block.task,
                block.category,
                block.duration,
                CSV_YES_MARKER if block.is_fixed else "",
                CSV_YES_MARKER if block.completed else "",
            ])
