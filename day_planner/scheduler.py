"""Day planning: pack flexible tasks around fixed-time anchors."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar, Union

from .models import ScheduleBlock, Task, parse_time_of_day

logger = logging.getLogger(__name__)

BUFFER_MINUTES = 5
MIN_GAP_MINUTES = 10

_Item = TypeVar("_Item", Task, ScheduleBlock)


class ScheduleConflictError(ValueError):
    """Raised when fixed-time tasks cannot all start at their fixed times."""


def generate_schedule(
    tasks: Iterable[Task],
    start_time: Union[str, time],
    day: Optional[date] = None,
    *,
    tz: Optional[tzinfo] = None,
) -> List[ScheduleBlock]:
    """Build the day's timetable from ``tasks`` starting at ``start_time``.

    Anchors (tasks with a fixed time) are placed at exactly that time.
    Flexible tasks, ordered by category, fill the gaps in front of each anchor
    when at least ``MIN_GAP_MINUTES`` are free and the task plus its buffer
    fits; whatever does not fit waits for the next gap or the end of the day.
    """
    task_list = list(tasks)
    anchors = sorted((t for t in task_list if t.is_anchor()), key=lambda t: t.fixed_minutes())
    flexible = sorted((t for t in task_list if not t.is_anchor()), key=lambda t: t.category)

    def place(task: Task, start: datetime) -> ScheduleBlock:
        return ScheduleBlock(
            task=task.name,
            category=task.category,
            duration=task.duration,
            start=start,
            end=start + timedelta(minutes=task.duration),
            is_fixed=task.is_anchor(),
            original_fixed_time=task.fixed_time if task.is_anchor() else None,
            notes=task.notes,
            completed=False,
            task_id=task.id,
        )

    blocks = _pack(anchors, flexible, _day_start(start_time, day, tz), place)
    logger.debug("Generated %d blocks (%d fixed)", len(blocks), len(anchors))
    return blocks


def move_block(
    schedule: List[ScheduleBlock],
    from_index: int,
    target_index: int,
    start_time: Union[str, time],
    day: Optional[date] = None,
    *,
    tz: Optional[tzinfo] = None,
) -> List[ScheduleBlock]:
    """Move a flexible block and re-pack the whole schedule.

    Returns ``schedule`` itself when the move is rejected: the block is fixed,
    it is dropped onto its own position, or an index is out of range.
    """
    if from_index == target_index:
        return schedule
    if not (0 <= from_index < len(schedule)) or not (0 <= target_index < len(schedule)):
        return schedule
    dragged = schedule[from_index]
    if dragged.is_fixed:
        logger.debug("Rejected move of fixed block %r", dragged.task)
        return schedule

    reordered = list(schedule)
    reordered.pop(from_index)
    reordered.insert(target_index, dragged)

    fixed = sorted((b for b in reordered if b.is_fixed), key=lambda b: b.fixed_minutes())
    flexible = [b for b in reordered if not b.is_fixed]

    if day is None:
        day = schedule[0].start.date()
    if tz is None:
        tz = schedule[0].start.tzinfo

    def place(block: ScheduleBlock, start: datetime) -> ScheduleBlock:
        return replace(block, start=start, end=start + timedelta(minutes=block.duration))

    return _pack(fixed, flexible, _day_start(start_time, day, tz), place)


def _day_start(start_time: Union[str, time], day: Optional[date], tz: Optional[tzinfo]) -> datetime:
    if day is None:
        day = date.today()
    return datetime.combine(day, parse_time_of_day(start_time), tzinfo=tz)


def _pack(
    anchors: Sequence[_Item],
    flexible: Sequence[_Item],
    cursor: datetime,
    place: Callable[[_Item, datetime], ScheduleBlock],
) -> List[ScheduleBlock]:
    """Merge-walk anchors and flexible items from ``cursor`` onwards."""
    buffer = timedelta(minutes=BUFFER_MINUTES)
    day_start = cursor
    midnight = cursor.replace(hour=0, minute=0, second=0, microsecond=0)
    blocks: List[ScheduleBlock] = []
    previous_anchor_end: Optional[datetime] = None
    flex_index = 0

    for anchor in anchors:
        anchor_start = midnight + timedelta(minutes=anchor.fixed_minutes())
        if anchor_start < day_start:
            raise ScheduleConflictError(
                f"Fixed task {_label(anchor)!r} starts before the workday start {day_start:%H:%M}"
            )
        if previous_anchor_end is not None and anchor_start < previous_anchor_end:
            raise ScheduleConflictError(
                f"Fixed task {_label(anchor)!r} overlaps the previous fixed task"
            )

        gap_minutes = (anchor_start - cursor).total_seconds() / 60
        if gap_minutes >= MIN_GAP_MINUTES:
            while flex_index < len(flexible):
                item = flexible[flex_index]
                if cursor + timedelta(minutes=item.duration) + buffer > anchor_start:
                    break
                block = place(item, cursor)
                blocks.append(block)
                cursor = block.end + buffer
                flex_index += 1

        block = place(anchor, anchor_start)
        blocks.append(block)
        previous_anchor_end = block.end
        cursor = block.end + buffer

    remaining = flexible[flex_index:]
    for position, item in enumerate(remaining):
        block = place(item, cursor)
        blocks.append(block)
        cursor = block.end
        if position < len(remaining) - 1:
            cursor += buffer

    blocks.sort(key=lambda b: b.start)
    return blocks


def _label(item: Union[Task, ScheduleBlock]) -> str:
    return item.name if isinstance(item, Task) else item.task
