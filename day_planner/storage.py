"""CSV-backed task store, partitioned by workspace."""
from __future__ import annotations

import csv
import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from .models import Task

logger = logging.getLogger(__name__)

_TASK_HEADER = [
    "id",
    "workspace",
    "name",
    "duration",
    "category",
    "due_date",
    "fixed_time",
    "notes",
    "created_at",
]
_UPDATABLE_FIELDS = {"name", "duration", "category", "due_date", "fixed_time", "notes"}


class StorageError(Exception):
    """Raised when the task store cannot complete an operation."""


def save_tasks(path: Path | str, tasks: Iterable[Task]) -> None:
    """Persist every task to CSV."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(_TASK_HEADER)
        for task in tasks:
            writer.writerow([
                _serialize_optional(task.id),
                task.workspace,
                task.name,
                task.duration,
                task.category,
                task.due_date.isoformat(),
                _serialize_optional(task.fixed_time),
                _serialize_optional(task.notes),
                _serialize_optional(task.created_at),
            ])


def load_tasks(path: Path | str) -> List[Task]:
    """Load all tasks from CSV; a missing file holds no tasks."""
    csv_path = Path(path)
    if not csv_path.exists():
        return []
    with csv_path.open("r", newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle)
        header = next(reader, None)
        if header != _TASK_HEADER:
            raise ValueError("Invalid task CSV: missing task header")

        tasks: List[Task] = []
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            if len(row) < len(_TASK_HEADER):
                raise ValueError(f"Invalid task CSV: short row on line {reader.line_num}")
            id_raw, workspace, name, duration_raw, category, due_raw, fixed_raw, notes_raw, created_raw = row[:9]
            tasks.append(Task(
                id=_parse_optional_int(id_raw),
                workspace=workspace,
                name=name,
                duration=int(duration_raw),
                category=category,
                due_date=date.fromisoformat(due_raw),
                fixed_time=_parse_optional_str(fixed_raw),
                notes=_parse_optional_str(notes_raw),
                created_at=_parse_optional_str(created_raw),
            ))
        return tasks


class CsvTaskStore:
    """Task store over a single CSV file.

    Every operation reads the file, applies the change and writes it back, so
    a failed write leaves the previous content as the source of truth.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def list_by_workspace(self, workspace: str) -> List[Task]:
        tasks = [task for task in self._read() if task.workspace == workspace]
        tasks.sort(key=lambda task: (task.created_at or "", task.id or 0))
        return tasks

    def insert(self, task: Task) -> Task:
        """Store a new task; the store assigns ``id`` and ``created_at``."""
        tasks = self._read()
        next_id = max((t.id or 0 for t in tasks), default=0) + 1
        stored = replace(
            task,
            id=next_id,
            created_at=datetime.now(timezone.utc).isoformat(timespec="microseconds"),
        )
        tasks.append(stored)
        self._write(tasks)
        logger.debug("Inserted task %s into %r", stored.id, stored.workspace)
        return stored

    def update(self, task_id: int, **fields) -> Task:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise StorageError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        tasks = self._read()
        for index, task in enumerate(tasks):
            if task.id == task_id:
                tasks[index] = replace(task, **fields)
                self._write(tasks)
                return tasks[index]
        raise StorageError(f"No task with id {task_id}")

    def delete(self, task_id: int) -> None:
        tasks = self._read()
        kept = [task for task in tasks if task.id != task_id]
        if len(kept) == len(tasks):
            raise StorageError(f"No task with id {task_id}")
        self._write(kept)

    def _read(self) -> List[Task]:
        try:
            return load_tasks(self.path)
        except (OSError, ValueError, csv.Error) as exc:
            raise StorageError(f"Could not read {self.path}: {exc}") from exc

    def _write(self, tasks: List[Task]) -> None:
        try:
            save_tasks(self.path, tasks)
        except OSError as exc:
            raise StorageError(f"Could not write {self.path}: {exc}") from exc


def _serialize_optional(value: Optional[object]) -> str:
    return "" if value is None else str(value)


def _parse_optional_str(value: str) -> Optional[str]:
    return value if value else None


def _parse_optional_int(value: str) -> Optional[int]:
    text = value.strip() if value is not None else ""
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None
