"""In-memory view of a workspace's tasks, kept in step with the store."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, time, tzinfo
from typing import Dict, List, Optional, Tuple, Union

from . import config
from .models import ScheduleBlock, Task, normalize_category, parse_time_of_day
from .scheduler import generate_schedule
from .storage import CsvTaskStore, StorageError

logger = logging.getLogger(__name__)

DayGroup = Tuple[date, List[Task]]


class TaskBoard:
    """Local cache of one workspace's tasks.

    Changes are sent to the store first; the cache is only touched once the
    store has accepted them, so a failure leaves it exactly as it was.
    """

    def __init__(self, workspace: str, store: Optional[CsvTaskStore] = None) -> None:
        self.store = store if store is not None else CsvTaskStore(config.TASKS_FILE)
        self.workspace = workspace
        self.tasks: List[Task] = []
        self._day_order: Dict[date, List[int]] = {}

    def load(self) -> List[Task]:
        try:
            tasks = self.store.list_by_workspace(self.workspace)
        except StorageError:
            logger.error("Failed to load tasks for %r", self.workspace, exc_info=True)
            raise
        self.tasks = tasks
        self._day_order.clear()
        return self.tasks

    def add(
        self,
        name: str,
        duration: int,
        category: str,
        due_date: date,
        fixed_time: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Task:
        name = name.strip()
        if not name:
            raise ValueError("Task name is required")
        if int(duration) <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        if not category:
            raise ValueError("Category is required")
        if fixed_time:
            parse_time_of_day(fixed_time)

        draft = Task(
            name=name,
            duration=int(duration),
            category=normalize_category(category),
            due_date=due_date,
            fixed_time=fixed_time or None,
            notes=notes or None,
            workspace=self.workspace,
        )
        try:
            stored = self.store.insert(draft)
        except StorageError:
            logger.error("Failed to add task %r", name, exc_info=True)
            raise
        self.tasks.append(stored)
        if stored.due_date in self._day_order:
            self._day_order[stored.due_date].append(stored.id)
        return stored

    def delete(self, task_id: int) -> None:
        try:
            self.store.delete(task_id)
        except StorageError:
            logger.error("Failed to delete task %s", task_id, exc_info=True)
            raise
        self.tasks = [task for task in self.tasks if task.id != task_id]
        for order in self._day_order.values():
            if task_id in order:
                order.remove(task_id)

    def reschedule(self, task_id: int, new_date: date) -> Task:
        """Move a task to another day; unknown ids never reach the store."""
        index = next((i for i, task in enumerate(self.tasks) if task.id == task_id), None)
        if index is None:
            raise StorageError(f"Task {task_id} is not on this board")
        try:
            self.store.update(task_id, due_date=new_date)
        except StorageError:
            logger.error("Failed to reschedule task %s", task_id, exc_info=True)
            raise
        old_date = self.tasks[index].due_date
        self.tasks[index] = replace(self.tasks[index], due_date=new_date)
        if task_id in self._day_order.get(old_date, []):
            self._day_order[old_date].remove(task_id)
        if new_date in self._day_order:
            self._day_order[new_date].append(task_id)
        return self.tasks[index]

    def tasks_for(self, day: date) -> List[Task]:
        """The day's tasks, in the order the user arranged them."""
        by_id = {task.id: task for task in self.tasks if task.due_date == day}
        order = self._day_order.get(day)
        if order is None:
            return [task for task in self.tasks if task.due_date == day]
        return [by_id[task_id] for task_id in order if task_id in by_id]

    def reorder(self, day: date, dragged_id: int, target_id: int) -> List[Task]:
        """Move ``dragged_id`` to ``target_id``'s place in the day's list."""
        ids = [task.id for task in self.tasks_for(day)]
        if dragged_id == target_id or dragged_id not in ids or target_id not in ids:
            return self.tasks_for(day)
        target_index = ids.index(target_id)
        ids.remove(dragged_id)
        ids.insert(target_index, dragged_id)
        self._day_order[day] = ids
        return self.tasks_for(day)

    def upcoming(self, today: date) -> List[DayGroup]:
        """Tasks due today or later, grouped by date, soonest first."""
        return self._group(lambda due: due >= today, newest_first=False)

    def past(self, today: date) -> List[DayGroup]:
        """Overdue tasks grouped by date, most recent first."""
        return self._group(lambda due: due < today, newest_first=True)

    def total_minutes(self, day: date) -> int:
        return sum(task.duration for task in self.tasks_for(day))

    def generate(
        self,
        day: date,
        start_time: Union[str, time] = config.DEFAULT_START_TIME,
        *,
        tz: Optional[tzinfo] = None,
    ) -> List[ScheduleBlock]:
        return generate_schedule(self.tasks_for(day), start_time, day, tz=tz)

    def _group(self, keep, *, newest_first: bool) -> List[DayGroup]:
        grouped: Dict[date, List[Task]] = {}
        for task in self.tasks:
            if keep(task.due_date):
                grouped.setdefault(task.due_date, []).append(task)
        return sorted(grouped.items(), key=lambda item: item[0], reverse=newest_first)
