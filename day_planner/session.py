"""Walk through a generated schedule with a countdown per block."""
from __future__ import annotations

import enum
import logging
import math
import time
from typing import Callable, List, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from . import config
from .alerts import play_alert
from .models import ScheduleBlock

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"


def format_timer_display(seconds: int) -> str:
    """Render a countdown as ``m:ss``."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


class SessionRunner(QObject):
    """Execution state machine over one schedule.

    Remaining time is always recomputed from an absolute deadline
    (``planned_end``) rather than decremented, so missed or late ticks never
    accumulate drift. Exactly one cadence timer exists per runner; every
    transition stops it before re-arming.
    """

    tick = pyqtSignal(int)
    state_changed = pyqtSignal()
    block_finished = pyqtSignal(int)

    def __init__(
        self,
        parent: Optional[QObject] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        alert: Callable[[], None] = play_alert,
        interval_ms: int = config.TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._clock = clock
        self._alert = alert
        self.schedule: List[ScheduleBlock] = []
        self.current_index: Optional[int] = None
        self.remaining_seconds: Optional[int] = None
        self.running = False
        self.planned_end: Optional[float] = None
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.refresh)

    @property
    def state(self) -> SessionState:
        if self.current_index is None:
            return SessionState.IDLE
        return SessionState.ACTIVE if self.running else SessionState.PAUSED

    @property
    def ticking(self) -> bool:
        """True while the cadence timer is armed."""
        return self._timer.isActive()

    @property
    def current_block(self) -> Optional[ScheduleBlock]:
        if self.current_index is None:
            return None
        return self.schedule[self.current_index]

    def load(self, schedule: List[ScheduleBlock]) -> None:
        """Adopt a freshly generated schedule and reset the session."""
        self._stop_timer()
        self.schedule = schedule
        self._reset()

    def start(self, index: int) -> None:
        if not (0 <= index < len(self.schedule)):
            logger.warning("Cannot start block %s of %d", index, len(self.schedule))
            return
        self._stop_timer()
        block = self.schedule[index]
        self.current_index = index
        self.planned_end = self._clock() + block.duration * 60
        self.remaining_seconds = block.duration * 60
        self.running = True
        logger.info("Started %r (%d min)", block.task, block.duration)
        self._timer.start()
        self.tick.emit(self.remaining_seconds)
        self.state_changed.emit()

    def refresh(self) -> None:
        """Recompute the countdown from the deadline; the timer's callback."""
        if self.planned_end is None:
            return
        remaining = max(0, math.ceil(self.planned_end - self._clock()))
        self.remaining_seconds = remaining
        self.tick.emit(remaining)
        if remaining > 0:
            return
        self.running = False
        self.planned_end = None
        self._stop_timer()
        logger.info("Time is up for block %s", self.current_index)
        self._alert()
        if self.current_index is not None:
            self.block_finished.emit(self.current_index)
        self.state_changed.emit()

    def pause(self) -> None:
        if not self.running or self.planned_end is None:
            return
        self.remaining_seconds = max(0, math.ceil(self.planned_end - self._clock()))
        self.running = False
        self.planned_end = None
        self._stop_timer()
        logger.info("Paused with %ss left", self.remaining_seconds)
        self.state_changed.emit()

    def resume(self) -> None:
        if self.running or self.current_index is None or not self.remaining_seconds:
            return
        self._stop_timer()
        self.planned_end = self._clock() + self.remaining_seconds
        self.running = True
        self._timer.start()
        logger.info("Resumed with %ss left", self.remaining_seconds)
        self.state_changed.emit()

    def complete(self) -> None:
        """Mark the current block done and move on."""
        if self.current_index is None:
            return
        self.schedule[self.current_index].completed = True
        self._advance()

    def skip(self) -> None:
        """Move on without marking the current block done."""
        if self.current_index is None:
            return
        self._advance()

    def close(self) -> None:
        """Cancel the cadence timer; call when the owner goes away."""
        self._stop_timer()
        self.running = False
        self.planned_end = None

    def _advance(self) -> None:
        self._stop_timer()
        self.planned_end = None
        next_index = self.current_index + 1
        if next_index < len(self.schedule):
            self.start(next_index)
            return
        logger.info("Schedule finished")
        self._reset()

    def _reset(self) -> None:
        self.current_index = None
        self.remaining_seconds = None
        self.running = False
        self.planned_end = None
        self.state_changed.emit()

    def _stop_timer(self) -> None:
        if self._timer.isActive():
            self._timer.stop()
