from datetime import date

import pytest
from PyQt6.QtWidgets import QApplication

from day_planner import alerts as alerts_module
from day_planner.models import Task
from day_planner.scheduler import generate_schedule
from day_planner.session import SessionRunner, SessionState, format_timer_display


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _schedule():
    tasks = [
        Task(name="Inbox", duration=1, category="Admin", due_date=date(2025, 3, 3)),
        Task(name="Report", duration=30, category="Admin", due_date=date(2025, 3, 3)),
        Task(name="Calls", duration=10, category="Prospecting", due_date=date(2025, 3, 3)),
    ]
    return generate_schedule(tasks, "09:00", date(2025, 3, 3))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def alerts() -> list:
    return []


@pytest.fixture
def runner(qapp: QApplication, clock: FakeClock, alerts: list):
    session = SessionRunner(clock=clock, alert=lambda: alerts.append(clock.now))
    session.load(_schedule())
    yield session
    session.close()


def test_loaded_session_is_idle(runner: SessionRunner) -> None:
    assert runner.state is SessionState.IDLE
    assert runner.current_index is None
    assert runner.remaining_seconds is None
    assert runner.running is False


def test_start_arms_countdown(runner: SessionRunner, clock: FakeClock) -> None:
    runner.start(1)

    assert runner.state is SessionState.ACTIVE
    assert runner.current_index == 1
    assert runner.remaining_seconds == 30 * 60
    assert runner.planned_end == clock.now + 30 * 60
    assert runner.current_block.task == "Report"
    assert runner.ticking is True


def test_countdown_reaches_zero_despite_missed_ticks(runner: SessionRunner, clock: FakeClock, alerts: list) -> None:
    finished = []
    runner.block_finished.connect(finished.append)
    runner.start(0)

    clock.advance(61)
    runner.refresh()

    assert runner.remaining_seconds == 0
    assert runner.running is False
    assert runner.planned_end is None
    assert runner.state is SessionState.PAUSED
    assert runner.ticking is False
    assert alerts == [clock.now]
    assert finished == [0]


def test_countdown_rounds_partial_seconds_up(runner: SessionRunner, clock: FakeClock) -> None:
    ticks = []
    runner.tick.connect(ticks.append)
    runner.start(0)

    clock.advance(10.4)
    runner.refresh()

    assert runner.remaining_seconds == 50
    assert ticks == [60, 50]


def test_pause_freezes_remaining_time(runner: SessionRunner, clock: FakeClock) -> None:
    runner.start(1)
    clock.advance(20)

    runner.pause()
    clock.advance(500)
    runner.refresh()

    assert runner.state is SessionState.PAUSED
    assert runner.ticking is False
    assert runner.remaining_seconds == 30 * 60 - 20
    assert runner.planned_end is None


def test_resume_counts_down_from_frozen_value(runner: SessionRunner, clock: FakeClock) -> None:
    runner.start(1)
    clock.advance(20)
    runner.pause()
    clock.advance(300)

    runner.resume()
    clock.advance(15)
    runner.refresh()

    assert runner.running is True
    assert runner.remaining_seconds == 30 * 60 - 35
    assert runner.ticking is True


def test_resume_after_time_is_up_does_nothing(runner: SessionRunner, clock: FakeClock) -> None:
    runner.start(0)
    clock.advance(90)
    runner.refresh()

    runner.resume()

    assert runner.running is False
    assert runner.planned_end is None


def test_pause_when_idle_does_nothing(runner: SessionRunner) -> None:
    runner.pause()

    assert runner.state is SessionState.IDLE


def test_complete_marks_block_and_starts_next(runner: SessionRunner) -> None:
    runner.start(0)

    runner.complete()

    assert runner.schedule[0].completed is True
    assert runner.current_index == 1
    assert runner.remaining_seconds == 30 * 60
    assert runner.running is True


def test_skip_leaves_block_unmarked(runner: SessionRunner) -> None:
    runner.start(0)

    runner.skip()

    assert runner.schedule[0].completed is False
    assert runner.current_index == 1


def test_completing_last_block_returns_to_idle(runner: SessionRunner) -> None:
    runner.start(2)

    runner.complete()

    assert runner.schedule[2].completed is True
    assert runner.state is SessionState.IDLE
    assert runner.current_index is None
    assert runner.remaining_seconds is None
    assert runner.running is False
    assert runner.ticking is False


def test_restart_replaces_previous_deadline(runner: SessionRunner, clock: FakeClock) -> None:
    runner.start(1)
    clock.advance(100)

    runner.start(2)

    assert runner.planned_end == clock.now + 10 * 60
    assert runner.remaining_seconds == 10 * 60
    assert runner.ticking is True


def test_load_resets_session(runner: SessionRunner) -> None:
    runner.start(1)

    runner.load(_schedule())

    assert runner.state is SessionState.IDLE
    assert runner.planned_end is None


def test_start_out_of_range_is_ignored(runner: SessionRunner) -> None:
    runner.start(10)

    assert runner.state is SessionState.IDLE


def test_close_cancels_countdown(runner: SessionRunner) -> None:
    runner.start(1)

    runner.close()

    assert runner.running is False
    assert runner.planned_end is None
    assert runner.ticking is False


def test_format_timer_display() -> None:
    assert format_timer_display(125) == "2:05"
    assert format_timer_display(0) == "0:00"
    assert format_timer_display(3600) == "60:00"


class RecordingTimer:
    scheduled: list = []

    @staticmethod
    def singleShot(delay_ms, callback):
        RecordingTimer.scheduled.append((delay_ms, callback))


@pytest.fixture
def recorded_beeps(monkeypatch):
    RecordingTimer.scheduled = []
    monkeypatch.setattr(alerts_module, "QTimer", RecordingTimer)
    return RecordingTimer.scheduled


def test_play_alert_beeps_three_times_300ms_apart(qapp: QApplication, recorded_beeps: list) -> None:
    alerts_module.play_alert()

    assert [delay for delay, _ in recorded_beeps] == [0, 300, 600]
    assert all(callback == QApplication.beep for _, callback in recorded_beeps)


def test_play_alert_without_application_is_silent(recorded_beeps: list, monkeypatch) -> None:
    class NoApplication:
        @staticmethod
        def instance():
            return None

    monkeypatch.setattr(alerts_module, "QApplication", NoApplication)

    alerts_module.play_alert()

    assert recorded_beeps == []
