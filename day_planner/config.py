"""Runtime configuration.

Values are read once at import time; override them through environment
variables.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict


def _parse_workspaces(raw: str) -> Dict[str, str]:
    table: Dict[str, str] = {}
    for entry in raw.split(","):
        code, sep, workspace = entry.partition(":")
        if not sep or not code.strip() or not workspace.strip():
            continue
        table[code.strip()] = workspace.strip()
    return table


DATA_DIR: Path = Path(os.environ.get("DAY_PLANNER_DATA_DIR", Path.home() / ".day_planner"))
"""Directory holding the task store."""

TASKS_FILE: Path = DATA_DIR / "tasks.csv"

DEFAULT_START_TIME: str = os.environ.get("DAY_PLANNER_START_TIME", "09:00")
"""Workday start used when the caller does not pick one."""

TICK_INTERVAL_MS: int = int(os.environ.get("DAY_PLANNER_TICK_MS", "100"))
"""Countdown refresh cadence."""

WORKSPACES: Dict[str, str] = _parse_workspaces(
    os.environ.get("DAY_PLANNER_WORKSPACES", "work123:work,personal456:personal")
)
"""Passcode -> workspace identifier."""
