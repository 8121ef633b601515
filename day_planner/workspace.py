"""Passcode gate mapping to workspace identifiers."""
from __future__ import annotations

from typing import Mapping, Optional

from . import config


def resolve_workspace(passcode: str, table: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the workspace a passcode unlocks, or None when it is unknown."""
    lookup = config.WORKSPACES if table is None else table
    return lookup.get(passcode.strip())
