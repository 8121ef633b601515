"""Audible notification for a finished countdown."""
from __future__ import annotations

import logging

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QApplication

logger = logging.getLogger(__name__)

ALERT_PULSES = 3
ALERT_SPACING_MS = 300


def play_alert() -> None:
    """Beep three times, 0.3 s apart. Best effort: silent without a QApplication."""
    if not isinstance(QApplication.instance(), QApplication):
        logger.debug("No QApplication running; skipping audible alert")
        return
    for pulse in range(ALERT_PULSES):
        QTimer.singleShot(pulse * ALERT_SPACING_MS, QApplication.beep)
