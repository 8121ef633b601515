import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    """Provide a shared QApplication for tests that drive Qt timers and signals."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(["day-planner-tests"])
    return app
