"""QTimer-backed tick scheduler so countdown ticks land on the GUI thread."""

from __future__ import annotations

from PySide6.QtCore import QObject, QTimer

from quiz_taker.constants.ui_constants import TICK_INTERVAL_MS
from quiz_taker.core.services.countdown_timer import TickCallback


class QtTickScheduler:
    """Drives a ``CountdownTimer`` from the Qt event loop."""

    def __init__(
        self,
        callback: TickCallback,
        parent: QObject | None = None,
        interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        self._callback = callback
        self._timer = QTimer(parent)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._handle_timeout)

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def _handle_timeout(self) -> None:
        if not self._callback():
            self._timer.stop()
