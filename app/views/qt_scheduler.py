"""QTimer-based implementation of the core `Scheduler` protocol."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QTimer
from loguru import logger


class _QtTimerHandle:
    """Owns one single-shot QTimer; cancelling stops and releases it."""

    def __init__(self, timer: QTimer) -> None:
        self._timer: QTimer | None = timer

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None

    def _fired(self) -> None:
        if self._timer is not None:
            self._timer.deleteLater()
            self._timer = None


class QtScheduler:
    """Schedules one-shot callbacks on the Qt event loop."""

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _QtTimerHandle:
        """Run `callback` once after `delay_ms` milliseconds."""
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        handle = _QtTimerHandle(timer)

        def _run() -> None:
            handle._fired()  # pylint: disable=protected-access
            try:
                callback()
            except Exception as ex:  # pragma: no cover - Qt slots must not raise
                logger.exception("Scheduled callback failed: {}", ex)

        timer.timeout.connect(_run)
        timer.start(max(0, int(delay_ms)))
        return handle
