"""Owner loop on top of the Qt event loop."""

from __future__ import annotations

import time
from typing import Callable, Set

try:
    from PySide6.QtCore import QObject, QTimer, Signal
except Exception:  # pragma: no cover
    QObject = object  # type: ignore
    QTimer = None  # type: ignore
    Signal = None  # type: ignore


if Signal is not None:

    class _Bridge(QObject):
        posted = Signal(object)

else:  # pragma: no cover
    _Bridge = None  # type: ignore


class QtTimerHandle:
    def __init__(self, timer: "QTimer", owner: "QtEventLoop") -> None:
        self._timer = timer
        self._owner = owner

    def cancel(self) -> None:
        self._timer.stop()
        self._owner._release(self._timer)


class QtEventLoop:
    """
    Runs callbacks on the thread that owns the QApplication.

    ``call_soon_threadsafe`` goes through a queued signal so worker threads
    (network calls, audio playback, the global key hook) never touch app state
    directly.
    """

    def __init__(self) -> None:
        if QTimer is None or _Bridge is None:
            raise RuntimeError("PySide6 is not installed")
        self._bridge = _Bridge()
        self._bridge.posted.connect(self._run)
        self._timers: Set[QTimer] = set()

    def time(self) -> float:
        return time.monotonic()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)

        def fire() -> None:
            self._release(timer)
            callback()

        timer.timeout.connect(fire)
        self._timers.add(timer)
        timer.start(max(0, int(delay_s * 1000)))
        return QtTimerHandle(timer, self)

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self._bridge.posted.emit(callback)

    def _run(self, callback: Callable[[], None]) -> None:
        callback()

    def _release(self, timer: "QTimer") -> None:
        self._timers.discard(timer)
