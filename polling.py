"""Fixed-interval capture-and-classify ticker with at most one cycle in flight."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from interfaces import EventLoop, TimerHandle

logger = logging.getLogger(__name__)

DoneCallback = Callable[[], None]
TickCallback = Callable[[DoneCallback], None]


class PollingScheduler:
    def __init__(self, loop: EventLoop) -> None:
        self._loop = loop
        self._interval_s = 0.0
        self._on_tick: Optional[TickCallback] = None
        self._timer: Optional[TimerHandle] = None
        self._run_id = 0
        self._outstanding = False
        self.ticks_started = 0
        self.ticks_skipped = 0

    @property
    def running(self) -> bool:
        return self._on_tick is not None

    @property
    def outstanding(self) -> bool:
        return self._outstanding

    def start(self, interval_s: float, on_tick: TickCallback) -> None:
        if interval_s <= 0:
            raise ValueError("interval must be positive")
        self.stop()
        self._run_id += 1
        self._interval_s = interval_s
        self._on_tick = on_tick
        self.ticks_started = 0
        self.ticks_skipped = 0
        self._schedule()

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._on_tick = None
        self._outstanding = False

    def _schedule(self) -> None:
        self._timer = self._loop.call_later(self._interval_s, self._fire)

    def _fire(self) -> None:
        self._timer = None
        on_tick = self._on_tick
        if on_tick is None:
            return
        self._schedule()
        if self._outstanding:
            self.ticks_skipped += 1
            logger.debug("Previous check still in flight, skipping tick")
            return

        self._outstanding = True
        self.ticks_started += 1
        run_id = self._run_id
        fired = False

        def done() -> None:
            nonlocal fired
            if fired or run_id != self._run_id:
                return
            fired = True
            self._outstanding = False

        try:
            on_tick(done)
        except Exception:
            logger.exception("Poll tick failed")
            done()
