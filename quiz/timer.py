"""
Tick scheduling for the quiz countdown.

A ticker hands out ``TimerHandle`` objects; a handle keeps firing its
callback once per time unit until it is cancelled. The session holds at
most one live handle and cancels it before acquiring a new one.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TimerHandle:
    """Cancellable registration of a tick callback."""

    __slots__ = ("_callback", "_active", "_on_cancel")

    def __init__(self, callback: TickCallback, on_cancel: Optional[Callable[[TimerHandle], None]] = None):
        self._callback = callback
        self._active = True
        self._on_cancel = on_cancel

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel(self)

    def fire(self) -> None:
        if self._active:
            self._callback()


class Ticker(Protocol):
    def schedule(self, callback: TickCallback) -> TimerHandle: ...


class ManualTicker:
    """
    Ticker driven explicitly by ``advance()``.

    Used by tests and by front ends that convert elapsed wall-clock time
    into ticks on each rerun.
    """

    def __init__(self) -> None:
        self._handles: List[TimerHandle] = []

    def schedule(self, callback: TickCallback) -> TimerHandle:
        handle = TimerHandle(callback, on_cancel=self._forget)
        self._handles.append(handle)
        return handle

    def _forget(self, handle: TimerHandle) -> None:
        if handle in self._handles:
            self._handles.remove(handle)

    @property
    def live_handles(self) -> int:
        return len(self._handles)

    def advance(self, units: int = 1) -> None:
        """Fire every live callback once per elapsed unit."""
        for _ in range(max(0, int(units))):
            for handle in list(self._handles):
                handle.fire()


class ThreadedTicker:
    """
    Ticker backed by one daemon thread per handle.

    Callbacks run on the ticker thread; the receiver must serialize access
    to its own state.
    """

    def __init__(self, interval: float = 1.0):
        self.interval = interval

    def schedule(self, callback: TickCallback) -> TimerHandle:
        stop = threading.Event()
        handle = TimerHandle(callback, on_cancel=lambda _h: stop.set())

        def _run() -> None:
            while not stop.wait(self.interval):
                try:
                    handle.fire()
                except Exception:
                    logger.exception("Tick callback failed; stopping timer")
                    handle.cancel()

        thread = threading.Thread(target=_run, name="quiz-ticker", daemon=True)
        thread.start()
        return handle
