"""Deferred-callback primitives used to drive the step loop.

A scheduler only has to do two things: run a callback after a zero-or-positive
delay (in milliseconds) and let the caller cancel it before it fires.
"""

from __future__ import annotations

import asyncio
import heapq
import logging
import threading
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class ScheduledCall(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: float, callback: Callback) -> ScheduledCall:
        ...


class _ManualCall:
    __slots__ = ("due", "seq", "callback", "delay_ms", "cancelled")

    def __init__(self, due: float, seq: int, callback: Callback, delay_ms: float) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.delay_ms = delay_ms
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "_ManualCall") -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class ManualScheduler:
    """Deterministic virtual-time scheduler.

    Nothing runs until the owner calls ``run_next`` or ``run_until_idle``;
    each fired callback moves the virtual clock (``now``, in ms) to its due
    time.  Used by tests and by single-stepping front-ends.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[_ManualCall] = []
        self._seq = 0
        self.delays: List[float] = []

    def call_later(self, delay_ms: float, callback: Callback) -> _ManualCall:
        delay = max(0.0, float(delay_ms))
        call = _ManualCall(self.now + delay, self._seq, callback, delay)
        self._seq += 1
        self.delays.append(delay)
        heapq.heappush(self._queue, call)
        return call

    @property
    def pending(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)

    def _pop_live(self) -> Optional[_ManualCall]:
        while self._queue:
            call = heapq.heappop(self._queue)
            if not call.cancelled:
                return call
        return None

    def run_next(self) -> bool:
        """Fire the earliest pending callback; False when nothing is queued."""
        call = self._pop_live()
        if call is None:
            return False
        self.now = max(self.now, call.due)
        call.callback()
        return True

    def run_until_idle(self, limit: Optional[int] = None) -> int:
        fired = 0
        while limit is None or fired < limit:
            if not self.run_next():
                break
            fired += 1
        return fired


class AsyncioScheduler:
    """Schedules steps on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: float, callback: Callback) -> asyncio.Handle:
        if delay_ms <= 0:
            return self.loop.call_soon(callback)
        return self.loop.call_later(delay_ms / 1000.0, callback)


class ThreadScheduler:
    """Runs each callback on a daemon ``threading.Timer``.

    Callers must serialize the callbacks themselves; ``Process`` does this
    with its lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: List[threading.Timer] = []

    def call_later(self, delay_ms: float, callback: Callback) -> threading.Timer:
        timer = threading.Timer(max(0.0, delay_ms) / 1000.0, self._fire, args=(callback,))
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()
        return timer

    @staticmethod
    def _fire(callback: Callback) -> None:
        try:
            callback()
        except Exception as exc:
            # The owner logs the traceback; here it only ends the timer thread.
            logger.warning("scheduled callback raised %s: %s", type(exc).__name__, exc)

    def shutdown(self) -> None:
        """Cancel every timer that has not fired yet."""
        with self._lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()


__all__ = [
    "Callback",
    "ScheduledCall",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "ThreadScheduler",
]
