"""Cancellable timers for session durations and cleanup.

Two schedulers share one interface (``now_ms``, ``call_later``):

- ``BackgroundScheduler`` sleeps in short steps in a Socket.IO background
  task, stops early once cancelled and runs the callback under the arena lock.
- ``ManualScheduler`` keeps a virtual clock that only moves when
  ``advance`` is called, which makes timelines deterministic in tests.
"""

import heapq
import itertools
import time
from typing import Callable, List, Tuple


class TimerHandle:
    def __init__(self, delay_ms: int, deadline_ms: int, label: str = ''):
        self.delay_ms = delay_ms
        self.deadline_ms = deadline_ms
        self.label = label
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self):
        return f"TimerHandle(label={self.label!r}, deadline={self.deadline_ms}, pending={self.pending})"


def _run(handle: TimerHandle, callback: Callable[[], None]) -> None:
    if handle.cancelled or handle.fired:
        return
    handle.fired = True
    callback()


class BackgroundScheduler:
    def __init__(self, socketio, lock, logger=None, poll_sec: float = 0.25):
        self.socketio = socketio
        self.lock = lock
        self.logger = logger
        self.poll_sec = poll_sec

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay_ms: int, callback: Callable[[], None], label: str = '') -> TimerHandle:
        handle = TimerHandle(delay_ms, self.now_ms() + delay_ms, label)

        def _worker():
            # Sleep in short steps so a cancelled timer frees its task early.
            while not handle.cancelled:
                remaining = (handle.deadline_ms - self.now_ms()) / 1000.0
                if remaining <= 0:
                    break
                self.socketio.sleep(min(self.poll_sec, remaining))
            # Cancellation is re-checked under the lock: whoever cancelled us held it too.
            with self.lock:
                if handle.cancelled:
                    if self.logger:
                        self.logger.debug(f"[timer-skip] {label} cancelled")
                    return
                _run(handle, callback)

        self.socketio.start_background_task(_worker)
        return handle


class ManualScheduler:
    def __init__(self, start_ms: int = 0):
        self._now = start_ms
        self._seq = itertools.count()
        self._queue: List[Tuple[int, int, TimerHandle, Callable[[], None]]] = []

    def now_ms(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None], label: str = '') -> TimerHandle:
        handle = TimerHandle(delay_ms, self._now + delay_ms, label)
        heapq.heappush(self._queue, (handle.deadline_ms, next(self._seq), handle, callback))
        return handle

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due timers in deadline order."""
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle, callback = heapq.heappop(self._queue)
            self._now = max(self._now, deadline)
            _run(handle, callback)
        self._now = target

    def pending(self) -> List[TimerHandle]:
        return [entry[2] for entry in sorted(self._queue) if entry[2].pending]
