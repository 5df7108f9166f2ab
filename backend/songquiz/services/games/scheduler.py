import heapq
import itertools
import logging
import time
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    """A pending delayed callback. Cancelling it guarantees it never runs."""

    def __init__(self, label: str = ''):
        self.label = label
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def _run(self, callback: Callable, args) -> None:
        if self.cancelled:
            logger.debug(f"[timer-abort] {self.label} cancelled before firing")
            return
        self.fired = True
        try:
            callback(*args)
        except Exception:
            # One room's broken callback must not take down the worker
            logger.exception(f"[timer-error] {self.label} callback failed")


class SocketIOScheduler:
    """Runs delayed callbacks as Socket.IO background tasks.

    Works for every async_mode Flask-SocketIO supports, since both the task
    and the sleep go through the server's own primitives.
    """

    def __init__(self, socketio):
        self._socketio = socketio

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable, *args, label: str = '') -> TimerHandle:
        handle = TimerHandle(label)

        def _worker():
            if delay > 0:
                self._socketio.sleep(delay)
            handle._run(callback, args)

        self._socketio.start_background_task(_worker)
        return handle


class ManualScheduler:
    """Virtual clock for tests: callbacks only run when ``advance`` moves time past them.

    Never used by ``create_app`` on its own; the test suite passes it in so
    round timers run without real delays.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, TimerHandle, Callable, tuple]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable, *args, label: str = '') -> TimerHandle:
        handle = TimerHandle(label)
        heapq.heappush(self._queue, (self._now + max(0.0, delay), next(self._seq), handle, callback, args))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing everything due in order (including newly scheduled work)."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback, args = heapq.heappop(self._queue)
            self._now = max(self._now, when)
            handle._run(callback, args)
        self._now = target

    def pending(self) -> List[str]:
        return [entry[2].label for entry in sorted(self._queue) if entry[2].pending]
