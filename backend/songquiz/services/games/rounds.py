import logging
from dataclasses import dataclass
from typing import Callable, Dict

from .scheduler import TimerHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundDurations:
    start_delay: float = 0.5
    countdown: float = 3.0
    guess_window: float = 30.0
    timeout_pause: float = 5.0
    winner_pause: float = 1.0

    @classmethod
    def from_config(cls, config) -> 'RoundDurations':
        return cls(
            start_delay=float(config.get('START_DELAY_SEC', 0.5)),
            countdown=float(config.get('COUNTDOWN_SEC', 3)),
            guess_window=float(config.get('GUESS_WINDOW_SEC', 30)),
            timeout_pause=float(config.get('TIMEOUT_PAUSE_SEC', 5)),
            winner_pause=float(config.get('WINNER_PAUSE_SEC', 1)),
        )


class RoundTimer:
    """Named, cancellable timers driving one room through its rounds.

    - ``start``: game_started -> first round
    - ``reveal``: countdown -> song revealed
    - ``timeout``: guess window elapsed
    - ``next``: pause after a win or timeout -> next round
    At most one handle per name is pending; rescheduling a name cancels
    the previous one.
    """

    START = 'start'
    REVEAL = 'reveal'
    TIMEOUT = 'timeout'
    NEXT = 'next'

    def __init__(self, scheduler, durations: RoundDurations, room_id: str = ''):
        self.scheduler = scheduler
        self.durations = durations
        self.room_id = room_id
        self._handles: Dict[str, TimerHandle] = {}

    def _schedule(self, name: str, delay: float, callback: Callable, *args) -> TimerHandle:
        self.cancel(name)
        label = f"room={self.room_id} timer={name}"
        handle = self.scheduler.call_later(delay, callback, *args, label=label)
        self._handles[name] = handle
        logger.debug(f"[timer-set] {label} delay={delay}s")
        return handle

    def after_start(self, callback: Callable) -> TimerHandle:
        return self._schedule(self.START, self.durations.start_delay, callback)

    def countdown(self, callback: Callable) -> TimerHandle:
        return self._schedule(self.REVEAL, self.durations.countdown, callback)

    def guess_window(self, track, callback: Callable) -> TimerHandle:
        return self._schedule(self.TIMEOUT, self.durations.guess_window, callback, track)

    def after_win(self, callback: Callable) -> TimerHandle:
        return self._schedule(self.NEXT, self.durations.winner_pause, callback)

    def after_timeout(self, callback: Callable) -> TimerHandle:
        return self._schedule(self.NEXT, self.durations.timeout_pause, callback)

    def cancel(self, name: str) -> None:
        handle = self._handles.pop(name, None)
        if handle is not None and handle.pending:
            handle.cancel()
            logger.debug(f"[timer-cancel] room={self.room_id} timer={name}")

    def cancel_all(self) -> None:
        for name in list(self._handles):
            self.cancel(name)

    def is_pending(self, name: str) -> bool:
        handle = self._handles.get(name)
        return handle is not None and handle.pending
