"""Game domain services: answer matching, round timers, room lifecycle.

This package contains pure(ish) domain logic that is driven by the socket
handlers, keeping transport concerns separated from core game mechanics.
"""

from .matching import matches, normalize
from .registry import RoomRegistry
from .rooms import RoomStateMachine, build_search_term, normalize_rounds
from .rounds import RoundDurations, RoundTimer
from .scheduler import ManualScheduler, SocketIOScheduler, TimerHandle
