import logging
import threading
from typing import Callable, Dict, List, Optional

from songquiz.models import Player, Room, generate_room_code
from .rooms import DEFAULT_ROUNDS, MAX_ROUNDS, RoomStateMachine, normalize_rounds
from .rounds import RoundDurations

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Process-wide owner of every room, keyed by room code.

    Collaborators (emit, track provider, scheduler) are injected so rooms
    can be driven by a virtual clock in tests.
    """

    def __init__(self, emit: Callable, provider, scheduler,
                 durations: Optional[RoundDurations] = None,
                 default_rounds: int = DEFAULT_ROUNDS,
                 max_rounds: int = MAX_ROUNDS,
                 idle_ttl: float = 0,
                 sweep_interval: float = 0,
                 room_options: Optional[dict] = None):
        self.emit = emit
        self.provider = provider
        self.scheduler = scheduler
        self.durations = durations or RoundDurations()
        self.default_rounds = default_rounds
        self.max_rounds = max_rounds
        self.idle_ttl = idle_ttl
        self.sweep_interval = sweep_interval
        self.room_options = room_options or {}
        self._rooms: Dict[str, RoomStateMachine] = {}
        # connection id -> room code, so disconnects can find the player's room
        self._sessions: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._sweeper = None

    @classmethod
    def from_config(cls, config, emit: Callable, provider, scheduler) -> 'RoomRegistry':
        return cls(
            emit=emit,
            provider=provider,
            scheduler=scheduler,
            durations=RoundDurations.from_config(config),
            default_rounds=int(config.get('DEFAULT_ROUNDS', DEFAULT_ROUNDS)),
            max_rounds=int(config.get('MAX_ROUNDS', MAX_ROUNDS)),
            idle_ttl=float(config.get('ROOM_IDLE_TTL_SEC', 0)),
            sweep_interval=float(config.get('ROOM_SWEEP_INTERVAL_SEC', 0)),
            room_options={
                'word_overlap': float(config.get('MATCH_WORD_OVERLAP', 0.6)),
                'min_similarity': float(config.get('MATCH_SIMILARITY', 0.7)),
            },
        )

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        return self.get(room_id) is not None

    def create(self, owner_id: str, owner_name: str, total_rounds=None) -> RoomStateMachine:
        rounds = normalize_rounds(total_rounds, self.default_rounds, self.max_rounds)
        with self._lock:
            code = generate_room_code(lambda c: c in self._rooms)
            room = Room(id=code, total_rounds=rounds)
            room.players.append(Player(id=owner_id, name=owner_name))
            machine = RoomStateMachine(
                room, self.emit, self.provider, self.scheduler, self.durations,
                max_rounds=self.max_rounds, **self.room_options
            )
            self._rooms[code] = machine
        logger.info(f"[room-created] room={code} owner={owner_name} rooms={len(self._rooms)}")
        return machine

    def get(self, room_id) -> Optional[RoomStateMachine]:
        if not room_id:
            return None
        return self._rooms.get(str(room_id).strip().upper())

    def remove(self, room_id) -> Optional[RoomStateMachine]:
        with self._lock:
            machine = self._rooms.pop(str(room_id).strip().upper(), None)
        if machine:
            machine.close()
            logger.info(f"[room-removed] room={machine.id}")
        return machine

    def bind_session(self, sid: str, room_id: str) -> None:
        with self._lock:
            self._sessions[sid] = room_id

    def unbind_session(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._sessions.pop(sid, None)

    def session_room(self, sid: str) -> Optional[str]:
        return self._sessions.get(sid)

    def evict_idle(self, now: Optional[float] = None) -> List[str]:
        """Drop rooms that ended or lost every player and saw no activity for ``idle_ttl``."""
        if not self.idle_ttl:
            return []
        now = self.scheduler.now() if now is None else now
        stale = [code for code, machine in list(self._rooms.items()) if machine.is_idle(now, self.idle_ttl)]
        for code in stale:
            self.remove(code)
        if stale:
            logger.info(f"[evict] removed={len(stale)} remaining={len(self._rooms)}")
        return stale

    def start_sweeper(self) -> None:
        if not (self.idle_ttl and self.sweep_interval) or self._sweeper is not None:
            return

        def _sweep():
            try:
                self.evict_idle()
            finally:
                if self._sweeper is not None:
                    self._sweeper = self.scheduler.call_later(self.sweep_interval, _sweep, label='room-sweeper')

        self._sweeper = self.scheduler.call_later(self.sweep_interval, _sweep, label='room-sweeper')

    def stop_sweeper(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None
