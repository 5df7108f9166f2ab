import logging
import math
import re
import threading
from typing import Callable, List, Optional

from songquiz.errors import InvalidInput, ProviderFailure, RoomUnavailable
from songquiz.models import ENDED, LOBBY, PLAYING, Player, Room, Track
from .matching import SIMILARITY_THRESHOLD, WORD_OVERLAP_THRESHOLD, matches
from .rounds import RoundTimer

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10
MAX_ROUNDS = 50
DEFAULT_GENRE = 'pop'
DEFAULT_DIFFICULTY = 'hard'

_LEADING_INT = re.compile(r'\s*([+-]?)(\d+)')
# Longer digit runs always clamp to the maximum
_MAX_DIGITS = 9
_HUGE = 10 ** _MAX_DIGITS


def _parse_int(value) -> Optional[int]:
    """Lenient integer parsing: 12, 12.7, "12" and "12 rounds" all give 12."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if math.isinf(value):
            return _HUGE if value > 0 else -_HUGE
        return int(value)
    m = _LEADING_INT.match(str(value))
    if not m:
        return None
    sign, digits = m.groups()
    rounds = _HUGE if len(digits.lstrip('0')) > _MAX_DIGITS else int(digits)
    return -rounds if sign == '-' else rounds


def normalize_rounds(value, default: int = DEFAULT_ROUNDS, maximum: int = MAX_ROUNDS,
                     strict: bool = False) -> int:
    """Turn a requested round count into one in [1, maximum].

    Non-numeric or non-positive input falls back to ``default``; anything
    above ``maximum`` is clamped. With ``strict`` those cases raise
    ``InvalidInput`` instead.
    """
    rounds = _parse_int(value)
    if rounds is None or rounds <= 0:
        if strict:
            raise InvalidInput(f"invalid round count {value!r}")
        rounds = default
    if rounds > maximum:
        if strict:
            raise InvalidInput(f"round count {rounds} exceeds {maximum}")
        rounds = maximum
    return rounds


def build_search_term(genre=None, genres=None, decade=None) -> str:
    active = [g for g in genres if g] if isinstance(genres, (list, tuple)) else []
    if not active and genre:
        active = [genre]
    if not active:
        active = [DEFAULT_GENRE]
    parts = [' '.join(str(g) for g in active)]
    if decade:
        parts.append(str(decade))
    return ' '.join(parts)


def _seconds(value: float):
    return int(value) if float(value).is_integer() else value


class RoomStateMachine:
    """One room's lifecycle: LOBBY -> PLAYING -> ENDED.

    All transitions run under the room lock, whether they come from a
    socket handler or a timer callback. ``emit(event, data, to)`` sends to
    either the room code or a single player id.
    """

    def __init__(self, room: Room, emit: Callable, provider, scheduler, durations,
                 max_rounds: int = MAX_ROUNDS,
                 word_overlap: float = WORD_OVERLAP_THRESHOLD,
                 min_similarity: float = SIMILARITY_THRESHOLD):
        self.room = room
        self.emit = emit
        self.provider = provider
        self.scheduler = scheduler
        self.timer = RoundTimer(scheduler, durations, room_id=room.id)
        self.max_rounds = max_rounds
        self.word_overlap = word_overlap
        self.min_similarity = min_similarity
        self.closed = False
        self._starting = False
        self._lock = threading.RLock()
        self.touch()

    @property
    def id(self) -> str:
        return self.room.id

    def touch(self) -> None:
        self.room.last_activity = self.scheduler.now()

    def snapshot(self) -> dict:
        with self._lock:
            return self.room.to_dict()

    # ---- Lobby ----

    def join(self, player_id: str, name: str) -> Room:
        with self._lock:
            if self.closed or self.room.state != LOBBY:
                raise RoomUnavailable(self.room.id)
            player = self.room.find_player(player_id)
            if player:
                player.name = name or player.name
                player.connected = True
            else:
                self.room.players.append(Player(id=player_id, name=name))
            self.touch()
            logger.info(f"[join] room={self.room.id} player={name} players={len(self.room.players)}")
            self.emit('player_joined', self.room.players_to_list(), to=self.room.id)
            return self.room

    def leave(self, player_id: str) -> None:
        with self._lock:
            player = self.room.find_player(player_id)
            if not player:
                return
            self.touch()
            if self.room.state == LOBBY:
                self.room.players.remove(player)
                logger.info(f"[leave] room={self.room.id} player={player.name} removed from lobby")
                if self.room.players:
                    self.emit('player_joined', self.room.players_to_list(), to=self.room.id)
            else:
                # Scores stand for the rest of the game
                player.connected = False
                logger.info(f"[leave] room={self.room.id} player={player.name} disconnected mid-game")

    def start(self, rounds=None, genre=None, genres=None, decade=None,
              language=None, difficulty=None) -> bool:
        with self._lock:
            if self.closed or self.room.state != LOBBY or not self.room.players or self._starting:
                logger.info(f"[start-skip] room={self.room.id} state={self.room.state} "
                            f"players={len(self.room.players)} starting={self._starting}")
                return False
            total = normalize_rounds(rounds, self.room.total_rounds, self.max_rounds)
            self.room.total_rounds = total
            self._starting = True
            self.touch()

        # The provider request runs outside the lock so guesses/joins elsewhere never wait on it
        term = build_search_term(genre, genres, decade)
        try:
            tracks = self.provider.fetch(term, total, language=language or None,
                                         difficulty=difficulty or DEFAULT_DIFFICULTY)
            if not tracks:
                raise ProviderFailure(f"no tracks found for {term!r}")
        except ProviderFailure as exc:
            logger.warning(f"[start-failed] room={self.room.id} term={term!r} error={exc}")
            with self._lock:
                self._starting = False
            self.emit('error', exc.to_dict(), to=self.room.id)
            return False
        except Exception:
            with self._lock:
                self._starting = False
            raise

        with self._lock:
            self._starting = False
            if self.closed or self.room.state != LOBBY or not self.room.players:
                logger.info(f"[start-skip] room={self.room.id} state={self.room.state} "
                            f"players={len(self.room.players)} after fetch")
                return False
            self._begin_playing(list(tracks)[:total])
            return True

    def _begin_playing(self, tracks: List[Track]) -> None:
        room = self.room
        room.songs = tracks
        room.total_rounds = len(tracks)
        room.state = PLAYING
        room.current_round = 0
        room.current_song = None
        room.round_active = False
        self.touch()
        logger.info(f"[game-start] room={room.id} rounds={room.total_rounds}")
        self.emit('game_started', {'totalRounds': room.total_rounds}, to=room.id)
        self.timer.after_start(self._begin_round)

    # ---- Rounds ----

    def _begin_round(self) -> None:
        with self._lock:
            room = self.room
            if self.closed or room.state != PLAYING or room.round_active:
                return
            if room.current_round >= room.total_rounds:
                self._finish()
                return
            self.emit('start_countdown', {'duration': _seconds(self.timer.durations.countdown)}, to=room.id)
            self.timer.countdown(self._reveal)

    def _reveal(self) -> None:
        with self._lock:
            room = self.room
            if self.closed or room.state != PLAYING or room.round_active:
                return
            track = room.songs[room.current_round]
            room.current_song = track
            room.round_active = True
            room.current_round += 1
            self.touch()
            logger.info(f"[round-reveal] room={room.id} round={room.current_round}/{room.total_rounds}")
            self.emit('new_round', {
                'roundNumber': room.current_round,
                'previewUrl': track.preview_url,
            }, to=room.id)
            self.timer.guess_window(track, self._on_guess_window_elapsed)

    def _on_guess_window_elapsed(self, track: Track) -> None:
        with self._lock:
            room = self.room
            if self.closed or room.state != PLAYING or not room.round_active or room.current_song is not track:
                logger.info(f"[timer-stale] room={room.id} timeout ignored")
                return
            room.round_active = False
            logger.info(f"[round-timeout] room={room.id} round={room.current_round}")
            self.emit('round_timeout', {'song': track.to_dict()}, to=room.id)
            self.timer.after_timeout(self._begin_round)

    def submit_guess(self, player_id: str, guess) -> bool:
        with self._lock:
            room = self.room
            if self.closed or room.state != PLAYING or not room.round_active:
                return False
            player = room.find_player(player_id)
            if player is None:
                return False
            self.touch()
            if not matches(guess, room.current_song.title, self.word_overlap, self.min_similarity):
                self.emit('wrong_guess', None, to=player_id)
                return False

            room.round_active = False
            self.timer.cancel(RoundTimer.TIMEOUT)
            player.score += 1
            logger.info(f"[round-winner] room={room.id} round={room.current_round} player={player.name}")
            self.emit('update_scores', room.players_to_list(), to=room.id)
            self.emit('round_winner', {'player': player.name, 'song': room.current_song.to_dict()}, to=room.id)
            self.timer.after_win(self._begin_round)
            return True

    # ---- Ending ----

    def end_game(self) -> None:
        with self._lock:
            self._finish()

    def _finish(self) -> None:
        room = self.room
        if room.state == ENDED:
            return
        room.state = ENDED
        room.round_active = False
        self.timer.cancel_all()
        self.touch()
        logger.info(f"[finish] room={room.id} finished at round={room.current_round}")
        self.emit('game_over', room.players_to_list(), to=room.id)

    def close(self) -> None:
        with self._lock:
            self.closed = True
            self.timer.cancel_all()

    def is_idle(self, now: float, ttl: float) -> bool:
        with self._lock:
            abandoned = self.room.state == ENDED or not self.room.has_connected_players()
            return abandoned and now - self.room.last_activity >= ttl
