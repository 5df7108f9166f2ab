from dataclasses import dataclass, field
from typing import Callable, List, Optional
import string
import random

LOBBY = 'LOBBY'
PLAYING = 'PLAYING'
ENDED = 'ENDED'


@dataclass(frozen=True, eq=False)
class Track:
    # eq=False keeps identity comparison: a round is keyed by its Track object
    title: str
    artist: str
    preview_url: str
    artwork: Optional[str] = None

    def to_dict(self):
        return {
            'title': self.title,
            'artist': self.artist,
            'previewUrl': self.preview_url,
            'artwork': self.artwork,
        }


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    connected: bool = True

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
        }


@dataclass
class Room:
    id: str
    players: List[Player] = field(default_factory=list)
    state: str = LOBBY  # LOBBY, PLAYING, ENDED
    current_round: int = 0
    total_rounds: int = 10
    songs: List[Track] = field(default_factory=list)
    current_song: Optional[Track] = None
    round_active: bool = False
    last_activity: float = 0.0

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def has_connected_players(self) -> bool:
        return any(p.connected for p in self.players)

    def players_to_list(self):
        return [p.to_dict() for p in self.players]

    def to_dict(self):
        # Never leak the answer while players are still guessing
        song = None
        if self.current_song is not None and not self.round_active:
            song = self.current_song.to_dict()
        return {
            'id': self.id,
            'players': self.players_to_list(),
            'state': self.state,
            'currentRound': self.current_round,
            'totalRounds': self.total_rounds,
            'currentSong': song,
            'roundActive': self.round_active,
        }


def generate_room_code(is_taken: Callable[[str], bool], length: int = 5) -> str:
    """Generate a short room code that ``is_taken`` does not already know."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not is_taken(code):
            return code
