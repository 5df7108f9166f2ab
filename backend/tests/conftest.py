import os
import sys
import pytest

# Ensure the backend root (containing the `songquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from songquiz import create_app, socketio
from songquiz.errors import ProviderFailure
from songquiz.models import Player, Room, Track
from songquiz.services.games import ManualScheduler, RoomStateMachine, RoundDurations


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ALLOWED_ORIGINS = ['*']
    SOCKETIO_NAMESPACE = '/'
    START_DELAY_SEC = 0.5
    COUNTDOWN_SEC = 3
    GUESS_WINDOW_SEC = 30
    TIMEOUT_PAUSE_SEC = 5
    WINNER_PAUSE_SEC = 1
    DEFAULT_ROUNDS = 10
    MAX_ROUNDS = 50
    ROOM_IDLE_TTL_SEC = 0
    ROOM_SWEEP_INTERVAL_SEC = 0


SONGS = [
    Track(title='Bohemian Rhapsody (Remastered 2011)', artist='Queen', preview_url='https://audio.test/1.m4a'),
    Track(title='Hey Jude', artist='The Beatles', preview_url='https://audio.test/2.m4a'),
    Track(title='Imagine (feat. Someone)', artist='John Lennon', preview_url='https://audio.test/3.m4a'),
    Track(title='Yesterday', artist='The Beatles', preview_url='https://audio.test/4.m4a'),
]


class FakeProvider:
    """Returns the first ``limit`` canned tracks and records every request."""

    def __init__(self, tracks=None, error=None):
        self.tracks = list(SONGS if tracks is None else tracks)
        self.error = error
        self.calls = []

    def fetch(self, term, limit, language=None, difficulty=None):
        self.calls.append({'term': term, 'limit': limit, 'language': language, 'difficulty': difficulty})
        if self.error:
            raise self.error
        return self.tracks[:limit]


class Recorder:
    """Stands in for the Socket.IO emitter: keeps (event, data, to) tuples."""

    def __init__(self):
        self.events = []

    def __call__(self, event, data=None, to=None):
        self.events.append((event, data, to))

    def names(self):
        return [e[0] for e in self.events]

    def of(self, name):
        return [e for e in self.events if e[0] == name]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def provider():
    return FakeProvider()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def make_room(scheduler, provider, recorder):
    def _make(players=('alice', 'bob'), total_rounds=10, room_id='ROOM1'):
        room = Room(id=room_id, total_rounds=total_rounds)
        for pid in players:
            room.players.append(Player(id=pid, name=pid.capitalize()))
        return RoomStateMachine(room, recorder, provider, scheduler, RoundDurations())
    return _make


@pytest.fixture()
def flask_app(scheduler, provider):
    application = create_app(TestConfig, scheduler=scheduler, provider=provider)
    with application.app_context():
        yield application


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['songquiz']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass


@pytest.fixture()
def failing_provider():
    return FakeProvider(error=ProviderFailure('search unavailable'))
