import os
import sys
import random
import pytest

# Ensure the backend root (containing the `rps_arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from rps_arena import create_app, socketio
from rps_arena.services.games.computer import SequenceMoveProvider
from rps_arena.services.games.lobby import Lobby
from rps_arena.services.games.registry import ConnectionMapper, RoomRegistry
from rps_arena.services.games.scheduler import ManualScheduler
from rps_arena.services.games.session import GameSession
from rps_arena.services.games.sweeper import LifecycleSweeper


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    HOST = '127.0.0.1'
    PORT = 3000
    CORS_ORIGINS = '*'
    LOG_LEVEL = 'DEBUG'
    MAX_ROUNDS = 5
    NEXT_ROUND_DELAY_SEC = 3
    GRACE_PERIOD_SEC = 300
    ROOM_TTL_SEC = 7200
    SWEEP_INTERVAL_SEC = 3600
    COMPUTER_STRATEGY = 'random'


class RecordingNotifier:
    """Collects outbound events per connection instead of sending them."""

    def __init__(self):
        self.sent = []

    def send(self, sid, event, data):
        self.sent.append((sid, event, data))

    def events(self, sid, name=None):
        return [data for s, event, data in self.sent
                if s == sid and (name is None or event == name)]

    def names(self, sid):
        return [event for s, event, _ in self.sent if s == sid]

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    """Factory for Socket.IO test clients; all are disconnected on teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass


@pytest.fixture()
def scheduler():
    return ManualScheduler(start=1000.0)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def computer_moves():
    """Moves the computer opponent will play, in order; tests may replace them."""
    return ['rock']


@pytest.fixture()
def lobby(notifier, scheduler, computer_moves):
    registry = RoomRegistry(store={}, rng=random.Random(42), clock=scheduler.time, max_rounds=5)
    mapper = ConnectionMapper(store={})
    session = GameSession(notifier, scheduler, next_round_delay=3)
    sweeper = LifecycleSweeper(registry, scheduler, grace_period=300, ttl=7200, sweep_interval=3600)
    sweeper.start()
    return Lobby(registry, mapper, session, sweeper,
                 provider_factory=lambda: SequenceMoveProvider(computer_moves))
