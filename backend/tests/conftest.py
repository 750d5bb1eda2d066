import os
import sys
import pytest

# Ensure the backend root (containing the `audiobattle` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from audiobattle import create_app, socketio
from audiobattle.arena import Arena
from audiobattle.timers import ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SESSION_DURATION_MS = 30000
    CLEANUP_GRACE_MS = 30000
    CHAT_MAX_LENGTH = 200
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/ws'
    MANUAL_TIMERS = True
    LOG_LEVEL = 'DEBUG'


class RecordingEmitter:
    """Collects (to, event, payload) triples instead of sending them."""

    def __init__(self):
        self.sent = []

    def __call__(self, event, payload, to):
        self.sent.append((to, event, payload))

    def events_for(self, player_id, event=None):
        return [
            (ev, payload) for to, ev, payload in self.sent
            if to == player_id and (event is None or ev == event)
        ]

    def payloads(self, player_id, event):
        return [payload for _, payload in self.events_for(player_id, event)]

    def count(self, event):
        return sum(1 for _, ev, _ in self.sent if ev == event)

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def arena(emitter, scheduler):
    return Arena(emitter, scheduler=scheduler, duration_ms=30000, cleanup_grace_ms=30000)


@pytest.fixture()
def connect(arena):
    """Connect players by id and return the list of ids."""
    def _connect(*player_ids):
        for pid in player_ids:
            arena.connect(pid)
        return list(player_ids)
    return _connect


def assert_invariants(arena):
    live = [s for s in arena.sessions if not s.is_finished]
    seen = set()
    for session in live:
        assert len(session.participants) == 2
        assert session.participants[0] != session.participants[1]
        for pid in session.participants:
            assert pid not in seen, f"{pid} is in two live sessions"
            seen.add(pid)
    for pid in arena.queue.snapshot():
        assert pid not in seen, f"{pid} is queued while in a live session"


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
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
