import os
import sys
import random
import pytest

# Ensure the backend root (containing the `reaction_game` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from reaction_game import create_app, db, socketio
from reaction_game.services.rounds.best_store import BestTimeStore, MemoryStorage
from reaction_game.services.rounds.machine import RoundMachine
from reaction_game.services.rounds.timers import ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REACTION_MIN_DELAY_MS = 1000
    REACTION_MAX_DELAY_MS = 5000
    REACTION_MAX_VALID_MS = 60000
    REACTION_HISTORY_SIZE = 10
    REACTION_BEST_KEY = 'rg_best_ms_v1'
    REACTION_MANUAL_TIMERS = True


class FakeClock:
    """Monotonic millisecond clock moved by hand."""

    def __init__(self, start=10_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig)
    application.extensions['reaction_clock'] = clock
    with application.app_context():
        # Ensure models are imported so tables are created
        import reaction_game.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def scheduler(flask_app):
    return flask_app.extensions['reaction_scheduler']


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


@pytest.fixture()
def make_machine(clock):
    """Factory for a machine wired to a manual scheduler and in-memory best store."""
    def _make(storage=None, **kwargs):
        events = []
        scheduler = ManualScheduler()
        store = BestTimeStore(storage if storage is not None else MemoryStorage())
        machine = RoundMachine(
            scheduler=scheduler,
            best_store=store,
            emit=lambda event, data: events.append((event, data)),
            clock=clock,
            rng=random.Random(1234),
            **kwargs
        )
        return machine, scheduler, events

    return _make
