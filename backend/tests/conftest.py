import os
import sys
import random
import pytest

# Ensure the backend root (containing the `whack` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from whack import create_app, socketio
from whack.services.games import GameSession, HighScoreStore, ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    GAME_DEFAULT_DIFFICULTY = 'medium'
    GAME_CLOCK = 'server'
    GAME_SCHEDULER = 'manual'
    GAME_RANDOM_SEED = 7


class HostClockConfig(TestConfig):
    GAME_CLOCK = 'host'


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def session(scheduler):
    return GameSession(scheduler, rng=random.Random(1234))


@pytest.fixture()
def host_session(scheduler):
    """Session whose countdown is pumped by the caller through tick()."""
    return GameSession(scheduler, rng=random.Random(1234), drive_clock=False, high_scores=HighScoreStore())


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def host_clock_app():
    application = create_app(HostClockConfig)
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
