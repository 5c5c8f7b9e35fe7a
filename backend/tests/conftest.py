import os
import sys
import pytest

# Ensure the backend root (containing the `trivia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from trivia import create_app, db, socketio
from trivia.services.games.orchestrator import GameOrchestrator
from trivia.services.games.scheduler import TaskScheduler
from trivia.services.games.session import QuestionSnapshot
from trivia.services.games.store import SessionStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ''


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingTransport:
    """Collects emitted events instead of sending them."""

    def __init__(self):
        self.sent = []
        self.closed = []

    def emit(self, event, payload, to):
        self.sent.append((event, payload, to))

    def close_room(self, room):
        self.closed.append(room)

    def to(self, target, event=None):
        return [p for (e, p, t) in self.sent if t == target and (event is None or e == event)]

    def events(self, event):
        return [(p, t) for (e, p, t) in self.sent if e == event]

    def clear(self):
        self.sent.clear()


def make_question(text='Q?', correct='A', difficulty='easy', category='General'):
    return QuestionSnapshot(
        text=text,
        options={'A': 'one', 'B': 'two', 'C': 'three', 'D': 'four'},
        correct_option=correct,
        difficulty=difficulty,
        category=category,
    )


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def scheduler(clock):
    return TaskScheduler(spawn=None, clock=clock)


@pytest.fixture()
def store(scheduler, clock):
    return SessionStore(scheduler=scheduler, clock=clock)


@pytest.fixture()
def questions():
    return [make_question(f'Question {i}', correct='ABCD'[i % 4]) for i in range(3)]


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def question_bank(questions):
    """Question supply stub that records what it was asked for."""
    calls = []

    def supply(difficulty, categories, count):
        calls.append((difficulty, tuple(categories), count))
        return list(questions)[:count]

    supply.calls = calls
    return supply


@pytest.fixture()
def orchestrator(store, question_bank, transport):
    return GameOrchestrator(store=store, question_supply=question_bank, transport=transport, timer_buffer=1)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def seeded(flask_app):
    from trivia.seed import seed_questions
    seed_questions()
    return flask_app


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
