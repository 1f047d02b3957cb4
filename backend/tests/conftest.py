"""
Pytest fixtures for pocketpos backend tests.

Provides a pure AppState over an in-memory key-value store (engine tests) and
an in-memory Flask app with test client and CLI runner (route/CLI tests).
"""

import copy

import pytest

from pocketpos import create_app
from pocketpos.services.state_service import AppState, get_state
from pocketpos.validation import PersistenceError


class MemoryStore:
    """Key-value store double. Set fail_writes or fail_clear to simulate a broken disk."""

    def __init__(self, data=None):
        self.data = copy.deepcopy(data or {})
        self.fail_writes = False
        self.fail_clear = False
        self.writes = []

    def read(self, key, default=None):
        if key not in self.data:
            return default
        return copy.deepcopy(self.data[key])

    def write_many(self, values):
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.writes.append(sorted(values))
        self.data.update(copy.deepcopy(values))

    def clear(self):
        if self.fail_clear:
            raise PersistenceError("database is locked")
        removed = len(self.data)
        self.data.clear()
        return removed


class RecordingFeedback:
    def __init__(self):
        self.cues = []

    def play(self, cue):
        self.cues.append(cue)


@pytest.fixture(scope='function')
def store():
    return MemoryStore()


@pytest.fixture(scope='function')
def feedback():
    return RecordingFeedback()


@pytest.fixture(scope='function')
def state(store, feedback):
    """Fresh application state with default stores."""
    return AppState(store, feedback=feedback)


@pytest.fixture(scope='function')
def app():
    """Create application for testing; each test gets its own in-memory database."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })
    yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def app_state(app):
    with app.app_context():
        yield get_state()
