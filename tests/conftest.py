import os

import pytest

from app.core.collector import InteractionCollector
from app.db import DatabaseManager
from app.services.event_store import EventStore

os.environ.setdefault("ENV", "test")

pytest_plugins = [
    "tests.fixtures.event_fixtures",
    "tests.fixtures.chat_fixtures",
]


@pytest.fixture(scope="function")
def db_manager():
    """Fresh in-memory ledger per test."""
    manager = DatabaseManager("sqlite://", auto_create=True).open()
    yield manager
    manager.close()


@pytest.fixture(scope="function")
def db(db_manager):
    with db_manager.db_session() as session:
        yield session


@pytest.fixture(scope="function")
def event_store(db_manager):
    return EventStore(db_manager.session_factory)


@pytest.fixture
def collector():
    return InteractionCollector()
