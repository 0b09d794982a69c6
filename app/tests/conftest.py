"""Shared fixtures for the notification engine test suite."""

from unittest.mock import MagicMock

import pytest

from infrastructure.events import EventDispatcher, clear_handlers
from infrastructure.logging import clear_request_context
from infrastructure.metrics import InMemoryMetricsSink, MetricsRecorder
from infrastructure.persistence import Database

# Imported for their table definitions on Base.metadata
import infrastructure.queue.sql_store  # noqa: F401
import modules.notifications.repository.sql  # noqa: F401
from tests.factories.notifications import ManualClock


@pytest.fixture(autouse=True)
def reset_event_handlers():
    """Keep the global handler registry empty between tests."""
    clear_handlers()
    yield
    clear_handlers()


@pytest.fixture(autouse=True)
def reset_log_context():
    clear_request_context()
    yield
    clear_request_context()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def metrics_sink():
    return InMemoryMetricsSink()


@pytest.fixture
def metrics(metrics_sink):
    return MetricsRecorder(metrics_sink)


@pytest.fixture
def mock_events():
    """EventDispatcher double that records published events."""
    return MagicMock(spec=EventDispatcher)


@pytest.fixture
def published(mock_events):
    """Event types published through ``mock_events`` so far."""

    def _published():
        return [c.args[0].event_type for c in mock_events.publish.call_args_list]

    return _published


@pytest.fixture
def sqlite_database(tmp_path):
    """File-backed SQLite database with every table created."""
    database = Database(f"sqlite:///{tmp_path / 'notifications.db'}")
    database.create_all()
    yield database
    database.dispose()
