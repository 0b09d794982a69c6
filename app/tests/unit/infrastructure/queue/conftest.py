"""Fixtures for infrastructure.queue tests."""

from unittest.mock import MagicMock

import pytest

from infrastructure.queue import InMemoryJobQueue, QueueConfig, SqlJobQueue


@pytest.fixture(params=["memory", "sql"])
def job_queue(request, clock):
    """Every test using this fixture runs against both backends."""
    if request.param == "memory":
        return InMemoryJobQueue(name="notifications", clock=clock)
    database = request.getfixturevalue("sqlite_database")
    return SqlJobQueue(database, name="notifications", clock=clock)


@pytest.fixture
def queue_config():
    return QueueConfig(claim_lease_seconds=60, poll_interval_seconds=0.01, batch_size=10)


@pytest.fixture
def mock_handler():
    return MagicMock()
