"""Fixtures for infrastructure.events tests."""

import pytest

from infrastructure.events import Event, shutdown_event_executor, start_event_executor


@pytest.fixture
def sample_event():
    return Event(
        event_type="notification.sent",
        aggregate_id="n-1",
        metadata={"notificationId": "n-1", "channel": "email"},
    )


@pytest.fixture
def background_executor():
    start_event_executor(max_workers=2)
    yield
    shutdown_event_executor(wait=True)
