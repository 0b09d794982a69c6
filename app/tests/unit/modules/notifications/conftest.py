"""Fixtures for the notifications module unit tests."""

import pytest

from infrastructure.cache import InMemoryCache
from infrastructure.queue import InMemoryJobQueue
from modules.notifications.channels import ChannelRegistry
from modules.notifications.orchestration import NotificationOrchestrationService, OrchestrationConfig
from modules.notifications.producer import NotificationProducer
from modules.notifications.repository import (
    InMemoryNotificationRepository,
    SqlNotificationRepository,
)
from modules.notifications.validation import NotificationValidator
from tests.factories.notifications import FakeTransport


@pytest.fixture
def repository():
    return InMemoryNotificationRepository()


@pytest.fixture(params=["memory", "sql"])
def any_repository(request):
    """Every test using this fixture runs against both backends."""
    if request.param == "memory":
        return InMemoryNotificationRepository()
    return SqlNotificationRepository(request.getfixturevalue("sqlite_database"))


@pytest.fixture
def queue(clock):
    return InMemoryJobQueue(clock=clock)


@pytest.fixture
def producer(queue, clock):
    return NotificationProducer(queue, clock=clock)


@pytest.fixture
def registry(metrics):
    registry = ChannelRegistry(metrics=metrics, send_timeout_seconds=2)
    yield registry
    registry.shutdown(wait=False)


@pytest.fixture
def email_transport(registry):
    transport = FakeTransport()
    registry.register(transport)
    return transport


@pytest.fixture
def orchestration(repository, producer, mock_events, metrics, clock):
    return NotificationOrchestrationService(
        repository=repository,
        producer=producer,
        validator=NotificationValidator(),
        events=mock_events,
        metrics=metrics,
        config=OrchestrationConfig(max_retries=3),
        clock=clock,
    )


@pytest.fixture
def stats_cache():
    return InMemoryCache()
