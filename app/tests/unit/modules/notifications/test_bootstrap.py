"""Unit tests for the notifications composition root."""

from unittest.mock import MagicMock

import pytest

from infrastructure.cache import InMemoryCache
from infrastructure.configuration import (
    NotificationFeatureSettings,
    QueueSettings,
    Settings,
)
from infrastructure.events import get_registered_events
from infrastructure.queue import InMemoryJobQueue, QueueWorker, SqlJobQueue
from modules.notifications.bootstrap import build_notification_module, create_repository
from modules.notifications.domain import ChannelType
from modules.notifications.repository import (
    InMemoryNotificationRepository,
    SqlNotificationRepository,
)
from tests.factories.notifications import FakeTransport


@pytest.fixture
def collaborators(mock_events, metrics):
    return {"events": mock_events, "metrics": metrics, "cache": InMemoryCache()}


@pytest.mark.unit
class TestBuildNotificationModule:
    def test_memory_backends(self, collaborators):
        module = build_notification_module(
            transports=[FakeTransport(ChannelType.EMAIL), FakeTransport(ChannelType.SMS)],
            settings=Settings(),
            **collaborators,
        )
        try:
            assert isinstance(module.repository, InMemoryNotificationRepository)
            assert isinstance(module.queue, InMemoryJobQueue)
            assert set(module.registry.registered_channels()) == {ChannelType.EMAIL, ChannelType.SMS}
            assert module.orchestration.repository is module.repository
            assert module.bulk.orchestration is module.orchestration
            assert module.query.cache is collaborators["cache"]
        finally:
            module.shutdown()

    def test_sql_backends(self, collaborators, sqlite_database):
        settings = Settings(
            notifications=NotificationFeatureSettings(NOTIFICATIONS_REPOSITORY_BACKEND="sql"),
            queue=QueueSettings(QUEUE_BACKEND="sql"),
        )

        module = build_notification_module(settings=settings, database=sqlite_database, **collaborators)
        try:
            assert isinstance(module.repository, SqlNotificationRepository)
            assert isinstance(module.queue, SqlJobQueue)
            assert module.repository.ping()
        finally:
            module.shutdown()

    def test_settings_reach_components(self, collaborators):
        settings = Settings(notifications=NotificationFeatureSettings(NOTIFICATIONS_MAX_RETRIES=7))

        module = build_notification_module(settings=settings, **collaborators)
        try:
            assert module.orchestration.config.max_retries == 7
        finally:
            module.shutdown()

    def test_registers_audit_handlers(self, collaborators):
        module = build_notification_module(settings=Settings(), **collaborators)
        module.shutdown()

        assert "notification.created" in get_registered_events()

    def test_create_worker(self, collaborators):
        module = build_notification_module(settings=Settings(), **collaborators)
        try:
            worker = module.create_worker("worker-a")

            assert isinstance(worker, QueueWorker)
            assert worker.worker_id == "worker-a"
        finally:
            module.shutdown()


@pytest.mark.unit
class TestCreateRepository:
    def test_sql_requires_database(self):
        settings = Settings(notifications=NotificationFeatureSettings(NOTIFICATIONS_REPOSITORY_BACKEND="sql"))

        with pytest.raises(ValueError):
            create_repository(settings)

    def test_unknown_backend(self):
        settings = Settings(notifications=NotificationFeatureSettings(NOTIFICATIONS_REPOSITORY_BACKEND="redis"))

        with pytest.raises(ValueError, match="redis"):
            create_repository(settings)

    def test_sql_backend(self):
        settings = Settings(notifications=NotificationFeatureSettings(NOTIFICATIONS_REPOSITORY_BACKEND="sql"))

        repository = create_repository(settings, MagicMock())

        assert isinstance(repository, SqlNotificationRepository)
