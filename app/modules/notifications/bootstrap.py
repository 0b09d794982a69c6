"""Composition root for the notifications module.

Builds every component once from an explicit Settings object and a static
list of channel transports. Nothing is discovered at runtime.

Usage:
    module = build_notification_module(transports=[SmtpTransport(), SnsTransport()])
    module.orchestration.create(CreateNotificationRequest(...))

    worker = module.create_worker()
    worker.start()
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from infrastructure.cache import Cache
from infrastructure.configuration import Settings
from infrastructure.events import EventDispatcher
from infrastructure.logging import get_module_logger
from infrastructure.metrics import MetricsRecorder
from infrastructure.persistence import Database
from infrastructure.queue import JobQueue, QueueConfig, QueueWorker, create_job_queue
from infrastructure.services import (
    get_cache,
    get_database,
    get_event_dispatcher,
    get_metrics_recorder,
    get_settings,
)
from modules.notifications.bulk import BulkConfig, NotificationBulkService
from modules.notifications.channels.base import ChannelTransport
from modules.notifications.channels.registry import ChannelRegistry, register_transports
from modules.notifications.handlers import register_audit_handlers
from modules.notifications.orchestration import (
    NotificationOrchestrationService,
    OrchestrationConfig,
)
from modules.notifications.processor import NotificationProcessor
from modules.notifications.producer import NotificationProducer, PriorityPolicy
from modules.notifications.query import NotificationQueryService, QueryConfig
from modules.notifications.repository.base import NotificationRepository
from modules.notifications.repository.memory import InMemoryNotificationRepository
from modules.notifications.repository.sql import SqlNotificationRepository
from modules.notifications.validation import NotificationValidator

logger = get_module_logger()


@dataclass
class NotificationModule:
    """Wired notification components sharing one settings object."""

    settings: Settings
    repository: NotificationRepository
    queue: JobQueue
    registry: ChannelRegistry
    producer: NotificationProducer
    processor: NotificationProcessor
    orchestration: NotificationOrchestrationService
    query: NotificationQueryService
    bulk: NotificationBulkService

    def create_worker(self, worker_id: str = "notification-worker-1") -> QueueWorker:
        return QueueWorker(
            self.queue,
            self.processor,
            QueueConfig.from_settings(self.settings.queue),
            worker_id=worker_id,
        )

    def shutdown(self) -> None:
        self.registry.shutdown()


def _needs_database(settings: Settings) -> bool:
    return (
        settings.queue.backend.lower() == "sql"
        or settings.notifications.repository_backend.lower() == "sql"
    )


def create_repository(
    settings: Settings, database: Optional[Database] = None
) -> NotificationRepository:
    backend = settings.notifications.repository_backend.lower()
    if backend == "memory":
        return InMemoryNotificationRepository()
    if backend == "sql":
        if database is None:
            raise ValueError("The 'sql' repository backend requires a Database")
        return SqlNotificationRepository(database)
    raise ValueError(f"Unknown repository backend: {settings.notifications.repository_backend}")


def build_notification_module(
    transports: Iterable[ChannelTransport] = (),
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    events: Optional[EventDispatcher] = None,
    metrics: Optional[MetricsRecorder] = None,
    cache: Optional[Cache] = None,
) -> NotificationModule:
    """Build the notifications module.

    Args:
        transports: Channel transports, registered in order
        settings: Defaults to the process settings singleton
        database: Required when a SQL backend is configured; defaults to
            the process database singleton
        events / metrics / cache: Override the process singletons
    """
    settings = settings or get_settings()
    events = events or get_event_dispatcher()
    metrics = metrics or get_metrics_recorder()
    cache = cache or get_cache()

    if _needs_database(settings):
        database = database or get_database()
        database.create_all()

    repository = create_repository(settings, database)
    queue = create_job_queue(settings.queue, database)

    registry = register_transports(
        ChannelRegistry(
            metrics=metrics,
            send_timeout_seconds=settings.notifications.send_timeout_seconds,
        ),
        transports,
    )
    producer = NotificationProducer(queue, PriorityPolicy.from_settings(settings.queue))
    processor = NotificationProcessor(repository, registry, events=events, metrics=metrics)
    orchestration = NotificationOrchestrationService(
        repository,
        producer,
        validator=NotificationValidator(),
        events=events,
        metrics=metrics,
        config=OrchestrationConfig.from_settings(settings.notifications),
    )
    query = NotificationQueryService(
        repository, cache=cache, config=QueryConfig.from_settings(settings.notifications)
    )
    bulk = NotificationBulkService(
        orchestration,
        repository,
        events=events,
        metrics=metrics,
        cache=cache,
        config=BulkConfig.from_settings(settings.bulk),
    )
    register_audit_handlers()

    logger.info(
        "notification_module_initialized",
        repository_backend=settings.notifications.repository_backend,
        queue_backend=settings.queue.backend,
        channels=[c.value for c in registry.registered_channels()],
    )
    return NotificationModule(
        settings=settings,
        repository=repository,
        queue=queue,
        registry=registry,
        producer=producer,
        processor=processor,
        orchestration=orchestration,
        query=query,
        bulk=bulk,
    )
