"""Fixtures wiring the notification engine end to end on one manual clock."""

from dataclasses import dataclass
from typing import List

import pytest

from infrastructure.events import Event, EventDispatcher, register_event_handler
from infrastructure.queue import InMemoryJobQueue, QueueConfig, QueueWorker, SqlJobQueue
from modules.notifications.bulk import BulkConfig, NotificationBulkService
from modules.notifications.channels import ChannelRegistry
from modules.notifications.orchestration import NotificationOrchestrationService
from modules.notifications.processor import NotificationProcessor
from modules.notifications.producer import NotificationProducer
from modules.notifications.query import NotificationQueryService
from modules.notifications.repository import (
    InMemoryNotificationRepository,
    SqlNotificationRepository,
)


@dataclass
class Engine:
    orchestration: NotificationOrchestrationService
    query: NotificationQueryService
    bulk: NotificationBulkService
    registry: ChannelRegistry
    queue: object
    worker: QueueWorker
    events: List[Event]

    def drain(self) -> List[str]:
        """Process jobs until none are eligible and return the outcomes."""
        outcomes = []
        while True:
            outcome = self.worker.process_next()
            if outcome is None:
                return outcomes
            outcomes.append(outcome)

    def event_types(self) -> List[str]:
        return [e.event_type for e in self.events]


@pytest.fixture(params=["memory", "sql"])
def engine(request, clock, metrics):
    if request.param == "memory":
        repository = InMemoryNotificationRepository()
        queue = InMemoryJobQueue(clock=clock)
        parallelism = 2
    else:
        database = request.getfixturevalue("sqlite_database")
        repository = SqlNotificationRepository(database)
        queue = SqlJobQueue(database, clock=clock)
        # SQLite allows a single writer
        parallelism = 1

    received: List[Event] = []
    register_event_handler("*")(received.append)
    dispatcher = EventDispatcher()

    registry = ChannelRegistry(metrics=metrics, send_timeout_seconds=5)
    producer = NotificationProducer(queue, clock=clock)
    orchestration = NotificationOrchestrationService(
        repository, producer, events=dispatcher, metrics=metrics, clock=clock
    )
    processor = NotificationProcessor(repository, registry, events=dispatcher, metrics=metrics, clock=clock)
    worker = QueueWorker(queue, processor, QueueConfig(claim_lease_seconds=60, poll_interval_seconds=0.01))

    yield Engine(
        orchestration=orchestration,
        query=NotificationQueryService(repository, clock=clock),
        bulk=NotificationBulkService(
            orchestration,
            repository,
            events=dispatcher,
            metrics=metrics,
            config=BulkConfig(default_batch_size=4, max_parallelism=parallelism),
        ),
        registry=registry,
        queue=queue,
        worker=worker,
        events=received,
    )
    registry.shutdown(wait=False)
