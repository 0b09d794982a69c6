"""Job queue factory."""

from typing import Optional

from infrastructure.configuration import QueueSettings
from infrastructure.logging import get_module_logger
from infrastructure.persistence import Database
from infrastructure.queue.sql_store import SqlJobQueue
from infrastructure.queue.store import InMemoryJobQueue, JobQueue

logger = get_module_logger()


def create_job_queue(
    settings: QueueSettings, database: Optional[Database] = None
) -> JobQueue:
    """Create the JobQueue selected by ``QUEUE_BACKEND``.

    Args:
        settings: Queue settings
        database: Required for the 'sql' backend

    Raises:
        ValueError: Unknown backend, or 'sql' without a database
    """
    backend = settings.backend.lower()
    if backend == "memory":
        queue: JobQueue = InMemoryJobQueue(name=settings.name)
    elif backend == "sql":
        if database is None:
            raise ValueError("The 'sql' queue backend requires a Database")
        queue = SqlJobQueue(database, name=settings.name)
    else:
        raise ValueError(f"Unknown queue backend: {settings.backend}")

    logger.info("initialized_job_queue", backend=backend, queue=settings.name)
    return queue
