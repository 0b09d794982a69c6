"""Durable job queue.

Provides a priority job queue with delayed jobs, attempt budgets with
exponential backoff, lease-based claims and completed-job retention.

Public API:
    - JobQueue: Storage protocol
    - InMemoryJobQueue / SqlJobQueue: Backends
    - QueueWorker / JobHandler: Processing loop and handler protocol
    - Job, JobOptions, JobState: Models
    - QueueOperationError, UnrecoverableJobError, JobNotReadyError: Errors
"""

from infrastructure.queue.config import QueueConfig
from infrastructure.queue.errors import (
    JobNotReadyError,
    QueueOperationError,
    UnrecoverableJobError,
)
from infrastructure.queue.factory import create_job_queue
from infrastructure.queue.models import Job, JobOptions, JobState
from infrastructure.queue.sql_store import SqlJobQueue
from infrastructure.queue.store import InMemoryJobQueue, JobQueue
from infrastructure.queue.worker import JobHandler, QueueWorker

__all__ = [
    "Job",
    "JobOptions",
    "JobState",
    "JobQueue",
    "JobHandler",
    "InMemoryJobQueue",
    "SqlJobQueue",
    "QueueConfig",
    "QueueWorker",
    "QueueOperationError",
    "UnrecoverableJobError",
    "JobNotReadyError",
    "create_job_queue",
]
