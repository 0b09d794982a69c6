"""Queue worker and job handler protocol.

The worker owns the mechanics of job processing (claiming, completing,
failing with or without retry); domain logic lives in a JobHandler.
"""

import threading
from typing import List, Optional, Protocol

import structlog

from infrastructure.logging import clear_request_context
from infrastructure.queue.config import QueueConfig
from infrastructure.queue.errors import (
    JobNotReadyError,
    QueueOperationError,
    UnrecoverableJobError,
)
from infrastructure.queue.models import Job, JobState
from infrastructure.queue.store import JobQueue

logger = structlog.get_logger()

COMPLETED = "completed"
RETRIED = "retried"
FAILED = "failed"
RELEASED = "released"


class JobHandler(Protocol):
    """Domain-specific processing of a single job attempt.

    Returning normally completes the job. Raising UnrecoverableJobError fails
    it without retry. Raising JobNotReadyError hands it back for later without
    spending an attempt. Any other exception counts as a failed attempt and the
    queue's backoff policy decides whether it runs again.

    Example:
        class EchoHandler:
            def process_job(self, job: Job) -> None:
                if "message" not in job.data:
                    raise UnrecoverableJobError("message missing")
                print(job.data["message"])
    """

    def process_job(self, job: Job) -> None:
        ...


class QueueWorker:
    """Worker pulling jobs from a JobQueue and delegating to a JobHandler.

    Attributes:
        queue: JobQueue to pull from
        handler: JobHandler with the domain logic
        config: QueueConfig controlling lease, polling and concurrency
        worker_id: Identifier recorded on claimed jobs
    """

    def __init__(
        self,
        queue: JobQueue,
        handler: JobHandler,
        config: QueueConfig | None = None,
        worker_id: str = "queue-worker-1",
    ) -> None:
        self.queue = queue
        self.handler = handler
        self.config = config or QueueConfig()
        self.worker_id = worker_id
        self.log = logger.bind(component="queue_worker", worker_id=worker_id)
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []

    def process_next(self, worker_id: Optional[str] = None) -> Optional[str]:
        """Claim and process one job.

        Returns:
            "completed", "retried", "failed" or "released", or None when
            nothing was eligible.
        """
        owner = worker_id or self.worker_id
        job = self.queue.claim_next(owner, self.config.claim_lease_seconds)
        if job is None:
            return None

        self.log.info(
            "job_processing",
            job_id=job.id,
            attempt=job.attempts_made + 1,
            max_attempts=job.max_attempts,
        )

        try:
            self.handler.process_job(job)
        except UnrecoverableJobError as e:
            self.log.warning("job_unrecoverable", job_id=job.id, error=str(e))
            self.queue.fail(job.id, str(e), retryable=False, worker_id=owner)
            return FAILED
        except JobNotReadyError as e:
            if job.releases < self.config.max_releases:
                self.log.info(
                    "job_not_ready",
                    job_id=job.id,
                    releases=job.releases,
                    delay_ms=e.delay_ms,
                    error=str(e),
                )
                self.queue.release(job.id, e.delay_ms, worker_id=owner)
                return RELEASED
            return self._fail_attempt(job, e, owner)
        except Exception as e:
            return self._fail_attempt(job, e, owner)
        finally:
            clear_request_context()

        self.queue.complete(job.id, worker_id=owner)
        return COMPLETED

    def _fail_attempt(self, job: Job, error: Exception, owner: str) -> str:
        self.log.warning(
            "job_attempt_failed",
            job_id=job.id,
            error=str(error),
            error_type=type(error).__name__,
        )
        updated = self.queue.fail(job.id, str(error), retryable=True, worker_id=owner)
        if updated is not None and updated.state == JobState.WAITING:
            return RETRIED
        return FAILED

    def process_batch(self) -> dict:
        """Process up to ``config.batch_size`` jobs.

        Returns:
            Dictionary with processing statistics:
                - processed: Jobs claimed and handled
                - completed: Jobs that succeeded
                - retried: Jobs rescheduled with backoff
                - failed: Jobs that ended FAILED
                - released: Jobs handed back because they were not ready
        """
        stats = {
            "processed": 0,
            "completed": 0,
            "retried": 0,
            "failed": 0,
            "released": 0,
        }

        for _ in range(self.config.batch_size):
            outcome = self.process_next()
            if outcome is None:
                break
            stats["processed"] += 1
            stats[outcome] += 1

        if stats["processed"]:
            self.log.info("queue_batch_complete", **stats)
        else:
            self.log.debug("queue_batch_no_jobs")
        return stats

    def run(self, stop_event: threading.Event, worker_id: Optional[str] = None) -> None:
        """Process jobs until ``stop_event`` is set.

        Backend failures are logged and retried after the poll interval.
        """
        owner = worker_id or self.worker_id
        self.log.info("queue_worker_started", thread_worker_id=owner)
        while not stop_event.is_set():
            try:
                outcome = self.process_next(owner)
            except QueueOperationError as e:
                self.log.error("queue_worker_backend_error", error=str(e))
                outcome = None
            if outcome is None:
                stop_event.wait(self.config.poll_interval_seconds)
        self.log.info("queue_worker_stopped", thread_worker_id=owner)

    def start(self, concurrency: Optional[int] = None) -> None:
        """Start worker threads, ``config.concurrency`` by default."""
        if self._threads:
            return
        self._stop_event.clear()
        for index in range(concurrency or self.config.concurrency):
            owner = f"{self.worker_id}-{index + 1}"
            thread = threading.Thread(
                target=self.run,
                args=(self._stop_event, owner),
                name=owner,
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal worker threads to stop and wait for them.

        A job already being handled runs to completion first.
        """
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
