"""Durable job queue interface and in-memory implementation.

The protocol-based design allows several backends (in-memory, SQL) with the
same claim/complete/fail semantics.
"""

import itertools
import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Protocol
from uuid import uuid4

from infrastructure.logging import get_module_logger
from infrastructure.queue.models import Job, JobOptions, JobState, utcnow

logger = get_module_logger()

Clock = Callable[[], datetime]


class JobQueue(Protocol):
    """Storage interface for jobs.

    Implementations must provide atomic claim semantics: a job is owned by
    at most one worker until its lease expires.

    Methods:
        add: Store a new job and return it
        get_job: Fetch a job by id
        remove: Delete a job that has not started yet
        remove_where: Delete every not-yet-started job matching a predicate
        claim_next: Claim the next eligible job by priority and sequence
        complete: Mark a claimed job completed
        fail: Record a failed attempt and reschedule or fail the job
        release: Hand a claimed job back without spending an attempt
        get_counts: Job counts by state
        pause / resume / is_paused: Stop and restart job hand-out
    """

    name: str

    def add(self, data: Dict, options: JobOptions) -> Job:
        ...

    def get_job(self, job_id: str) -> Optional[Job]:
        ...

    def remove(self, job_id: str) -> bool:
        """Remove a WAITING job. Returns False if missing or already started."""
        ...

    def remove_where(self, predicate: Callable[[Job], bool]) -> int:
        """Remove WAITING jobs matching ``predicate``. Returns the count."""
        ...

    def claim_next(self, worker_id: str, lease_seconds: int) -> Optional[Job]:
        """Claim the next eligible job, or None if there is none or paused."""
        ...

    def complete(self, job_id: str, worker_id: Optional[str] = None) -> bool:
        """Mark a job completed.

        With ``worker_id`` the call is ignored unless that worker still holds
        the claim, so a worker whose lease expired cannot settle a job
        another worker has since reclaimed.

        Returns:
            True when the job was completed
        """
        ...

    def fail(
        self,
        job_id: str,
        error: str,
        retryable: bool = True,
        worker_id: Optional[str] = None,
    ) -> Optional[Job]:
        """Record a failed attempt.

        A retryable failure with attempts left puts the job back to WAITING
        with exponential backoff. Otherwise the job becomes FAILED. The
        ``worker_id`` ownership check matches ``complete``.

        Returns:
            The updated job, or None when it no longer exists or is owned
            by another worker
        """
        ...

    def release(
        self, job_id: str, delay_ms: int, worker_id: Optional[str] = None
    ) -> Optional[Job]:
        """Put a claimed job back to WAITING after ``delay_ms``.

        ``attempts_made`` is left unchanged and ``releases`` is incremented.

        Returns:
            The updated job, or None when it no longer exists or is owned
            by another worker
        """
        ...

    def get_counts(self) -> Dict[str, int]:
        ...

    def pause(self) -> None:
        ...

    def resume(self) -> None:
        ...

    def is_paused(self) -> bool:
        ...


def prune_completed(
    completed: List[Job],
    now: datetime,
    max_age_seconds: Optional[int],
    max_count: Optional[int],
) -> List[Job]:
    """Return the completed jobs that fall outside the retention policy."""
    doomed: Dict[str, Job] = {}
    if max_age_seconds is not None:
        cutoff = now - timedelta(seconds=max_age_seconds)
        for job in completed:
            if job.finished_at is not None and job.finished_at < cutoff:
                doomed[job.id] = job
    if max_count is not None:
        newest_first = sorted(
            completed, key=lambda j: (j.finished_at or j.created_at, j.seq), reverse=True
        )
        for job in newest_first[max_count:]:
            doomed[job.id] = job
    return list(doomed.values())


def claim_lost(claimed_by: Optional[str], worker_id: Optional[str]) -> bool:
    """True when ``worker_id`` was given and no longer holds the claim."""
    return worker_id is not None and claimed_by != worker_id


class InMemoryJobQueue:
    """Thread-safe in-process implementation of JobQueue.

    Suitable for single-process deployments, development and tests. Jobs do
    not survive a restart; use SqlJobQueue for durability.

    Args:
        name: Queue name
        clock: Source of the current UTC time, injectable for tests
    """

    def __init__(self, name: str = "notifications", clock: Optional[Clock] = None):
        self.name = name
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._paused = False
        self._clock = clock or utcnow

    def add(self, data: Dict, options: JobOptions) -> Job:
        with self._lock:
            now = self._clock()
            job_id = options.job_id or str(uuid4())
            existing = self._jobs.get(job_id)
            if existing is not None:
                logger.debug("job_already_exists", queue=self.name, job_id=job_id)
                return replace(existing)

            delay = timedelta(milliseconds=options.delay_ms or 0)
            job = Job(
                id=job_id,
                queue_name=self.name,
                data=dict(data),
                priority=options.priority,
                lifo=options.lifo,
                max_attempts=options.attempts,
                backoff_delay_ms=options.backoff_delay_ms,
                timeout_ms=options.timeout_ms,
                seq=next(self._seq),
                available_at=now + delay,
                created_at=now,
                remove_on_complete_age_seconds=options.remove_on_complete_age_seconds,
                remove_on_complete_count=options.remove_on_complete_count,
            )
            self._jobs[job_id] = job

            logger.info(
                "job_added",
                queue=self.name,
                job_id=job_id,
                priority=job.priority,
                delay_ms=options.delay_ms or 0,
                max_attempts=job.max_attempts,
            )
            return replace(job)

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None

    def list_jobs(self, states: Optional[List[JobState]] = None) -> List[Job]:
        with self._lock:
            jobs = [
                replace(j)
                for j in self._jobs.values()
                if states is None or j.state in states
            ]
        return sorted(jobs, key=lambda j: j.seq)

    def remove(self, job_id: str) -> bool:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.state != JobState.WAITING:
                return False
            del self._jobs[job_id]
            logger.info("job_removed", queue=self.name, job_id=job_id)
            return True

    def remove_where(self, predicate: Callable[[Job], bool]) -> int:
        with self._lock:
            matched = [
                job_id
                for job_id, job in self._jobs.items()
                if job.state == JobState.WAITING and predicate(replace(job))
            ]
            for job_id in matched:
                del self._jobs[job_id]
        if matched:
            logger.info("jobs_removed", queue=self.name, count=len(matched))
        return len(matched)

    def claim_next(self, worker_id: str, lease_seconds: int) -> Optional[Job]:
        with self._lock:
            if self._paused:
                return None
            now = self._clock()
            candidates = [j for j in self._jobs.values() if j.is_claimable(now)]
            if not candidates:
                return None

            job = min(candidates, key=lambda j: j.ordering_key)
            if job.state == JobState.ACTIVE:
                logger.warning(
                    "job_stalled_reclaimed",
                    queue=self.name,
                    job_id=job.id,
                    previous_worker=job.claimed_by,
                )
            job.state = JobState.ACTIVE
            job.claimed_by = worker_id
            job.claim_expires_at = now + timedelta(seconds=lease_seconds)
            job.started_at = now

            logger.debug("job_claimed", queue=self.name, job_id=job.id, worker=worker_id)
            return replace(job)

    def complete(self, job_id: str, worker_id: Optional[str] = None) -> bool:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("job_complete_not_found", queue=self.name, job_id=job_id)
                return False
            if claim_lost(job.claimed_by, worker_id):
                logger.warning(
                    "job_claim_lost",
                    queue=self.name,
                    job_id=job_id,
                    worker=worker_id,
                    current_worker=job.claimed_by,
                    operation="complete",
                )
                return False
            now = self._clock()
            job.state = JobState.COMPLETED
            job.finished_at = now
            job.claimed_by = None
            job.claim_expires_at = None

            completed = [j for j in self._jobs.values() if j.state == JobState.COMPLETED]
            for doomed in prune_completed(
                completed,
                now,
                job.remove_on_complete_age_seconds,
                job.remove_on_complete_count,
            ):
                del self._jobs[doomed.id]

            logger.info(
                "job_completed",
                queue=self.name,
                job_id=job_id,
                attempts_made=job.attempts_made,
            )
            return True

    def fail(
        self,
        job_id: str,
        error: str,
        retryable: bool = True,
        worker_id: Optional[str] = None,
    ) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("job_fail_not_found", queue=self.name, job_id=job_id)
                return None
            if claim_lost(job.claimed_by, worker_id):
                logger.warning(
                    "job_claim_lost",
                    queue=self.name,
                    job_id=job_id,
                    worker=worker_id,
                    current_worker=job.claimed_by,
                    operation="fail",
                )
                return None

            now = self._clock()
            job.attempts_made += 1
            job.last_error = error
            job.claimed_by = None
            job.claim_expires_at = None

            if retryable and job.attempts_made < job.max_attempts:
                backoff = job.backoff_for_attempt(job.attempts_made)
                job.state = JobState.WAITING
                job.available_at = now + backoff
                logger.info(
                    "job_retry_scheduled",
                    queue=self.name,
                    job_id=job_id,
                    attempts_made=job.attempts_made,
                    max_attempts=job.max_attempts,
                    backoff_ms=int(backoff.total_seconds() * 1000),
                )
            else:
                job.state = JobState.FAILED
                job.finished_at = now
                logger.warning(
                    "job_failed",
                    queue=self.name,
                    job_id=job_id,
                    attempts_made=job.attempts_made,
                    retryable=retryable,
                    error=error,
                )
            return replace(job)

    def release(
        self, job_id: str, delay_ms: int, worker_id: Optional[str] = None
    ) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("job_release_not_found", queue=self.name, job_id=job_id)
                return None
            if claim_lost(job.claimed_by, worker_id):
                logger.warning(
                    "job_claim_lost",
                    queue=self.name,
                    job_id=job_id,
                    worker=worker_id,
                    current_worker=job.claimed_by,
                    operation="release",
                )
                return None

            job.releases += 1
            job.state = JobState.WAITING
            job.available_at = self._clock() + timedelta(milliseconds=delay_ms)
            job.claimed_by = None
            job.claim_expires_at = None
            logger.info(
                "job_released",
                queue=self.name,
                job_id=job_id,
                releases=job.releases,
                delay_ms=delay_ms,
            )
            return replace(job)

    def get_counts(self) -> Dict[str, int]:
        with self._lock:
            now = self._clock()
            counts = {
                "waiting": 0,
                "delayed": 0,
                "active": 0,
                "completed": 0,
                "failed": 0,
                "paused": 0,
            }
            for job in self._jobs.values():
                if job.state == JobState.WAITING:
                    if job.is_delayed(now):
                        counts["delayed"] += 1
                    elif self._paused:
                        counts["paused"] += 1
                    else:
                        counts["waiting"] += 1
                else:
                    counts[job.state.value] += 1
            return counts

    def pause(self) -> None:
        with self._lock:
            self._paused = True
        logger.info("queue_paused", queue=self.name)

    def resume(self) -> None:
        with self._lock:
            self._paused = False
        logger.info("queue_resumed", queue=self.name)

    def is_paused(self) -> bool:
        with self._lock:
            return self._paused
