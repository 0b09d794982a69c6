"""Job queue models.

A Job is an ephemeral queue entry. Producers describe how it should be
scheduled and retried with JobOptions; the store assigns identity, ordering
sequence and timestamps.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobState(Enum):
    """Lifecycle of a job inside the queue.

    Values:
        WAITING: Stored, eligible once ``available_at`` has passed
        ACTIVE: Claimed by a worker under a lease
        COMPLETED: Handler finished successfully
        FAILED: Attempts exhausted or failure marked unrecoverable
    """

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobOptions:
    """Scheduling and retry options for a new job.

    Attributes:
        priority: Ordering weight, lower values are dequeued first
        lifo: Last-in-first-out among jobs of the same weight
        delay_ms: Hold the job this long before it becomes eligible
        attempts: Total attempts allowed, including the first one
        backoff_delay_ms: Initial retry delay, doubled after every failure
        timeout_ms: Per-attempt wall clock budget advertised to handlers
        remove_on_complete_age_seconds: Prune completed jobs older than this
        remove_on_complete_count: Keep at most this many completed jobs
        job_id: Explicit job identity, generated when omitted
    """

    priority: int = 0
    lifo: bool = False
    delay_ms: Optional[int] = None
    attempts: int = 1
    backoff_delay_ms: int = 0
    timeout_ms: Optional[int] = None
    remove_on_complete_age_seconds: Optional[int] = None
    remove_on_complete_count: Optional[int] = None
    job_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.delay_ms is not None and self.delay_ms < 0:
            raise ValueError("delay_ms must not be negative")
        if self.backoff_delay_ms < 0:
            raise ValueError("backoff_delay_ms must not be negative")


@dataclass
class Job:
    """A queued unit of work.

    Fields:
        id: Unique identifier (assigned by the store unless given in options)
        queue_name: Queue the job belongs to
        data: Handler payload
        priority: Ordering weight (lower first)
        lifo: Newest-first ordering among equal weights
        max_attempts: Attempt budget
        backoff_delay_ms: Initial retry delay
        attempts_made: Failed attempts recorded so far
        releases: Times the job was handed back unstarted without spending an
            attempt
        state: Current JobState
        seq: Monotonic insertion sequence used for FIFO/LIFO ordering
    """

    id: str
    queue_name: str
    data: Dict[str, Any]
    priority: int = 0
    lifo: bool = False
    max_attempts: int = 1
    backoff_delay_ms: int = 0
    timeout_ms: Optional[int] = None
    attempts_made: int = 0
    releases: int = 0
    state: JobState = JobState.WAITING
    seq: int = 0
    available_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    claimed_by: Optional[str] = None
    claim_expires_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    last_error: Optional[str] = None
    remove_on_complete_age_seconds: Optional[int] = None
    remove_on_complete_count: Optional[int] = None

    @property
    def is_final_attempt(self) -> bool:
        """True when a failure of the running attempt exhausts the budget."""
        return self.attempts_made + 1 >= self.max_attempts

    @property
    def ordering_key(self) -> Tuple[int, int]:
        return (self.priority, -self.seq if self.lifo else self.seq)

    def is_delayed(self, now: datetime) -> bool:
        return self.state == JobState.WAITING and self.available_at > now

    def is_claimable(self, now: datetime) -> bool:
        """Waiting and due, or active with an expired lease (stalled)."""
        if self.state == JobState.WAITING:
            return self.available_at <= now
        if self.state == JobState.ACTIVE:
            return self.claim_expires_at is not None and self.claim_expires_at <= now
        return False

    def backoff_for_attempt(self, attempts_made: int) -> timedelta:
        """Exponential backoff after ``attempts_made`` failures."""
        if attempts_made < 1 or self.backoff_delay_ms <= 0:
            return timedelta(0)
        return timedelta(milliseconds=self.backoff_delay_ms * 2 ** (attempts_made - 1))
