"""Job queue infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class QueueSettings(InfrastructureSettings):
    """Durable job queue configuration.

    Environment Variables:
        QUEUE_BACKEND: 'memory' (single process) or 'sql' (shared database)
        QUEUE_NAME: Logical queue name (default: notifications)
        QUEUE_CLAIM_LEASE_SECONDS: How long a worker owns a claimed job
        QUEUE_JOB_TIMEOUT_MS: Per-attempt wall clock budget
        QUEUE_REMOVE_ON_COMPLETE_AGE_SECONDS: Retention age of completed jobs
        QUEUE_REMOVE_ON_COMPLETE_COUNT: Number of completed jobs retained
        QUEUE_POLL_INTERVAL_SECONDS: Idle sleep between claim attempts
        QUEUE_WORKER_CONCURRENCY: Worker threads started per process
        QUEUE_MAX_RELEASES: Hand-backs of a not-ready job before it counts
            as a failed attempt

    Priority policy:
        Each priority tier has an ordering weight, an attempt budget and an
        initial backoff. Backoff doubles after every failed attempt.

        =======  ======  ====  ========  =======
        Tier     Weight  LIFO  Attempts  Backoff
        =======  ======  ====  ========  =======
        HIGH     1       yes   5         1000ms
        NORMAL   5       no    3         2000ms
        LOW      10      no    2         5000ms
        =======  ======  ====  ========  =======
    """

    backend: str = Field(
        default="memory",
        alias="QUEUE_BACKEND",
        description="Queue backend: 'memory' or 'sql'",
    )
    name: str = Field(
        default="notifications",
        alias="QUEUE_NAME",
        description="Logical queue name",
    )
    claim_lease_seconds: int = Field(
        default=300,
        alias="QUEUE_CLAIM_LEASE_SECONDS",
        description="Duration a worker holds a claimed job (seconds)",
    )
    job_timeout_ms: int = Field(
        default=30000,
        alias="QUEUE_JOB_TIMEOUT_MS",
        description="Per-attempt timeout (milliseconds)",
    )
    remove_on_complete_age_seconds: int = Field(
        default=3600,
        alias="QUEUE_REMOVE_ON_COMPLETE_AGE_SECONDS",
        description="Completed jobs older than this are pruned (seconds)",
    )
    remove_on_complete_count: int = Field(
        default=100,
        alias="QUEUE_REMOVE_ON_COMPLETE_COUNT",
        description="Number of most recent completed jobs kept",
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        alias="QUEUE_POLL_INTERVAL_SECONDS",
        description="Sleep between polls when the queue is empty (seconds)",
    )
    worker_concurrency: int = Field(
        default=1,
        alias="QUEUE_WORKER_CONCURRENCY",
        description="Number of worker threads per process",
    )
    max_releases: int = Field(
        default=10,
        alias="QUEUE_MAX_RELEASES",
        description="Times a not-ready job is handed back before it counts as a failed attempt",
    )

    high_weight: int = Field(default=1, alias="QUEUE_HIGH_WEIGHT")
    high_attempts: int = Field(default=5, alias="QUEUE_HIGH_ATTEMPTS")
    high_backoff_ms: int = Field(default=1000, alias="QUEUE_HIGH_BACKOFF_MS")
    normal_weight: int = Field(default=5, alias="QUEUE_NORMAL_WEIGHT")
    normal_attempts: int = Field(default=3, alias="QUEUE_NORMAL_ATTEMPTS")
    normal_backoff_ms: int = Field(default=2000, alias="QUEUE_NORMAL_BACKOFF_MS")
    low_weight: int = Field(default=10, alias="QUEUE_LOW_WEIGHT")
    low_attempts: int = Field(default=2, alias="QUEUE_LOW_ATTEMPTS")
    low_backoff_ms: int = Field(default=5000, alias="QUEUE_LOW_BACKOFF_MS")

    max_failed_jobs: int = Field(
        default=100,
        alias="QUEUE_HEALTH_MAX_FAILED_JOBS",
        description="Failed job count above which the queue reports unhealthy",
    )
    max_waiting_jobs: int = Field(
        default=1000,
        alias="QUEUE_HEALTH_MAX_WAITING_JOBS",
        description="Waiting job count above which the queue reports unhealthy",
    )
