"""Job queue worker configuration."""

from dataclasses import dataclass

from infrastructure.configuration import QueueSettings


@dataclass
class QueueConfig:
    """Configuration for queue workers.

    Attributes:
        name: Logical queue name
        claim_lease_seconds: How long a worker owns a claimed job
        poll_interval_seconds: Idle wait between claim attempts
        concurrency: Worker threads started by ``QueueWorker.start``
        batch_size: Jobs handled per ``process_batch`` call
        max_releases: Times a not-ready job is handed back without spending
            an attempt
    """

    name: str = "notifications"
    claim_lease_seconds: int = 300
    poll_interval_seconds: float = 1.0
    concurrency: int = 1
    batch_size: int = 10
    max_releases: int = 10

    def __post_init__(self) -> None:
        if self.claim_lease_seconds < 1:
            raise ValueError("claim_lease_seconds must be at least 1")
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.max_releases < 0:
            raise ValueError("max_releases must not be negative")

    @classmethod
    def from_settings(cls, settings: QueueSettings) -> "QueueConfig":
        return cls(
            name=settings.name,
            claim_lease_seconds=settings.claim_lease_seconds,
            poll_interval_seconds=settings.poll_interval_seconds,
            concurrency=settings.worker_concurrency,
            max_releases=settings.max_releases,
        )
