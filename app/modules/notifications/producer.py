"""Enqueues delivery jobs for notifications.

The priority policy decides each job's queue weight, ordering, attempt
budget and initial backoff:

    HIGH    weight 1   LIFO   5 attempts   1000 ms
    NORMAL  weight 5   FIFO   3 attempts   2000 ms
    LOW     weight 10  FIFO   2 attempts   5000 ms

Backoff doubles on every attempt. Completed jobs are kept for an hour (at
most the 100 most recent); failed jobs are kept for inspection.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from infrastructure.configuration import QueueSettings
from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult, OperationStatus
from infrastructure.queue import JobOptions, JobQueue, QueueOperationError
from modules.notifications.domain.enums import ChannelType, NotificationPriority
from modules.notifications.domain.models import ensure_utc, utcnow

logger = get_module_logger()


@dataclass(frozen=True)
class PriorityTier:
    weight: int
    lifo: bool
    attempts: int
    backoff_ms: int


def _default_tiers() -> Dict[NotificationPriority, PriorityTier]:
    return {
        NotificationPriority.HIGH: PriorityTier(weight=1, lifo=True, attempts=5, backoff_ms=1000),
        NotificationPriority.NORMAL: PriorityTier(weight=5, lifo=False, attempts=3, backoff_ms=2000),
        NotificationPriority.LOW: PriorityTier(weight=10, lifo=False, attempts=2, backoff_ms=5000),
    }


@dataclass
class PriorityPolicy:
    """Job options per notification priority plus retention and timeout.

    Attributes:
        tiers: PriorityTier for each NotificationPriority
        timeout_ms: Per-attempt processing budget stored on the job
        remove_on_complete_age_seconds: Completed job retention by age
        remove_on_complete_count: Completed job retention by count
        max_failed_jobs: Health threshold for failed jobs
        max_waiting_jobs: Health threshold for waiting jobs
    """

    tiers: Dict[NotificationPriority, PriorityTier] = field(default_factory=_default_tiers)
    timeout_ms: int = 30000
    remove_on_complete_age_seconds: int = 3600
    remove_on_complete_count: int = 100
    max_failed_jobs: int = 100
    max_waiting_jobs: int = 1000

    @classmethod
    def from_settings(cls, settings: QueueSettings) -> "PriorityPolicy":
        return cls(
            tiers={
                NotificationPriority.HIGH: PriorityTier(
                    settings.high_weight, True, settings.high_attempts, settings.high_backoff_ms
                ),
                NotificationPriority.NORMAL: PriorityTier(
                    settings.normal_weight,
                    False,
                    settings.normal_attempts,
                    settings.normal_backoff_ms,
                ),
                NotificationPriority.LOW: PriorityTier(
                    settings.low_weight, False, settings.low_attempts, settings.low_backoff_ms
                ),
            },
            timeout_ms=settings.job_timeout_ms,
            remove_on_complete_age_seconds=settings.remove_on_complete_age_seconds,
            remove_on_complete_count=settings.remove_on_complete_count,
            max_failed_jobs=settings.max_failed_jobs,
            max_waiting_jobs=settings.max_waiting_jobs,
        )

    def job_options(
        self, priority: NotificationPriority, delay_ms: Optional[int] = None
    ) -> JobOptions:
        tier = self.tiers[NotificationPriority(priority)]
        return JobOptions(
            priority=tier.weight,
            lifo=tier.lifo,
            delay_ms=delay_ms,
            attempts=tier.attempts,
            backoff_delay_ms=tier.backoff_ms,
            timeout_ms=self.timeout_ms,
            remove_on_complete_age_seconds=self.remove_on_complete_age_seconds,
            remove_on_complete_count=self.remove_on_complete_count,
        )


class NotificationProducer:
    """Puts notification delivery jobs on the work queue.

    Args:
        queue: JobQueue backend
        policy: PriorityPolicy (defaults reproduce the table above)
        clock: Source of the current UTC time, injectable for tests
    """

    def __init__(
        self,
        queue: JobQueue,
        policy: Optional[PriorityPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.queue = queue
        self.policy = policy or PriorityPolicy()
        self._clock = clock or utcnow

    def enqueue(
        self,
        notification_id: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        scheduled_for: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
        channel: Optional[ChannelType] = None,
    ) -> str:
        """Store a delivery job and return its id.

        A delay is only set when ``scheduled_for`` lies in the future.

        Raises:
            QueueOperationError: The queue rejected or failed the write
        """
        priority = NotificationPriority(priority)
        delay_ms = None
        scheduled_for = ensure_utc(scheduled_for)
        if scheduled_for is not None:
            remaining_ms = int((scheduled_for - self._clock()).total_seconds() * 1000)
            if remaining_ms > 0:
                delay_ms = remaining_ms

        data = {
            "notificationId": notification_id,
            "channel": ChannelType(channel).value if channel else None,
            "priority": priority.value,
            "metadata": dict(metadata or {}),
        }
        try:
            job = self.queue.add(data, self.policy.job_options(priority, delay_ms))
        except QueueOperationError as e:
            logger.error(
                "notification_enqueue_failed",
                notification_id=notification_id,
                priority=priority.value,
                error=str(e),
            )
            raise
        except Exception as e:
            logger.error(
                "notification_enqueue_failed",
                notification_id=notification_id,
                priority=priority.value,
                error=str(e),
            )
            raise QueueOperationError(
                f"Failed to enqueue notification {notification_id}",
                e,
                {"notification_id": notification_id},
            ) from e

        logger.info(
            "notification_enqueued",
            notification_id=notification_id,
            job_id=job.id,
            priority=priority.value,
            delay_ms=delay_ms,
        )
        return job.id

    def remove_job(self, notification_id: str, job_id: Optional[str] = None) -> bool:
        """Remove the not-yet-started job of a notification.

        Tries ``job_id`` first, then any waiting job whose payload points at
        the notification. Returns False when nothing was removed, which is
        a normal outcome (the job may already be running or finished).
        """
        try:
            if job_id and self.queue.remove(job_id):
                logger.info("notification_job_removed", notification_id=notification_id, job_id=job_id)
                return True
            removed = self.queue.remove_where(
                lambda job: job.data.get("notificationId") == notification_id
            )
        except QueueOperationError:
            raise
        except Exception as e:
            raise QueueOperationError(
                f"Failed to remove job for notification {notification_id}",
                e,
                {"notification_id": notification_id, "job_id": job_id},
            ) from e

        if removed:
            logger.info(
                "notification_job_removed",
                notification_id=notification_id,
                removed=removed,
            )
        else:
            logger.debug("notification_job_not_found", notification_id=notification_id, job_id=job_id)
        return removed > 0

    def get_queue_stats(self) -> Dict[str, Any]:
        counts = self.queue.get_counts()
        return {
            "name": self.queue.name,
            "paused": self.queue.is_paused(),
            "counts": counts,
            "total": sum(counts.values()),
        }

    def pause_queue(self) -> None:
        self.queue.pause()

    def resume_queue(self) -> None:
        self.queue.resume()

    def get_queue_health(self) -> OperationResult:
        """Report queue health against the policy thresholds."""
        try:
            stats = self.get_queue_stats()
        except Exception as e:  # pylint: disable=broad-except
            logger.error("queue_health_check_failed", error=str(e))
            return OperationResult.transient_error(
                f"Queue unreachable: {e}", "QUEUE_UNREACHABLE"
            )

        issues: List[str] = []
        counts = stats["counts"]
        if stats["paused"]:
            issues.append("Queue is paused")
        if counts.get("failed", 0) > self.policy.max_failed_jobs:
            issues.append(
                f"High number of failed jobs: {counts['failed']} "
                f"(threshold {self.policy.max_failed_jobs})"
            )
        if counts.get("waiting", 0) > self.policy.max_waiting_jobs:
            issues.append(
                f"High number of waiting jobs: {counts['waiting']} "
                f"(threshold {self.policy.max_waiting_jobs})"
            )

        data = {**stats, "healthy": not issues, "issues": issues}
        if issues:
            logger.warning("queue_unhealthy", queue=stats["name"], issues=issues)
            return OperationResult.error(
                OperationStatus.TRANSIENT_ERROR,
                "; ".join(issues),
                "QUEUE_UNHEALTHY",
                data=data,
            )
        return OperationResult.success(data=data, message="healthy")
