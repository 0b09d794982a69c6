"""Notification orchestration service.

Entry point for creating and managing notifications. Every use case reads
and writes the record inside a repository transaction so status checks
and the writes that depend on them cannot interleave with a worker.

Creation is two-phase: the record is committed as CREATED, the delivery
job is enqueued, then the record moves to QUEUED with the job id in its
metadata. When the enqueue fails the record is left CREATED without a
job; this is reported (log, event, metric) and the queue error is raised
so callers can react. ``find_stale_created`` lists such records.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from infrastructure.configuration import NotificationFeatureSettings
from infrastructure.events import EventDispatcher
from infrastructure.logging import get_module_logger
from infrastructure.metrics import MetricsRecorder
from infrastructure.queue import QueueOperationError
from modules.notifications.domain import events
from modules.notifications.domain.enums import NotificationPriority, NotificationStatus
from modules.notifications.domain.errors import (
    NotificationImmutableError,
    NotificationNotFoundError,
    RetryNotAllowedError,
)
from modules.notifications.domain.models import Notification, utcnow
from modules.notifications.domain.state_machine import assert_transition
from modules.notifications.producer import NotificationProducer
from modules.notifications.repository.base import NotificationRepository
from modules.notifications.schemas import (
    CreateNotificationRequest,
    UpdateNotificationRequest,
)
from modules.notifications.validation import NotificationValidator

logger = get_module_logger()


@dataclass
class OrchestrationConfig:
    """Limits applied by the orchestration service.

    Attributes:
        max_retries: Manual retries are refused once ``retry_count`` reaches this
        stale_batch_size: Upper bound on records returned by ``find_stale_created``
    """

    max_retries: int = 3
    stale_batch_size: int = 100

    def __post_init__(self) -> None:
        if not 1 <= self.max_retries <= 10:
            raise ValueError("max_retries must be between 1 and 10")

    @classmethod
    def from_settings(cls, settings: NotificationFeatureSettings) -> "OrchestrationConfig":
        return cls(max_retries=settings.max_retries, stale_batch_size=settings.pending_batch_size)


class NotificationOrchestrationService:
    """Create, update, cancel, retry and confirm notifications.

    Args:
        repository: Notification store
        producer: Enqueues delivery jobs
        validator: Channel aware field validation
        events: Event dispatcher (best-effort publishing)
        metrics: Metrics recorder
        config: OrchestrationConfig
        clock: Source of the current UTC time, injectable for tests
    """

    def __init__(
        self,
        repository: NotificationRepository,
        producer: NotificationProducer,
        validator: Optional[NotificationValidator] = None,
        events: Optional[EventDispatcher] = None,
        metrics: Optional[MetricsRecorder] = None,
        config: Optional[OrchestrationConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.producer = producer
        self.validator = validator or NotificationValidator()
        self.events = events or EventDispatcher()
        self.metrics = metrics or MetricsRecorder()
        self.config = config or OrchestrationConfig()
        self._clock = clock or utcnow

    def create(self, request: CreateNotificationRequest) -> Notification:
        """Validate, persist and enqueue a new notification.

        Raises:
            ValidationFailedError: Nothing was persisted or enqueued
            QueueOperationError: The record exists as CREATED without a job
        """
        self.validator.validate(request.channel, request.recipient, request.content, request.subject)

        now = self._clock()
        notification = Notification(
            channel=request.channel,
            recipient=request.recipient,
            subject=request.subject,
            content=request.content,
            priority=request.priority,
            scheduled_for=request.scheduled_for,
            metadata=dict(request.metadata),
            created_at=now,
            updated_at=now,
        )
        with self.repository.transaction() as uow:
            uow.add(notification)

        logger.info(
            "notification_created",
            notification_id=notification.id,
            channel=notification.channel.value,
            priority=notification.priority.value,
            scheduled_for=notification.scheduled_for.isoformat()
            if notification.scheduled_for
            else None,
        )
        self.metrics.record_notification_created(
            notification.channel.value, notification.priority.value
        )
        self.events.publish(
            events.notification_event(
                events.NOTIFICATION_CREATED,
                notification,
                priority=notification.priority.value,
            )
        )

        try:
            job_id = self.producer.enqueue(
                notification.id,
                notification.priority,
                scheduled_for=notification.scheduled_for,
                metadata=notification.metadata,
                channel=notification.channel,
            )
        except QueueOperationError as e:
            self._report_queue_inconsistency(notification, e)
            raise

        with self.repository.transaction() as uow:
            notification = uow.get(notification.id)
            notification.mark_queued(job_id, self._clock())
            uow.save(notification)

        logger.info("notification_queued", notification_id=notification.id, job_id=job_id)
        self.events.publish(
            events.notification_event(events.NOTIFICATION_QUEUED, notification, jobId=job_id)
        )
        return notification

    def update(
        self,
        notification_id: str,
        request: Union[UpdateNotificationRequest, Dict[str, Any]],
    ) -> Notification:
        """Edit a notification that has not been sent.

        Changing ``scheduled_for`` replaces the delivery job.

        Raises:
            NotificationNotFoundError: Unknown id
            NotificationImmutableError: Already SENT or DELIVERED
            ValidationFailedError: The merged record is invalid
            InvalidStateTransitionError: Rescheduling while PROCESSING
        """
        if isinstance(request, UpdateNotificationRequest):
            changes = request.changes()
        else:
            changes = UpdateNotificationRequest(**request).changes()

        with self.repository.transaction() as uow:
            notification = self._get_for_update(uow, notification_id)
            if notification.is_immutable:
                raise NotificationImmutableError(notification.id, notification.status)

            now = self._clock()
            previous_job_id = notification.job_id
            updated_fields = notification.apply_changes(changes, now)
            self.validator.validate_notification(notification)

            if "scheduled_for" in updated_fields:
                self._reschedule(notification, previous_job_id, now)
            uow.save(notification)

        logger.info(
            "notification_updated",
            notification_id=notification.id,
            updated_fields=updated_fields,
        )
        self.events.publish(
            events.notification_event(
                events.NOTIFICATION_UPDATED, notification, updatedFields=updated_fields
            )
        )
        return notification

    def _reschedule(
        self, notification: Notification, previous_job_id: Optional[str], now: datetime
    ) -> None:
        if notification.status != NotificationStatus.QUEUED:
            assert_transition(notification.status, NotificationStatus.QUEUED, notification.id)

        self.producer.remove_job(notification.id, previous_job_id)
        try:
            job_id = self.producer.enqueue(
                notification.id,
                notification.priority,
                scheduled_for=notification.scheduled_for,
                metadata={**notification.metadata, "rescheduled": True},
                channel=notification.channel,
            )
        except QueueOperationError as e:
            self._report_queue_inconsistency(notification, e)
            raise
        notification.mark_queued(job_id, now)
        logger.info(
            "notification_rescheduled",
            notification_id=notification.id,
            previous_job_id=previous_job_id,
            job_id=job_id,
        )

    def cancel(self, notification_id: str, reason: Optional[str] = None) -> Notification:
        """Cancel a CREATED or QUEUED notification.

        The pending job is removed on a best-effort basis; a failed removal
        is logged and the worker skips cancelled records anyway.
        """
        with self.repository.transaction() as uow:
            notification = self._get_for_update(uow, notification_id)
            now = self._clock()
            notification.transition_to(NotificationStatus.CANCELLED, now)
            notification.enrich_metadata(
                {"cancellationReason": reason, "cancelledAt": now.isoformat()}, now
            )
            uow.save(notification)

        job_removed = False
        try:
            job_removed = self.producer.remove_job(notification.id, notification.job_id)
        except QueueOperationError as e:
            logger.warning(
                "notification_job_removal_failed",
                notification_id=notification.id,
                job_id=notification.job_id,
                error=str(e),
            )

        logger.info(
            "notification_cancelled",
            notification_id=notification.id,
            reason=reason,
            job_removed=job_removed,
        )
        self.events.publish(
            events.notification_event(
                events.NOTIFICATION_CANCELLED,
                notification,
                reason=reason,
                jobRemoved=job_removed,
            )
        )
        return notification

    def retry(self, notification_id: str) -> Notification:
        """Re-enqueue a FAILED notification at HIGH priority.

        Raises:
            RetryNotAllowedError: Not FAILED, or the retry budget is spent.
                The record is left untouched.
        """
        with self.repository.transaction() as uow:
            notification = self._get_for_update(uow, notification_id)
            if notification.status != NotificationStatus.FAILED:
                raise RetryNotAllowedError(
                    notification.id, f"status is {notification.status.value}, expected failed"
                )
            if notification.retry_count >= self.config.max_retries:
                raise RetryNotAllowedError(
                    notification.id,
                    f"retry limit reached ({notification.retry_count}/{self.config.max_retries})",
                )

            retry_attempt = notification.retry_count + 1
            job_id = self.producer.enqueue(
                notification.id,
                NotificationPriority.HIGH,
                metadata={**notification.metadata, "retryAttempt": retry_attempt},
                channel=notification.channel,
            )
            notification.mark_queued(job_id, self._clock())
            uow.save(notification)

        logger.info(
            "notification_retried",
            notification_id=notification.id,
            job_id=job_id,
            retry_attempt=retry_attempt,
        )
        self.events.publish(
            events.notification_event(
                events.NOTIFICATION_RETRIED,
                notification,
                jobId=job_id,
                retryAttempt=retry_attempt,
            )
        )
        return notification

    def confirm_delivery(
        self,
        notification_id: str,
        delivered_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """Record a transport delivery receipt (SENT -> DELIVERED).

        Repeated confirmations only merge metadata; ``delivered_at`` keeps
        its first value.
        """
        with self.repository.transaction() as uow:
            notification = self._get_for_update(uow, notification_id)
            now = self._clock()
            already_delivered = notification.status == NotificationStatus.DELIVERED
            if not already_delivered:
                notification.mark_delivered(delivered_at, now)
            notification.enrich_metadata(metadata or {}, now)
            uow.save(notification)

        if already_delivered:
            logger.info("notification_delivery_reconfirmed", notification_id=notification.id)
            return notification

        logger.info(
            "notification_delivered",
            notification_id=notification.id,
            delivered_at=notification.delivered_at.isoformat(),
        )
        self.metrics.record_notification_delivered(notification.channel.value)
        self.events.publish(
            events.notification_event(
                events.NOTIFICATION_DELIVERED,
                notification,
                deliveredAt=notification.delivered_at.isoformat(),
            )
        )
        return notification

    def find_stale_created(self, older_than: timedelta = timedelta(minutes=5)) -> List[Notification]:
        """CREATED records older than ``older_than``: enqueue never completed."""
        cutoff = self._clock() - older_than
        return self.repository.find_by_status(
            [NotificationStatus.CREATED],
            limit=self.config.stale_batch_size,
            older_than=cutoff,
        )

    def _get_for_update(self, uow, notification_id: str) -> Notification:
        notification = uow.get(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    def _report_queue_inconsistency(self, notification: Notification, error: Exception) -> None:
        logger.error(
            "notification_queue_inconsistency",
            notification_id=notification.id,
            channel=notification.channel.value,
            status=notification.status.value,
            error=str(error),
        )
        self.metrics.record_queue_inconsistency(notification.channel.value)
        self.events.publish(
            events.notification_event(
                events.QUEUE_INCONSISTENCY,
                notification,
                error=str(error),
            )
        )
