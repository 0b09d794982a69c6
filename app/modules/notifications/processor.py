"""Queue job handler that delivers notifications.

Each job carries ``{"notificationId", "channel", "priority", "metadata"}``.
The processor re-reads the record, moves it through PROCESSING and routes
it to its channel. Outcomes are reported back to the QueueWorker by
raising: UnrecoverableJobError stops further attempts, NotificationNotReadyError
hands the job back unspent, any other exception lets the queue retry with
backoff.
"""

from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from infrastructure.events import EventDispatcher
from infrastructure.logging import bind_notification_context, get_module_logger
from infrastructure.metrics import MetricsRecorder
from infrastructure.queue import Job, UnrecoverableJobError
from modules.notifications.channels.base import ChannelResult
from modules.notifications.channels.registry import ChannelRegistry
from modules.notifications.domain import events
from modules.notifications.domain.enums import NotificationStatus
from modules.notifications.domain.errors import (
    DeliveryFailedError,
    NotificationNotReadyError,
)
from modules.notifications.domain.models import Notification, utcnow
from modules.notifications.repository.base import NotificationRepository

logger = get_module_logger()


def _is_uuid(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True


class NotificationProcessor:
    """Delivers one notification per queue job.

    Args:
        repository: Notification store
        registry: Channel registry used for routing
        events: Event dispatcher for lifecycle events
        metrics: Metrics recorder
        clock: Source of the current UTC time, injectable for tests
    """

    def __init__(
        self,
        repository: NotificationRepository,
        registry: ChannelRegistry,
        events: Optional[EventDispatcher] = None,
        metrics: Optional[MetricsRecorder] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.registry = registry
        self.events = events or EventDispatcher()
        self.metrics = metrics or MetricsRecorder()
        self._clock = clock or utcnow

    def process_job(self, job: Job) -> None:
        notification_id = job.data.get("notificationId")
        if not _is_uuid(notification_id):
            raise UnrecoverableJobError(f"Invalid notificationId in job {job.id}: {notification_id!r}")

        with bind_notification_context(
            notification_id=notification_id,
            job_id=job.id,
            channel=job.data.get("channel"),
        ):
            notification = self._start_processing(notification_id, job)
            if notification is None:
                return

            result = self.registry.route(notification)
            if result.success:
                self._handle_success(notification, result, job)
            else:
                self._handle_failure(notification, result, job)

    def _start_processing(self, notification_id: str, job: Job) -> Optional[Notification]:
        """Move the record to PROCESSING, or return None when there is nothing to do."""
        with self.repository.transaction() as uow:
            notification = uow.get(notification_id)
            if notification is None:
                raise UnrecoverableJobError(f"Notification {notification_id} not found")

            status = notification.status
            if status in (NotificationStatus.SENT, NotificationStatus.DELIVERED):
                logger.info(
                    "notification_already_sent",
                    notification_id=notification_id,
                    status=status.value,
                )
                return None
            if status == NotificationStatus.CANCELLED:
                logger.info("notification_cancelled_skipped", notification_id=notification_id)
                return None
            if status == NotificationStatus.PROCESSING:
                # The previous owner's lease expired mid-attempt.
                logger.warning(
                    "notification_processing_resumed",
                    notification_id=notification_id,
                    job_id=job.id,
                )
                return notification
            if status != NotificationStatus.QUEUED:
                raise NotificationNotReadyError(
                    f"Notification {notification_id} is {status.value}, not queued",
                    {"notification_id": notification_id, "status": status.value},
                )

            notification.transition_to(NotificationStatus.PROCESSING, self._clock())
            uow.save(notification)

        logger.info(
            "notification_processing",
            notification_id=notification_id,
            attempt=job.attempts_made + 1,
            max_attempts=job.max_attempts,
        )
        return notification

    def _handle_success(self, notification: Notification, result: ChannelResult, job: Job) -> None:
        attempts = job.attempts_made + 1
        with self.repository.transaction() as uow:
            current = uow.get(notification.id)
            current.mark_sent(result.message_id, result.duration_ms, attempts, self._clock())
            if result.delivered_at is not None:
                current.mark_delivered(result.delivered_at, self._clock())
            uow.save(current)

        logger.info(
            "notification_sent",
            notification_id=current.id,
            channel=current.channel.value,
            message_id=result.message_id,
            attempts=attempts,
            duration_ms=round(result.duration_ms, 2),
        )
        self.metrics.record_notification_sent(current.channel.value, result.duration_ms)
        self.events.publish(
            events.notification_event(
                events.NOTIFICATION_SENT,
                current,
                messageId=result.message_id,
                attempts=attempts,
                deliveryTimeMs=round(result.duration_ms, 2),
            )
        )
        if current.status == NotificationStatus.DELIVERED:
            self.metrics.record_notification_delivered(current.channel.value)
            self.events.publish(
                events.notification_event(
                    events.NOTIFICATION_DELIVERED,
                    current,
                    deliveredAt=current.delivered_at.isoformat(),
                )
            )

    def _handle_failure(self, notification: Notification, result: ChannelResult, job: Job) -> None:
        final = not result.retryable or job.is_final_attempt
        error = result.error or "Delivery failed"

        with self.repository.transaction() as uow:
            current = uow.get(notification.id)
            now = self._clock()
            current.record_failure(error, now)
            current.transition_to(NotificationStatus.FAILED, now)
            if not final:
                current.transition_to(NotificationStatus.QUEUED, now)
            uow.save(current)

        logger.warning(
            "notification_delivery_failed",
            notification_id=current.id,
            channel=current.channel.value,
            error=error,
            error_code=result.error_code,
            retryable=result.retryable,
            will_retry=not final,
            retry_count=current.retry_count,
        )
        if final:
            self.metrics.record_notification_failed(
                current.channel.value, result.error_code or "UNKNOWN"
            )
        self.events.publish(
            events.notification_event(
                events.NOTIFICATION_FAILED,
                current,
                error=error,
                errorCode=result.error_code,
                retryCount=current.retry_count,
                willRetry=not final,
            )
        )

        if not result.retryable:
            raise UnrecoverableJobError(error)
        raise DeliveryFailedError(error, result.error_code)
