"""Domain event types and builders for notifications."""

from typing import Any

from infrastructure.events import Event
from modules.notifications.domain.models import Notification

NOTIFICATION_CREATED = "notification.created"
NOTIFICATION_QUEUED = "notification.queued"
NOTIFICATION_SENT = "notification.sent"
NOTIFICATION_DELIVERED = "notification.delivered"
NOTIFICATION_FAILED = "notification.failed"
NOTIFICATION_CANCELLED = "notification.cancelled"
NOTIFICATION_RETRIED = "notification.retried"
NOTIFICATION_UPDATED = "notification.updated"
BULK_OPERATION_COMPLETED = "notification.bulk_operation_completed"
QUEUE_INCONSISTENCY = "notification.queue_inconsistency"

ALL_NOTIFICATION_EVENTS = (
    NOTIFICATION_CREATED,
    NOTIFICATION_QUEUED,
    NOTIFICATION_SENT,
    NOTIFICATION_DELIVERED,
    NOTIFICATION_FAILED,
    NOTIFICATION_CANCELLED,
    NOTIFICATION_RETRIED,
    NOTIFICATION_UPDATED,
    BULK_OPERATION_COMPLETED,
    QUEUE_INCONSISTENCY,
)


def notification_event(event_type: str, notification: Notification, **fields: Any) -> Event:
    """Build an event about one notification.

    ``metadata`` always carries ``notificationId``, ``channel`` and
    ``status``; ``fields`` are merged on top.
    """
    metadata = {
        "notificationId": notification.id,
        "channel": notification.channel.value,
        "status": notification.status.value,
    }
    metadata.update(fields)
    return Event(event_type=event_type, aggregate_id=notification.id, metadata=metadata)


def bulk_operation_event(operation: str, **fields: Any) -> Event:
    return Event(
        event_type=BULK_OPERATION_COMPLETED,
        aggregate_id=operation,
        metadata={"operation": operation, **fields},
    )
