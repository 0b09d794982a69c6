"""Event handlers for notification lifecycle events.

Writes one structured audit line per event. Handlers are registered
explicitly at startup by ``register_audit_handlers``.
"""

import structlog

from infrastructure.events import Event, register_event_handler
from modules.notifications.domain import events

logger = structlog.get_logger()


class AuditLogHandler:
    """Logs notification events as audit records."""

    def __init__(self):
        self.log = logger.bind(component="notification_audit")

    def handle(self, event: Event) -> None:
        metadata = event.metadata or {}
        log = self.log.bind(
            event_type=event.event_type,
            correlation_id=str(event.correlation_id),
            notification_id=metadata.get("notificationId", event.aggregate_id),
            channel=metadata.get("channel"),
        )
        if event.event_type == events.QUEUE_INCONSISTENCY:
            log.error("notification_audit", error=metadata.get("error"))
        elif event.event_type == events.NOTIFICATION_FAILED and not metadata.get("willRetry"):
            log.warning(
                "notification_audit",
                error=metadata.get("error"),
                error_code=metadata.get("errorCode"),
                retry_count=metadata.get("retryCount"),
            )
        else:
            log.info(
                "notification_audit",
                status=metadata.get("status"),
                timestamp=event.timestamp.isoformat(),
                details={
                    k: v
                    for k, v in metadata.items()
                    if k not in ("notificationId", "channel", "status")
                },
            )


_audit_handler = AuditLogHandler()


def register_audit_handlers() -> None:
    """Subscribe the audit handler to every notification event type."""
    for event_type in events.ALL_NOTIFICATION_EVENTS:
        register_event_handler(event_type)(_audit_handler.handle)
