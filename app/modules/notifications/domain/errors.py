"""Errors for the notifications module.

Use-case errors carry a machine readable ``code`` and a human message and
reach the caller unchanged. Infrastructure failures (store, queue) use the
exceptions in ``infrastructure.persistence`` and ``infrastructure.queue``.
"""

from typing import Any, Dict, List, Optional

from infrastructure.queue.errors import JobNotReadyError


class NotificationError(Exception):
    """Base class for notification business errors."""

    code = "NOTIFICATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationFailedError(NotificationError):
    """One or more fields failed validation. Nothing was persisted or queued.

    Attributes:
        errors: List of ``{"field": ..., "message": ...}`` entries
    """

    code = "VALIDATION_FAILED"

    def __init__(
        self,
        errors: List[Dict[str, str]],
        message: str = "Notification validation failed",
    ):
        super().__init__(message, {"errors": errors})
        self.errors = errors

    def __str__(self) -> str:
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in self.errors)
        return f"{self.message}: {summary}" if summary else self.message


class InvalidStateTransitionError(NotificationError):
    """A status change outside the state machine was attempted."""

    code = "INVALID_STATE_TRANSITION"

    def __init__(self, current, target, notification_id: Optional[str] = None):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(
            f"Cannot transition notification from {current_value} to {target_value}",
            {
                "notification_id": notification_id,
                "current_status": current_value,
                "target_status": target_value,
            },
        )
        self.current = current
        self.target = target


class NotificationImmutableError(NotificationError):
    """The notification was already sent and can no longer be edited."""

    code = "NOTIFICATION_IMMUTABLE"

    def __init__(self, notification_id: str, status):
        status_value = getattr(status, "value", status)
        super().__init__(
            f"Notification {notification_id} is {status_value} and cannot be modified",
            {"notification_id": notification_id, "status": status_value},
        )


class RetryNotAllowedError(NotificationError):
    code = "RETRY_NOT_ALLOWED"

    def __init__(self, notification_id: str, reason: str):
        super().__init__(
            f"Notification {notification_id} cannot be retried: {reason}",
            {"notification_id": notification_id, "reason": reason},
        )


class NotificationNotFoundError(NotificationError):
    code = "NOTIFICATION_NOT_FOUND"

    def __init__(self, notification_id: str):
        super().__init__(
            f"Notification {notification_id} not found",
            {"notification_id": notification_id},
        )


class NotificationNotReadyError(NotificationError, JobNotReadyError):
    """A job reached a worker before its record was marked QUEUED.

    The worker hands the job back without spending an attempt, since the
    enqueue commits before ``create`` marks the record QUEUED.
    """

    code = "NOTIFICATION_NOT_READY"


class DeliveryFailedError(NotificationError):
    """A delivery attempt failed; the queue decides whether to retry."""

    code = "DELIVERY_FAILED"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message, {"error_code": error_code})
        self.error_code = error_code
