"""Notifications domain: records, status machine, value objects, errors."""

from modules.notifications.domain.enums import (
    ChannelType,
    NotificationPriority,
    NotificationStatus,
)
from modules.notifications.domain.errors import (
    DeliveryFailedError,
    InvalidStateTransitionError,
    NotificationError,
    NotificationImmutableError,
    NotificationNotFoundError,
    NotificationNotReadyError,
    RetryNotAllowedError,
    ValidationFailedError,
)
from modules.notifications.domain.models import Notification, ensure_utc, utcnow
from modules.notifications.domain.state_machine import (
    TRANSITIONS,
    allowed_transitions,
    assert_transition,
    can_transition,
)
from modules.notifications.domain.value_objects import (
    NotificationContent,
    ParseResult,
    Recipient,
)

__all__ = [
    "ChannelType",
    "NotificationPriority",
    "NotificationStatus",
    "Notification",
    "NotificationContent",
    "ParseResult",
    "Recipient",
    "TRANSITIONS",
    "allowed_transitions",
    "assert_transition",
    "can_transition",
    "ensure_utc",
    "utcnow",
    "NotificationError",
    "ValidationFailedError",
    "InvalidStateTransitionError",
    "NotificationImmutableError",
    "RetryNotAllowedError",
    "NotificationNotFoundError",
    "NotificationNotReadyError",
    "DeliveryFailedError",
]
