"""Enumerations shared by the notifications module."""

from enum import Enum


class ChannelType(str, Enum):
    """Notification transport category."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    WEBHOOK = "webhook"


class NotificationStatus(str, Enum):
    """Lifecycle status of a notification record.

    See ``modules.notifications.domain.state_machine`` for legal transitions.
    """

    CREATED = "created"
    QUEUED = "queued"
    PROCESSING = "processing"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"


class NotificationPriority(str, Enum):
    """Delivery urgency. Drives queue ordering and the retry budget."""

    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"
