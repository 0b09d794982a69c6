"""Notification persistence."""

from modules.notifications.repository.base import (
    SORTABLE_FIELDS,
    NotificationFilter,
    NotificationRepository,
    Page,
    UnitOfWork,
)
from modules.notifications.repository.memory import InMemoryNotificationRepository
from modules.notifications.repository.sql import (
    NotificationRow,
    SqlNotificationRepository,
)

__all__ = [
    "SORTABLE_FIELDS",
    "NotificationFilter",
    "NotificationRepository",
    "Page",
    "UnitOfWork",
    "InMemoryNotificationRepository",
    "SqlNotificationRepository",
    "NotificationRow",
]
