"""Notifications module.

Creates, queues, delivers and tracks notifications over pluggable channel
transports.

Public API:
    - build_notification_module: Composition root
    - NotificationOrchestrationService: create / update / cancel / retry
    - NotificationQueryService: lookups, listings, statistics
    - NotificationBulkService / BulkOperationRunner: bulk operations
    - NotificationProducer / NotificationProcessor: queue producer and consumer
    - ChannelRegistry / ChannelTransport / ChannelResult: channel routing
"""

from modules.notifications.bootstrap import NotificationModule, build_notification_module
from modules.notifications.bulk import (
    BulkConfig,
    BulkItemResult,
    BulkOperationResult,
    BulkOperationRunner,
    NotificationBulkService,
)
from modules.notifications.channels import (
    ChannelRegistry,
    ChannelResult,
    ChannelTransport,
    register_transports,
)
from modules.notifications.domain import (
    ChannelType,
    Notification,
    NotificationPriority,
    NotificationStatus,
)
from modules.notifications.orchestration import (
    NotificationOrchestrationService,
    OrchestrationConfig,
)
from modules.notifications.processor import NotificationProcessor
from modules.notifications.producer import NotificationProducer, PriorityPolicy
from modules.notifications.query import NotificationQueryService, QueryConfig
from modules.notifications.schemas import (
    BulkUpdateItem,
    CreateNotificationRequest,
    UpdateNotificationRequest,
)
from modules.notifications.validation import NotificationValidator

__all__ = [
    "NotificationModule",
    "build_notification_module",
    "BulkConfig",
    "BulkItemResult",
    "BulkOperationResult",
    "BulkOperationRunner",
    "NotificationBulkService",
    "ChannelRegistry",
    "ChannelResult",
    "ChannelTransport",
    "register_transports",
    "ChannelType",
    "Notification",
    "NotificationPriority",
    "NotificationStatus",
    "NotificationOrchestrationService",
    "OrchestrationConfig",
    "NotificationProcessor",
    "NotificationProducer",
    "PriorityPolicy",
    "NotificationQueryService",
    "QueryConfig",
    "BulkUpdateItem",
    "CreateNotificationRequest",
    "UpdateNotificationRequest",
    "NotificationValidator",
]
