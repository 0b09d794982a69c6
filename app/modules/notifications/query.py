"""Read side: lookups, filtered listings and aggregate statistics."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from infrastructure.cache import Cache, InMemoryCache
from infrastructure.configuration import NotificationFeatureSettings
from infrastructure.logging import get_module_logger
from modules.notifications.domain.enums import NotificationStatus
from modules.notifications.domain.errors import NotificationNotFoundError
from modules.notifications.domain.models import Notification, utcnow
from modules.notifications.repository.base import (
    NotificationFilter,
    NotificationRepository,
    Page,
)

logger = get_module_logger()

STATS_CACHE_PREFIX = "notification_stats"


@dataclass
class QueryConfig:
    default_page_size: int = 20
    max_page_size: int = 100
    recent_failures_window_minutes: int = 60
    max_recent_failures_display: int = 10
    pending_batch_size: int = 100
    stats_cache_ttl_seconds: int = 30

    @classmethod
    def from_settings(cls, settings: NotificationFeatureSettings) -> "QueryConfig":
        return cls(
            default_page_size=settings.default_page_size,
            max_page_size=settings.max_page_size,
            recent_failures_window_minutes=settings.recent_failures_window_minutes,
            max_recent_failures_display=settings.max_recent_failures_display,
            pending_batch_size=settings.pending_batch_size,
            stats_cache_ttl_seconds=settings.stats_cache_ttl_seconds,
        )


class NotificationQueryService:
    """Read-only access to notification records.

    ``get_stats`` is cached under the ``notification_stats`` prefix; bulk
    operations invalidate it when they finish.

    Args:
        repository: Notification store
        cache: Cache for statistics
        config: QueryConfig
        clock: Source of the current UTC time, injectable for tests
    """

    def __init__(
        self,
        repository: NotificationRepository,
        cache: Optional[Cache] = None,
        config: Optional[QueryConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.cache = cache or InMemoryCache()
        self.config = config or QueryConfig()
        self._clock = clock or utcnow

    def get(self, notification_id: str) -> Notification:
        notification = self.repository.get(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    def exists(self, notification_id: str) -> bool:
        return self.repository.get(notification_id) is not None

    def list(
        self,
        filters: Optional[NotificationFilter] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Page[Notification]:
        """List notifications, newest first by default.

        ``page`` is 1-based; ``limit`` is clamped to ``max_page_size``.

        Raises:
            ValueError: Unknown sort field or order
        """
        page = max(1, page)
        limit = limit or self.config.default_page_size
        limit = max(1, min(limit, self.config.max_page_size))
        items, total = self.repository.find(
            filters,
            offset=(page - 1) * limit,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def get_recent_failures(
        self, window_minutes: Optional[int] = None, limit: Optional[int] = None
    ) -> List[Notification]:
        window = window_minutes or self.config.recent_failures_window_minutes
        since = self._clock() - timedelta(minutes=window)
        return self.repository.find_recent_failures(
            since, limit or self.config.max_recent_failures_display
        )

    def get_stats(self) -> Dict[str, Any]:
        cache_key = f"{STATS_CACHE_PREFIX}:summary"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        status_counts = self.repository.count_by_status()
        channel_counts = self.repository.count_by_channel()
        total = sum(status_counts.values())
        delivered = status_counts.get(NotificationStatus.SENT.value, 0) + status_counts.get(
            NotificationStatus.DELIVERED.value, 0
        )
        success_rate = round(delivered / total * 100, 2) if total else 0.0

        failures = self.get_recent_failures()
        pending = self.repository.find_by_status(
            [NotificationStatus.CREATED, NotificationStatus.QUEUED],
            limit=self.config.pending_batch_size,
        )

        stats = {
            "status_counts": status_counts,
            "channel_counts": channel_counts,
            "total_notifications": total,
            "success_rate": success_rate,
            "recent_failure_count": len(failures),
            "recent_failures": [
                {
                    "id": n.id,
                    "channel": n.channel.value,
                    "error": n.last_error,
                    "failed_at": n.updated_at.isoformat(),
                }
                for n in failures
            ],
            "pending_notifications": len(pending),
        }
        self.cache.set(cache_key, stats, self.config.stats_cache_ttl_seconds)
        logger.debug("notification_stats_computed", total=total, success_rate=success_rate)
        return stats
