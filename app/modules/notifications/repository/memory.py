"""In-memory notification repository."""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Collection, Dict, Iterator, List, Optional, Tuple

from infrastructure.logging import get_module_logger
from infrastructure.persistence import PersistenceError
from modules.notifications.domain.enums import NotificationStatus
from modules.notifications.domain.models import Notification
from modules.notifications.repository.base import NotificationFilter, validate_sort

logger = get_module_logger()


class _InMemoryUnitOfWork:
    def __init__(self, records: Dict[str, Notification]):
        self._records = records
        self.staged: Dict[str, Notification] = {}
        self.added: set = set()

    def add(self, notification: Notification) -> None:
        if notification.id in self._records or notification.id in self.staged:
            raise PersistenceError(
                f"Notification {notification.id} already exists",
                details={"notification_id": notification.id},
            )
        self.staged[notification.id] = notification.copy()
        self.added.add(notification.id)

    def get(self, notification_id: str) -> Optional[Notification]:
        record = self.staged.get(notification_id) or self._records.get(notification_id)
        return record.copy() if record else None

    def save(self, notification: Notification) -> None:
        if notification.id not in self._records and notification.id not in self.staged:
            raise PersistenceError(
                f"Notification {notification.id} does not exist",
                details={"notification_id": notification.id},
            )
        self.staged[notification.id] = notification.copy()


class InMemoryNotificationRepository:
    """Thread-safe in-process repository.

    A transaction holds a re-entrant lock from start to commit, so
    read-check-write sequences from concurrent workers are serialized.
    Records are copied in and out; callers never share state with the
    store.
    """

    def __init__(self):
        self._records: Dict[str, Notification] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[_InMemoryUnitOfWork]:
        with self._lock:
            uow = _InMemoryUnitOfWork(self._records)
            yield uow
            for notification_id, record in uow.staged.items():
                if notification_id not in uow.added:
                    record.version += 1
                self._records[notification_id] = record

    def get(self, notification_id: str) -> Optional[Notification]:
        with self._lock:
            record = self._records.get(notification_id)
            return record.copy() if record else None

    def find(
        self,
        filters: Optional[NotificationFilter] = None,
        offset: int = 0,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Notification], int]:
        sort_by, sort_order = validate_sort(sort_by, sort_order)
        filters = filters or NotificationFilter()
        with self._lock:
            matched = [r for r in self._records.values() if filters.matches(r)]

        def key(record: Notification):
            value = getattr(record, sort_by)
            return (getattr(value, "value", value), record.created_at, record.id)

        matched.sort(key=key, reverse=sort_order == "desc")
        return [r.copy() for r in matched[offset : offset + limit]], len(matched)

    def count_by_status(self) -> Dict[str, int]:
        with self._lock:
            counts: Dict[str, int] = {}
            for record in self._records.values():
                counts[record.status.value] = counts.get(record.status.value, 0) + 1
            return counts

    def count_by_channel(self) -> Dict[str, int]:
        with self._lock:
            counts: Dict[str, int] = {}
            for record in self._records.values():
                counts[record.channel.value] = counts.get(record.channel.value, 0) + 1
            return counts

    def find_recent_failures(self, since: datetime, limit: int) -> List[Notification]:
        with self._lock:
            failures = [
                r
                for r in self._records.values()
                if r.status == NotificationStatus.FAILED and r.updated_at >= since
            ]
        failures.sort(key=lambda r: r.updated_at, reverse=True)
        return [r.copy() for r in failures[:limit]]

    def find_by_status(
        self,
        statuses: Collection[NotificationStatus],
        limit: int,
        older_than: Optional[datetime] = None,
    ) -> List[Notification]:
        wanted = {NotificationStatus(s) for s in statuses}
        with self._lock:
            matched = [
                r
                for r in self._records.values()
                if r.status in wanted and (older_than is None or r.created_at < older_than)
            ]
        matched.sort(key=lambda r: r.created_at)
        return [r.copy() for r in matched[:limit]]

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
