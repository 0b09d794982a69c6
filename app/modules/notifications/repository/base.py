"""Notification repository interface.

Use cases mutate records only inside ``transaction()``: the unit of work
it yields re-reads the current status under a lock (or row lock) so a
status check followed by a write cannot race another worker.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import (
    Collection,
    ContextManager,
    Dict,
    Generic,
    List,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
)

from modules.notifications.domain.enums import ChannelType, NotificationStatus
from modules.notifications.domain.models import Notification, ensure_utc

T = TypeVar("T")

SORTABLE_FIELDS = ("created_at", "updated_at", "status", "channel")
SORT_ORDERS = ("asc", "desc")


@dataclass
class NotificationFilter:
    """Criteria for listing notifications. Unset fields match everything."""

    status: Optional[NotificationStatus] = None
    channel: Optional[ChannelType] = None
    recipient: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.status is not None:
            self.status = NotificationStatus(self.status)
        if self.channel is not None:
            self.channel = ChannelType(self.channel)
        self.from_date = ensure_utc(self.from_date)
        self.to_date = ensure_utc(self.to_date)

    def matches(self, notification: Notification) -> bool:
        if self.status is not None and notification.status != self.status:
            return False
        if self.channel is not None and notification.channel != self.channel:
            return False
        if self.recipient is not None and notification.recipient != self.recipient:
            return False
        if self.from_date is not None and notification.created_at < self.from_date:
            return False
        if self.to_date is not None and notification.created_at > self.to_date:
            return False
        return True


@dataclass
class Page(Generic[T]):
    """One page of results."""

    items: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class UnitOfWork(Protocol):
    """Transactional view over the repository.

    Records returned by ``get`` are private copies; changes become visible
    to others only after ``save`` and a successful commit.
    """

    def add(self, notification: Notification) -> None:
        ...

    def get(self, notification_id: str) -> Optional[Notification]:
        ...

    def save(self, notification: Notification) -> None:
        ...


class NotificationRepository(Protocol):
    """Storage interface for notification records.

    Methods:
        transaction: Context manager yielding a UnitOfWork; commits on
            normal exit, discards all staged changes on exception
        get: Read a record outside a transaction
        find: Filtered, sorted, paginated listing returning (items, total)
        count_by_status / count_by_channel: Aggregates for stats
        find_recent_failures: FAILED records updated since a time
        find_by_status: Records in any of the given statuses
        ping: Whether the store is reachable
    """

    def transaction(self) -> ContextManager[UnitOfWork]:
        ...

    def get(self, notification_id: str) -> Optional[Notification]:
        ...

    def find(
        self,
        filters: Optional[NotificationFilter] = None,
        offset: int = 0,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Notification], int]:
        ...

    def count_by_status(self) -> Dict[str, int]:
        ...

    def count_by_channel(self) -> Dict[str, int]:
        ...

    def find_recent_failures(self, since: datetime, limit: int) -> List[Notification]:
        ...

    def find_by_status(
        self,
        statuses: Collection[NotificationStatus],
        limit: int,
        older_than: Optional[datetime] = None,
    ) -> List[Notification]:
        ...

    def ping(self) -> bool:
        ...


def validate_sort(sort_by: str, sort_order: str) -> Tuple[str, str]:
    """Normalize sort arguments, raising ValueError for unknown values."""
    sort_order = (sort_order or "desc").lower()
    if sort_by not in SORTABLE_FIELDS:
        raise ValueError(f"Unsupported sort field: {sort_by}")
    if sort_order not in SORT_ORDERS:
        raise ValueError(f"Unsupported sort order: {sort_order}")
    return sort_by, sort_order
