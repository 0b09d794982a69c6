"""SQLAlchemy notification repository.

Rows carry a ``version`` column registered as the mapper's
``version_id_col``: every UPDATE is guarded by the version that was read,
so a concurrent writer makes the flush fail with StaleDataError, which is
surfaced as ConcurrentModificationError. On PostgreSQL reads inside a
transaction also take a row lock (``SELECT ... FOR UPDATE``).
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Collection, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column
from sqlalchemy.orm.exc import StaleDataError

from infrastructure.logging import get_module_logger
from infrastructure.persistence import (
    Base,
    ConcurrentModificationError,
    Database,
    PersistenceError,
)
from modules.notifications.domain.enums import NotificationStatus
from modules.notifications.domain.models import Notification
from modules.notifications.repository.base import NotificationFilter, validate_sort

logger = get_module_logger()


class NotificationRow(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_status_created_at", "status", "created_at"),
        Index("ix_notifications_channel_status", "channel", "status"),
        Index("ix_notifications_recipient", "recipient"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    channel: Mapped[str] = mapped_column(String(16))
    recipient: Mapped[str] = mapped_column(String(4096))
    subject: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    content: Mapped[str] = mapped_column(Text)
    priority: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16))
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    retry_count: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scheduled_for: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def apply(self, notification: Notification) -> None:
        self.channel = notification.channel.value
        self.recipient = notification.recipient
        self.subject = notification.subject
        self.content = notification.content
        self.priority = notification.priority.value
        self.status = notification.status.value
        self.metadata_ = dict(notification.metadata)
        self.retry_count = notification.retry_count
        self.last_error = notification.last_error
        self.scheduled_for = notification.scheduled_for
        self.sent_at = notification.sent_at
        self.delivered_at = notification.delivered_at
        self.created_at = notification.created_at
        self.updated_at = notification.updated_at


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_domain(row: NotificationRow) -> Notification:
    return Notification(
        id=row.id,
        channel=row.channel,
        recipient=row.recipient,
        subject=row.subject,
        content=row.content,
        priority=row.priority,
        status=row.status,
        metadata=dict(row.metadata_ or {}),
        retry_count=row.retry_count,
        last_error=row.last_error,
        scheduled_for=_aware(row.scheduled_for),
        sent_at=_aware(row.sent_at),
        delivered_at=_aware(row.delivered_at),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
        version=row.version,
    )


class _SqlUnitOfWork:
    def __init__(self, session: Session, lock_rows: bool):
        self._session = session
        self._lock_rows = lock_rows
        self._rows: Dict[str, NotificationRow] = {}

    def add(self, notification: Notification) -> None:
        row = NotificationRow(id=notification.id)
        row.apply(notification)
        self._session.add(row)
        self._session.flush()
        self._rows[notification.id] = row
        notification.version = row.version

    def get(self, notification_id: str) -> Optional[Notification]:
        stmt = select(NotificationRow).where(NotificationRow.id == notification_id)
        if self._lock_rows:
            stmt = stmt.with_for_update()
        row = self._session.scalar(stmt)
        if row is None:
            return None
        self._rows[notification_id] = row
        return _to_domain(row)

    def save(self, notification: Notification) -> None:
        row = self._rows.get(notification.id) or self._session.get(
            NotificationRow, notification.id
        )
        if row is None:
            raise PersistenceError(
                f"Notification {notification.id} does not exist",
                details={"notification_id": notification.id},
            )
        if row.version != notification.version:
            raise ConcurrentModificationError(
                f"Notification {notification.id} was modified concurrently",
                details={
                    "notification_id": notification.id,
                    "expected_version": notification.version,
                    "actual_version": row.version,
                },
            )
        row.apply(notification)
        try:
            self._session.flush()
        except StaleDataError as e:
            raise ConcurrentModificationError(
                f"Notification {notification.id} was modified concurrently",
                e,
                {"notification_id": notification.id},
            ) from e
        notification.version = row.version


class SqlNotificationRepository:
    """NotificationRepository on a relational database.

    Args:
        database: Shared Database (engine + sessions)
    """

    def __init__(self, database: Database):
        self.database = database

    @contextmanager
    def transaction(self) -> Iterator[_SqlUnitOfWork]:
        with self.database.session_scope() as session:
            yield _SqlUnitOfWork(session, lock_rows=self.database.dialect == "postgresql")

    def get(self, notification_id: str) -> Optional[Notification]:
        with self.database.session_scope() as session:
            row = session.get(NotificationRow, notification_id)
            return _to_domain(row) if row else None

    def find(
        self,
        filters: Optional[NotificationFilter] = None,
        offset: int = 0,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Notification], int]:
        sort_by, sort_order = validate_sort(sort_by, sort_order)
        conditions = self._conditions(filters or NotificationFilter())

        column = getattr(NotificationRow, sort_by)
        ordering = column.desc() if sort_order == "desc" else column.asc()
        tie_breaker = (
            NotificationRow.created_at.desc()
            if sort_order == "desc"
            else NotificationRow.created_at.asc()
        )

        with self.database.session_scope() as session:
            total = session.scalar(
                select(func.count()).select_from(NotificationRow).where(*conditions)
            )
            rows = session.scalars(
                select(NotificationRow)
                .where(*conditions)
                .order_by(ordering, tie_breaker, NotificationRow.id)
                .offset(offset)
                .limit(limit)
            ).all()
            return [_to_domain(r) for r in rows], int(total or 0)

    @staticmethod
    def _conditions(filters: NotificationFilter) -> list:
        conditions = []
        if filters.status is not None:
            conditions.append(NotificationRow.status == filters.status.value)
        if filters.channel is not None:
            conditions.append(NotificationRow.channel == filters.channel.value)
        if filters.recipient is not None:
            conditions.append(NotificationRow.recipient == filters.recipient)
        if filters.from_date is not None:
            conditions.append(NotificationRow.created_at >= filters.from_date)
        if filters.to_date is not None:
            conditions.append(NotificationRow.created_at <= filters.to_date)
        return conditions

    def _count_by(self, column) -> Dict[str, int]:
        with self.database.session_scope() as session:
            rows = session.execute(select(column, func.count()).group_by(column)).all()
            return {value: count for value, count in rows}

    def count_by_status(self) -> Dict[str, int]:
        return self._count_by(NotificationRow.status)

    def count_by_channel(self) -> Dict[str, int]:
        return self._count_by(NotificationRow.channel)

    def find_recent_failures(self, since: datetime, limit: int) -> List[Notification]:
        with self.database.session_scope() as session:
            rows = session.scalars(
                select(NotificationRow)
                .where(
                    NotificationRow.status == NotificationStatus.FAILED.value,
                    NotificationRow.updated_at >= since,
                )
                .order_by(NotificationRow.updated_at.desc())
                .limit(limit)
            ).all()
            return [_to_domain(r) for r in rows]

    def find_by_status(
        self,
        statuses: Collection[NotificationStatus],
        limit: int,
        older_than: Optional[datetime] = None,
    ) -> List[Notification]:
        values = [NotificationStatus(s).value for s in statuses]
        stmt = select(NotificationRow).where(NotificationRow.status.in_(values))
        if older_than is not None:
            stmt = stmt.where(NotificationRow.created_at < older_than)
        with self.database.session_scope() as session:
            rows = session.scalars(
                stmt.order_by(NotificationRow.created_at.asc()).limit(limit)
            ).all()
            return [_to_domain(r) for r in rows]

    def ping(self) -> bool:
        return self.database.ping()
