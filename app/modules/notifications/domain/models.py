"""Notification domain model.

A Notification is the durable record of one message to one recipient over
one channel. Its ``status`` moves only along the edges of the state machine
in ``modules.notifications.domain.state_machine``. Every mutator on this
class goes through that state machine, so an illegal change raises before
any field is touched.

Delivery attempts are tracked on the queue job, not on this record; the
record only keeps ``retry_count`` (monotonically increasing) and the most
recent ``last_error``.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from modules.notifications.domain.enums import (
    ChannelType,
    NotificationPriority,
    NotificationStatus,
)
from modules.notifications.domain.errors import NotificationImmutableError
from modules.notifications.domain.state_machine import (
    CANCELLABLE,
    IMMUTABLE,
    PENDING,
    assert_transition,
)
from modules.notifications.domain.value_objects import (
    NotificationContent,
    ParseResult,
    Recipient,
)

UPDATABLE_FIELDS = ("recipient", "subject", "content", "metadata", "scheduled_for")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Notification:
    """Notification record.

    Attributes:
        channel: Transport category
        recipient: Channel specific address, stored as given
        content: Message body
        subject: Required for EMAIL, forbidden for SMS
        priority: Queue priority, kept so reschedules reuse it
        status: Current lifecycle status
        metadata: Free-form caller data plus delivery bookkeeping
            (``jobId``, ``messageId``, ``deliveryTimeMs``, ``attempts``)
        retry_count: Failed delivery attempts so far
        last_error: Error from the most recent failed attempt
        scheduled_for: Earliest delivery time, None for immediate
        sent_at / delivered_at: Stamped once, never overwritten
        version: Optimistic concurrency counter maintained by the store
    """

    channel: ChannelType
    recipient: str
    content: str
    subject: Optional[str] = None
    priority: NotificationPriority = NotificationPriority.NORMAL
    status: NotificationStatus = NotificationStatus.CREATED
    metadata: Dict[str, Any] = field(default_factory=dict)
    retry_count: int = 0
    last_error: Optional[str] = None
    scheduled_for: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    version: int = 0

    def __post_init__(self) -> None:
        self.channel = ChannelType(self.channel)
        self.priority = NotificationPriority(self.priority)
        self.status = NotificationStatus(self.status)
        self.scheduled_for = ensure_utc(self.scheduled_for)

    @property
    def is_immutable(self) -> bool:
        return self.status in IMMUTABLE

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING

    @property
    def job_id(self) -> Optional[str]:
        return self.metadata.get("jobId")

    @property
    def parsed_recipient(self) -> ParseResult[Recipient]:
        return Recipient.parse(self.channel, self.recipient)

    @property
    def parsed_content(self) -> ParseResult[NotificationContent]:
        return NotificationContent.parse(self.content)

    def transition_to(
        self, target: NotificationStatus, now: Optional[datetime] = None
    ) -> None:
        assert_transition(self.status, target, self.id)
        self.status = target
        self.updated_at = now or utcnow()

    def mark_queued(self, job_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
        """Move to QUEUED. Already QUEUED records only get the new job id."""
        if self.status != NotificationStatus.QUEUED:
            self.transition_to(NotificationStatus.QUEUED, now)
        if job_id is not None:
            self.metadata["jobId"] = job_id
            self.updated_at = now or utcnow()

    def mark_sent(
        self,
        message_id: Optional[str],
        delivery_time_ms: float,
        attempts: int,
        now: Optional[datetime] = None,
    ) -> None:
        now = now or utcnow()
        self.transition_to(NotificationStatus.SENT, now)
        if self.sent_at is None:
            self.sent_at = now
        self.metadata.update(
            {
                "messageId": message_id,
                "deliveryTimeMs": round(delivery_time_ms, 2),
                "attempts": attempts,
            }
        )

    def mark_delivered(
        self, delivered_at: Optional[datetime] = None, now: Optional[datetime] = None
    ) -> None:
        now = now or utcnow()
        self.transition_to(NotificationStatus.DELIVERED, now)
        if self.delivered_at is None:
            self.delivered_at = ensure_utc(delivered_at) or now

    def record_failure(self, error: str, now: Optional[datetime] = None) -> None:
        """Count a failed attempt. Status is left to the caller."""
        self.retry_count += 1
        self.last_error = error
        self.updated_at = now or utcnow()

    def enrich_metadata(self, extra: Dict[str, Any], now: Optional[datetime] = None) -> None:
        """Merge ``extra`` into metadata. Allowed in every status."""
        if extra:
            self.metadata.update(extra)
            self.updated_at = now or utcnow()

    def apply_changes(self, changes: Dict[str, Any], now: Optional[datetime] = None) -> List[str]:
        """Apply field edits and return the names of the fields that changed.

        Raises:
            NotificationImmutableError: The record was already sent
        """
        if self.is_immutable:
            raise NotificationImmutableError(self.id, self.status)

        updated: List[str] = []
        for name in UPDATABLE_FIELDS:
            if name not in changes:
                continue
            value = changes[name]
            if name == "scheduled_for":
                value = ensure_utc(value)
            if name == "metadata":
                value = {**self.metadata, **(value or {})}
            if getattr(self, name) != value:
                setattr(self, name, value)
                updated.append(name)
        if updated:
            self.updated_at = now or utcnow()
        return updated

    def copy(self) -> "Notification":
        return deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        def iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "channel": self.channel.value,
            "recipient": self.recipient,
            "subject": self.subject,
            "content": self.content,
            "priority": self.priority.value,
            "status": self.status.value,
            "metadata": dict(self.metadata),
            "retry_count": self.retry_count,
            "last_error": self.last_error,
            "scheduled_for": iso(self.scheduled_for),
            "sent_at": iso(self.sent_at),
            "delivered_at": iso(self.delivered_at),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
