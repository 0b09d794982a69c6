"""Channel transport abstract base class.

Every concrete transport (email provider, SMS gateway, push service,
webhook client) implements this interface and is registered with the
ChannelRegistry at startup.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from modules.notifications.domain.enums import ChannelType
from modules.notifications.domain.models import Notification


@dataclass
class ChannelResult:
    """Outcome of one delivery attempt.

    Attributes:
        success: True when the transport accepted the message
        channel: Channel the attempt was routed to
        message_id: Provider message id on success
        error: Human readable failure reason
        error_code: Machine readable failure code
        retryable: Whether a later attempt may succeed
        delivered_at: Set when the transport already confirmed delivery
        metadata: Provider specific extras
        duration_ms: Wall time of the attempt, filled in by the registry
    """

    success: bool
    channel: ChannelType
    message_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    retryable: bool = False
    delivered_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0

    @classmethod
    def ok(
        cls,
        channel: ChannelType,
        message_id: Optional[str] = None,
        delivered_at: Optional[datetime] = None,
        **metadata: Any,
    ) -> "ChannelResult":
        return cls(
            success=True,
            channel=channel,
            message_id=message_id,
            delivered_at=delivered_at,
            metadata=metadata,
        )

    @classmethod
    def failed(
        cls,
        channel: ChannelType,
        error: str,
        error_code: str,
        retryable: bool,
    ) -> "ChannelResult":
        return cls(
            success=False,
            channel=channel,
            error=error,
            error_code=error_code,
            retryable=retryable,
        )


class ChannelTransport(ABC):
    """Abstract base class for channel transports.

    Example Implementation:
        class SmtpTransport(ChannelTransport):

            @property
            def channel_type(self) -> ChannelType:
                return ChannelType.EMAIL

            def send(self, notification: Notification) -> ChannelResult:
                message_id = self._client.send(notification.recipient, ...)
                return ChannelResult.ok(self.channel_type, message_id)

            def is_available(self) -> bool:
                return self._client.connected

            def validate_recipient(self, recipient: str) -> bool:
                return Recipient.parse(self.channel_type, recipient).is_valid
    """

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Registry key for this transport."""

    @abstractmethod
    def send(self, notification: Notification) -> ChannelResult:
        """Deliver the notification.

        May return a failed ChannelResult or raise; the registry converts
        exceptions into a TRANSPORT_ERROR result whose ``retryable`` flag
        comes from ``classify_transport_error``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the transport can currently accept messages."""

    @abstractmethod
    def validate_recipient(self, recipient: str) -> bool:
        """Whether ``recipient`` is deliverable on this channel."""
