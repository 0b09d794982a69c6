"""Event models for the infrastructure event system."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass
class Event:
    """Immutable record of something that happened in the system.

    Domain events (notification created, sent, cancelled, bulk operation
    completed) are published as Events for audit trails, metrics and
    downstream consumers.
    """

    event_type: str
    """The type of event (e.g., 'notification.created')."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    """When the event occurred (UTC)."""

    correlation_id: UUID = field(default_factory=uuid4)
    """Unique ID to track related events across the system."""

    aggregate_id: str = ""
    """Identifier of the entity the event is about (e.g. a notification id)."""

    metadata: Dict[str, Any] = field(default_factory=dict)
    """Event specific payload."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event to a JSON-friendly dictionary."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        data["correlation_id"] = str(self.correlation_id)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """Deserialize event from dictionary.

        Raises:
            ValueError: If required fields are missing or invalid.
        """
        try:
            timestamp = data.get("timestamp")
            if isinstance(timestamp, str):
                timestamp = datetime.fromisoformat(timestamp)
            elif timestamp is None:
                timestamp = datetime.now(timezone.utc)

            correlation_id = data.get("correlation_id")
            if isinstance(correlation_id, str):
                correlation_id = UUID(correlation_id)
            elif correlation_id is None:
                correlation_id = uuid4()

            return cls(
                event_type=data["event_type"],
                timestamp=timestamp,
                correlation_id=correlation_id,
                aggregate_id=data.get("aggregate_id", ""),
                metadata=data.get("metadata", {}),
            )
        except (KeyError, ValueError) as e:
            raise ValueError(f"Invalid event data: {e}")

    def __hash__(self) -> int:
        return hash((self.correlation_id, self.timestamp))
