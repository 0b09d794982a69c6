"""Request schemas for the notifications use cases.

These pydantic models are the input contracts of the orchestration and
bulk services. They check shapes and types only; channel specific business
rules (recipient format, subject rules, content limits) are applied by
``NotificationValidator`` so every violation is reported in one error.

Key distinction from domain/models.py:
  - schemas.py: input contracts with pydantic validation
  - domain/models.py: the stored record (dataclass, state machine guarded)
"""

from datetime import datetime
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from modules.notifications.domain.enums import ChannelType, NotificationPriority
from modules.notifications.domain.models import ensure_utc


class CreateNotificationRequest(BaseModel):
    """Schema for creating a notification.

    ``scheduled_for`` in the future delays delivery until that time; absent
    or past means deliver as soon as a worker is free.
    """

    channel: Annotated[
        ChannelType,
        Field(..., description="Delivery channel", json_schema_extra={"example": "email"}),
    ]
    recipient: Annotated[
        str,
        Field(
            ...,
            description="Channel specific address",
            json_schema_extra={"example": "user@example.com"},
        ),
    ]
    content: Annotated[
        str,
        Field(..., description="Message body", json_schema_extra={"example": "Hi"}),
    ]
    subject: Annotated[
        Optional[str],
        Field(
            default=None,
            description="Subject line (EMAIL only)",
            json_schema_extra={"example": "Welcome"},
        ),
    ] = None
    priority: Annotated[
        NotificationPriority,
        Field(
            default=NotificationPriority.NORMAL,
            description="Queue priority",
            json_schema_extra={"example": "normal"},
        ),
    ] = NotificationPriority.NORMAL
    scheduled_for: Annotated[
        Optional[datetime],
        Field(
            default=None,
            description="Earliest delivery time (UTC when no offset is given)",
            json_schema_extra={"example": "2026-01-01T09:00:00Z"},
        ),
    ] = None
    metadata: Annotated[
        Dict[str, Any],
        Field(
            default_factory=dict,
            description="Caller supplied metadata",
            json_schema_extra={"example": {"campaign": "onboarding"}},
        ),
    ]

    @field_validator("scheduled_for")
    @classmethod
    def _normalize_schedule(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class UpdateNotificationRequest(BaseModel):
    """Schema for editing a notification that has not been sent yet.

    Only the fields the caller actually set are applied; use
    ``changes()`` to get them. Setting ``scheduled_for`` reschedules the
    delivery job.
    """

    recipient: Annotated[
        Optional[str],
        Field(default=None, description="New recipient address"),
    ] = None
    subject: Annotated[
        Optional[str],
        Field(default=None, description="New subject line"),
    ] = None
    content: Annotated[
        Optional[str],
        Field(default=None, description="New message body"),
    ] = None
    scheduled_for: Annotated[
        Optional[datetime],
        Field(default=None, description="New delivery time"),
    ] = None
    metadata: Annotated[
        Optional[Dict[str, Any]],
        Field(default=None, description="Metadata merged into the existing metadata"),
    ] = None

    @field_validator("scheduled_for")
    @classmethod
    def _normalize_schedule(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def changes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class BulkUpdateItem(BaseModel):
    """One entry of a bulk update: the target id and its changes."""

    notification_id: Annotated[str, Field(..., min_length=1)]
    update: UpdateNotificationRequest
