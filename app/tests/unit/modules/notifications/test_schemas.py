"""Unit tests for the request schemas."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from modules.notifications.domain import ChannelType, NotificationPriority
from modules.notifications.schemas import (
    BulkUpdateItem,
    CreateNotificationRequest,
    UpdateNotificationRequest,
)


@pytest.mark.unit
class TestCreateNotificationRequest:
    def test_defaults(self):
        request = CreateNotificationRequest(channel="sms", recipient="+15551234567", content="Hi")

        assert request.channel == ChannelType.SMS
        assert request.priority == NotificationPriority.NORMAL
        assert request.subject is None
        assert request.metadata == {}

    def test_unknown_channel(self):
        with pytest.raises(ValidationError):
            CreateNotificationRequest(channel="fax", recipient="x", content="Hi")

    def test_schedule_is_normalized_to_utc(self):
        eastern = timezone(timedelta(hours=-5))
        request = CreateNotificationRequest(
            channel="email",
            recipient="user@example.com",
            content="Hi",
            scheduled_for=datetime(2026, 1, 1, 9, 0, tzinfo=eastern),
        )

        assert request.scheduled_for == datetime(2026, 1, 1, 14, 0, tzinfo=timezone.utc)
        assert request.scheduled_for.tzinfo == timezone.utc


@pytest.mark.unit
class TestUpdateNotificationRequest:
    def test_changes_only_contains_set_fields(self):
        request = UpdateNotificationRequest(content="New", subject=None)

        assert request.changes() == {"content": "New", "subject": None}

    def test_empty(self):
        assert UpdateNotificationRequest().changes() == {}


@pytest.mark.unit
def test_bulk_update_item_requires_id():
    with pytest.raises(ValidationError):
        BulkUpdateItem(notification_id="", update=UpdateNotificationRequest())
