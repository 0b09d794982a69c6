"""Unit tests for the Notification record."""

from datetime import datetime, timedelta, timezone

import pytest

from modules.notifications.domain import (
    ChannelType,
    InvalidStateTransitionError,
    NotificationImmutableError,
    NotificationStatus,
)
from tests.factories.notifications import START, make_notification

LATER = START + timedelta(minutes=1)


@pytest.mark.unit
class TestConstruction:
    def test_coerces_enum_values(self):
        notification = make_notification(channel="sms", recipient="+15551234567", status="queued")

        assert notification.channel == ChannelType.SMS
        assert notification.status == NotificationStatus.QUEUED

    def test_naive_schedule_is_treated_as_utc(self):
        notification = make_notification(scheduled_for=datetime(2026, 1, 2, 9, 0))

        assert notification.scheduled_for == datetime(2026, 1, 2, 9, 0, tzinfo=timezone.utc)

    def test_flags(self):
        assert make_notification().is_cancellable
        assert make_notification(status=NotificationStatus.QUEUED).is_pending
        assert make_notification(status=NotificationStatus.SENT).is_immutable
        assert not make_notification(status=NotificationStatus.PROCESSING).is_cancellable


@pytest.mark.unit
class TestMutators:
    def test_transition_updates_timestamp(self):
        notification = make_notification()

        notification.transition_to(NotificationStatus.QUEUED, LATER)

        assert notification.status == NotificationStatus.QUEUED
        assert notification.updated_at == LATER

    def test_illegal_transition_leaves_record_untouched(self):
        notification = make_notification()

        with pytest.raises(InvalidStateTransitionError):
            notification.transition_to(NotificationStatus.SENT, LATER)

        assert notification.status == NotificationStatus.CREATED
        assert notification.updated_at == START

    def test_mark_queued_stores_job_id(self):
        notification = make_notification()

        notification.mark_queued("job-1", LATER)

        assert notification.status == NotificationStatus.QUEUED
        assert notification.job_id == "job-1"

    def test_mark_queued_on_queued_record_only_replaces_job(self):
        notification = make_notification(status=NotificationStatus.QUEUED, metadata={"jobId": "old"})

        notification.mark_queued("new", LATER)

        assert notification.job_id == "new"

    def test_mark_sent(self):
        notification = make_notification(status=NotificationStatus.PROCESSING)

        notification.mark_sent("msg-1", 12.3456, 2, LATER)

        assert notification.status == NotificationStatus.SENT
        assert notification.sent_at == LATER
        assert notification.metadata == {"messageId": "msg-1", "deliveryTimeMs": 12.35, "attempts": 2}

    def test_mark_delivered_stamps_once(self):
        notification = make_notification(status=NotificationStatus.SENT)
        delivered = START + timedelta(seconds=5)

        notification.mark_delivered(delivered, LATER)

        assert notification.status == NotificationStatus.DELIVERED
        assert notification.delivered_at == delivered

    def test_record_failure(self):
        notification = make_notification(status=NotificationStatus.PROCESSING)

        notification.record_failure("timeout", LATER)
        notification.record_failure("timeout again", LATER)

        assert notification.retry_count == 2
        assert notification.last_error == "timeout again"
        assert notification.status == NotificationStatus.PROCESSING

    def test_enrich_metadata_allowed_when_immutable(self):
        notification = make_notification(status=NotificationStatus.DELIVERED, metadata={"a": 1})

        notification.enrich_metadata({"b": 2}, LATER)

        assert notification.metadata == {"a": 1, "b": 2}


@pytest.mark.unit
class TestApplyChanges:
    def test_returns_changed_fields_only(self):
        notification = make_notification(content="Hi")

        updated = notification.apply_changes({"content": "Hi", "subject": "New"}, LATER)

        assert updated == ["subject"]
        assert notification.subject == "New"
        assert notification.updated_at == LATER

    def test_metadata_is_merged(self):
        notification = make_notification(metadata={"jobId": "j1"})

        notification.apply_changes({"metadata": {"campaign": "x"}}, LATER)

        assert notification.metadata == {"jobId": "j1", "campaign": "x"}

    def test_unknown_fields_are_ignored(self):
        notification = make_notification()

        assert notification.apply_changes({"status": "sent"}, LATER) == []
        assert notification.status == NotificationStatus.CREATED

    @pytest.mark.parametrize("status", [NotificationStatus.SENT, NotificationStatus.DELIVERED])
    def test_sent_records_are_immutable(self, status):
        notification = make_notification(status=status)

        with pytest.raises(NotificationImmutableError):
            notification.apply_changes({"content": "changed"}, LATER)


@pytest.mark.unit
def test_copy_is_independent():
    notification = make_notification(metadata={"a": 1})

    clone = notification.copy()
    clone.metadata["a"] = 2

    assert notification.metadata == {"a": 1}


@pytest.mark.unit
def test_to_dict():
    data = make_notification().to_dict()

    assert data["channel"] == "email"
    assert data["status"] == "created"
    assert data["created_at"] == START.isoformat()
    assert data["sent_at"] is None
