"""End-to-end delivery through orchestration, queue, worker and transports."""

from datetime import timedelta

import pytest

from modules.notifications.channels import ChannelResult
from modules.notifications.domain import (
    ChannelType,
    NotificationPriority,
    NotificationStatus,
    ValidationFailedError,
)
from tests.factories.notifications import FakeTransport, make_create_request

pytestmark = pytest.mark.integration


def test_email_is_delivered(engine):
    transport = FakeTransport(results=[ChannelResult.ok(ChannelType.EMAIL, message_id="msg-1")])
    engine.registry.register(transport)

    created = engine.orchestration.create(make_create_request())
    assert engine.drain() == ["completed"]

    stored = engine.query.get(created.id)
    assert stored.status == NotificationStatus.SENT
    assert stored.sent_at is not None
    assert stored.metadata["messageId"] == "msg-1"
    assert stored.metadata["attempts"] == 1
    assert [n.id for n in transport.sent] == [created.id]
    assert engine.event_types() == [
        "notification.created",
        "notification.queued",
        "notification.sent",
    ]


def test_sms_with_subject_is_rejected_before_storage(engine):
    with pytest.raises(ValidationFailedError) as exc_info:
        engine.orchestration.create(
            make_create_request(channel=ChannelType.SMS, subject="Not for SMS")
        )

    assert exc_info.value.errors[0]["field"] == "subject"
    assert engine.query.list().total == 0
    assert engine.queue.get_counts()["waiting"] == 0
    assert engine.events == []


def test_bulk_create_with_partial_failure(engine):
    engine.registry.register(FakeTransport())
    requests = [make_create_request(recipient=f"user{i}@example.com") for i in range(7)] + [
        make_create_request(recipient="not-an-email") for _ in range(3)
    ]

    result = engine.bulk.bulk_create(requests)

    assert (result.success_count, result.failure_count) == (7, 3)
    assert [f["index"] for f in result.failures] == [7, 8, 9]
    assert engine.drain() == ["completed"] * 7
    assert engine.query.get_stats()["status_counts"] == {"sent": 7}


def test_higher_priority_is_delivered_first(engine):
    transport = FakeTransport()
    engine.registry.register(transport)
    low = engine.orchestration.create(make_create_request(priority=NotificationPriority.LOW))
    normal = engine.orchestration.create(make_create_request(priority=NotificationPriority.NORMAL))
    high = engine.orchestration.create(make_create_request(priority=NotificationPriority.HIGH))

    engine.drain()

    assert [n.id for n in transport.sent] == [high.id, normal.id, low.id]


def test_scheduled_notification_waits_for_its_time(engine, clock):
    engine.registry.register(FakeTransport())
    created = engine.orchestration.create(
        make_create_request(scheduled_for=clock.now + timedelta(minutes=10))
    )

    assert engine.drain() == []
    assert engine.queue.get_counts()["delayed"] == 1

    clock.advance(minutes=10, seconds=1)

    assert engine.drain() == ["completed"]
    assert engine.query.get(created.id).status == NotificationStatus.SENT


def test_transient_failure_is_retried_with_backoff(engine, clock):
    engine.registry.register(
        FakeTransport(
            results=[
                ChannelResult.failed(ChannelType.EMAIL, "provider busy", "PROVIDER_BUSY", retryable=True),
                ChannelResult.ok(ChannelType.EMAIL, message_id="msg-2"),
            ]
        )
    )
    created = engine.orchestration.create(make_create_request())

    assert engine.drain() == ["retried"]
    pending = engine.query.get(created.id)
    assert pending.status == NotificationStatus.QUEUED
    assert pending.retry_count == 1
    assert pending.last_error == "provider busy"

    clock.advance(minutes=1)

    assert engine.drain() == ["completed"]
    sent = engine.query.get(created.id)
    assert sent.status == NotificationStatus.SENT
    assert sent.metadata["attempts"] == 2


def test_claim_before_queued_mark_keeps_the_attempt_budget(engine, clock, monkeypatch):
    engine.registry.register(
        FakeTransport(
            results=[
                ChannelResult.failed(ChannelType.EMAIL, "provider busy", "PROVIDER_BUSY", retryable=True),
                ChannelResult.ok(ChannelType.EMAIL, message_id="msg-low"),
            ]
        )
    )
    early_outcomes = []
    store_job = engine.queue.add

    def add_then_claim(data, options):
        job = store_job(data, options)
        early_outcomes.append(engine.worker.process_next())
        return job

    monkeypatch.setattr(engine.queue, "add", add_then_claim)

    created = engine.orchestration.create(make_create_request(priority=NotificationPriority.LOW))

    assert early_outcomes == ["released"]
    queued = engine.query.get(created.id)
    assert queued.status == NotificationStatus.QUEUED
    assert queued.retry_count == 0

    clock.advance(seconds=1)
    assert engine.drain() == ["retried"]

    clock.advance(minutes=1)
    assert engine.drain() == ["completed"]
    sent = engine.query.get(created.id)
    assert sent.status == NotificationStatus.SENT
    assert sent.metadata["attempts"] == 2


def test_permanent_failure_then_manual_retry(engine):
    engine.registry.register(
        FakeTransport(
            results=[
                ChannelResult.failed(ChannelType.EMAIL, "mailbox closed", "REJECTED", retryable=False),
                ChannelResult.ok(ChannelType.EMAIL, message_id="msg-3"),
            ]
        )
    )
    created = engine.orchestration.create(make_create_request())

    assert engine.drain() == ["failed"]
    failed = engine.query.get(created.id)
    assert failed.status == NotificationStatus.FAILED
    assert engine.query.get_recent_failures()[0].id == created.id

    retried = engine.orchestration.retry(created.id)
    assert retried.status == NotificationStatus.QUEUED

    assert engine.drain() == ["completed"]
    assert engine.query.get(created.id).status == NotificationStatus.SENT


def test_cancelled_notification_is_never_sent(engine):
    transport = FakeTransport()
    engine.registry.register(transport)
    created = engine.orchestration.create(make_create_request())

    engine.orchestration.cancel(created.id, "user opted out")

    assert engine.drain() == []
    assert transport.sent == []
    assert engine.query.get(created.id).status == NotificationStatus.CANCELLED
