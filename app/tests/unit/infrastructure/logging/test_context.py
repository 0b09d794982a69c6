"""Unit tests for infrastructure.logging.context module."""

import uuid

import pytest
import structlog

from infrastructure.logging.context import (
    bind_notification_context,
    bind_request_context,
    clear_request_context,
    get_correlation_id,
    set_correlation_id,
)


@pytest.mark.unit
class TestBindRequestContext:
    def test_auto_generates_correlation_id(self):
        with bind_request_context():
            uuid.UUID(get_correlation_id())

    def test_uses_provided_correlation_id(self):
        with bind_request_context(correlation_id="req-123"):
            assert get_correlation_id() == "req-123"

    def test_binds_extra_context_and_skips_none(self):
        with bind_request_context(operation="bulk_create", actor=None):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["operation"] == "bulk_create"
            assert "actor" not in ctx

    def test_unbinds_after_exit(self):
        with bind_request_context(correlation_id="req-1", operation="create"):
            pass

        ctx = structlog.contextvars.get_contextvars()
        assert "correlation_id" not in ctx
        assert "operation" not in ctx

    def test_unbinds_when_block_raises(self):
        with pytest.raises(RuntimeError):
            with bind_request_context(correlation_id="req-1"):
                raise RuntimeError("boom")

        assert get_correlation_id() is None


@pytest.mark.unit
class TestBindNotificationContext:
    def test_binds_only_given_identifiers(self):
        with bind_notification_context(notification_id="n-1", job_id="j-1"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["notification_id"] == "n-1"
            assert ctx["job_id"] == "j-1"
            assert "channel" not in ctx
            assert "worker_id" not in ctx

        assert "notification_id" not in structlog.contextvars.get_contextvars()


@pytest.mark.unit
class TestCorrelationHelpers:
    def test_set_and_clear(self):
        set_correlation_id("abc")
        assert get_correlation_id() == "abc"

        clear_request_context()

        assert get_correlation_id() is None
