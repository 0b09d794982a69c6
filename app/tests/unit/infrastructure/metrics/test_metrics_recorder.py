"""Unit tests for MetricsRecorder and the metric sinks."""

from unittest.mock import MagicMock

import pytest

from infrastructure.metrics import InMemoryMetricsSink, LoggingMetricsSink, MetricsRecorder


@pytest.mark.unit
class TestMetricsRecorder:
    def test_channel_delivery(self, metrics, metrics_sink):
        metrics.record_channel_delivery("email", True, 12.5)
        metrics.record_channel_delivery("email", False, 3.0)

        assert metrics_sink.get_counter("channel.delivery") == 2
        assert metrics_sink.get_counter(
            "channel.delivery", {"channel": "email", "success": "true"}
        ) == 1
        assert metrics_sink.get_timings("channel.delivery_duration") == [12.5, 3.0]

    def test_notification_lifecycle_counters(self, metrics, metrics_sink):
        metrics.record_notification_created("sms", "high")
        metrics.record_notification_sent("sms", 40.0)
        metrics.record_notification_failed("sms", "TRANSPORT_ERROR")
        metrics.record_notification_delivered("sms")
        metrics.record_queue_inconsistency("sms")

        assert metrics_sink.get_counter("notification.created", {"channel": "sms", "priority": "high"}) == 1
        assert metrics_sink.get_counter("notification.sent") == 1
        assert metrics_sink.get_counter(
            "notification.failed", {"channel": "sms", "error_code": "TRANSPORT_ERROR"}
        ) == 1
        assert metrics_sink.get_counter("notification.delivered") == 1
        assert metrics_sink.get_counter("notification.queue_inconsistency") == 1

    def test_bulk_operation(self, metrics, metrics_sink):
        metrics.record_bulk_operation("create", total=10, succeeded=7, failed=3, duration_ms=80.0)

        assert metrics_sink.get_counter("bulk.items_total") == 10
        assert metrics_sink.get_counter("bulk.items_succeeded") == 7
        assert metrics_sink.get_counter("bulk.items_failed", {"operation": "create"}) == 3
        assert metrics_sink.get_timings("bulk.duration") == [80.0]

    def test_failing_sink_is_swallowed(self):
        sink = MagicMock()
        sink.increment.side_effect = RuntimeError("statsd down")
        sink.timing.side_effect = RuntimeError("statsd down")

        MetricsRecorder(sink).record_notification_sent("email", 5.0)

        sink.increment.assert_called_once()
        sink.timing.assert_called_once()

    def test_default_sink_is_logging(self):
        assert isinstance(MetricsRecorder().sink, LoggingMetricsSink)


@pytest.mark.unit
class TestInMemoryMetricsSink:
    def test_reset(self):
        sink = InMemoryMetricsSink()
        sink.increment("x")
        sink.timing("y", 1.0)

        sink.reset()

        assert sink.get_counter("x") == 0
        assert sink.get_timings("y") == []

    def test_unknown_tag_set_is_zero(self):
        sink = InMemoryMetricsSink()
        sink.increment("x", tags={"channel": "email"})

        assert sink.get_counter("x", {"channel": "sms"}) == 0
