"""Domain-level metrics facade.

MetricsRecorder turns engine outcomes into sink calls. Emission is
best-effort: a failing sink is logged and never affects the operation that
produced the metric.
"""

from typing import Optional

from infrastructure.logging import get_module_logger
from infrastructure.metrics.sink import LoggingMetricsSink, MetricsSink, Tags

logger = get_module_logger()


class MetricsRecorder:
    """Record delivery, queue and bulk metrics through a MetricsSink."""

    def __init__(self, sink: Optional[MetricsSink] = None) -> None:
        self.sink = sink or LoggingMetricsSink()

    def _increment(self, name: str, tags: Tags = None, value: int = 1) -> None:
        try:
            self.sink.increment(name, value=value, tags=tags)
        except Exception as e:
            logger.warning("metrics_emit_failed", metric=name, error=str(e))

    def _timing(self, name: str, value_ms: float, tags: Tags = None) -> None:
        try:
            self.sink.timing(name, value_ms, tags=tags)
        except Exception as e:
            logger.warning("metrics_emit_failed", metric=name, error=str(e))

    def record_channel_delivery(
        self, channel: str, success: bool, duration_ms: float
    ) -> None:
        """Called by the router on every routing attempt."""
        tags = {"channel": channel, "success": str(success).lower()}
        self._increment("channel.delivery", tags)
        self._timing("channel.delivery_duration", duration_ms, tags)

    def record_notification_created(self, channel: str, priority: str) -> None:
        self._increment(
            "notification.created", {"channel": channel, "priority": priority}
        )

    def record_notification_sent(self, channel: str, duration_ms: float) -> None:
        self._increment("notification.sent", {"channel": channel})
        self._timing("notification.delivery_time", duration_ms, {"channel": channel})

    def record_notification_failed(self, channel: str, error_code: str) -> None:
        self._increment(
            "notification.failed", {"channel": channel, "error_code": error_code}
        )

    def record_notification_delivered(self, channel: str) -> None:
        self._increment("notification.delivered", {"channel": channel})

    def record_queue_inconsistency(self, channel: str) -> None:
        self._increment("notification.queue_inconsistency", {"channel": channel})

    def record_bulk_operation(
        self,
        operation: str,
        total: int,
        succeeded: int,
        failed: int,
        duration_ms: float,
    ) -> None:
        tags = {"operation": operation}
        self._increment("bulk.items_total", tags, value=total)
        self._increment("bulk.items_succeeded", tags, value=succeeded)
        self._increment("bulk.items_failed", tags, value=failed)
        self._timing("bulk.duration", duration_ms, tags)
