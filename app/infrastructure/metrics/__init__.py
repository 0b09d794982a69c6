"""Metrics sinks and the domain metrics recorder."""

from infrastructure.metrics.recorder import MetricsRecorder
from infrastructure.metrics.sink import (
    InMemoryMetricsSink,
    LoggingMetricsSink,
    MetricsSink,
)

__all__ = [
    "MetricsRecorder",
    "MetricsSink",
    "LoggingMetricsSink",
    "InMemoryMetricsSink",
]
