"""Metrics sink interface and implementations.

The engine emits counters and timings through a MetricsSink. The default
sink writes structured log lines so a log pipeline can aggregate them; the
in-memory sink keeps values for tests and local inspection.
"""

import threading
from collections import defaultdict
from typing import Dict, List, Optional, Protocol, Tuple

from infrastructure.logging import get_module_logger

logger = get_module_logger()

Tags = Optional[Dict[str, str]]


def _tag_key(tags: Tags) -> Tuple[Tuple[str, str], ...]:
    return tuple(sorted((tags or {}).items()))


class MetricsSink(Protocol):
    """Destination for counters and timings."""

    def increment(self, name: str, value: int = 1, tags: Tags = None) -> None:
        """Increase a counter."""
        ...

    def timing(self, name: str, value_ms: float, tags: Tags = None) -> None:
        """Record a duration in milliseconds."""
        ...


class LoggingMetricsSink:
    """Emit metrics as ``metric_recorded`` structured log events."""

    def __init__(self, namespace: str = "notifications") -> None:
        self.namespace = namespace
        self.log = logger.bind(sink="logging")

    def increment(self, name: str, value: int = 1, tags: Tags = None) -> None:
        self.log.info(
            "metric_recorded",
            metric=f"{self.namespace}.{name}",
            kind="counter",
            value=value,
            **(tags or {}),
        )

    def timing(self, name: str, value_ms: float, tags: Tags = None) -> None:
        self.log.info(
            "metric_recorded",
            metric=f"{self.namespace}.{name}",
            kind="timing",
            value_ms=round(value_ms, 2),
            **(tags or {}),
        )


class InMemoryMetricsSink:
    """Thread-safe sink keeping counters and timings in memory."""

    def __init__(self) -> None:
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = (
            defaultdict(int)
        )
        self._timings: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], List[float]] = (
            defaultdict(list)
        )
        self._lock = threading.Lock()

    def increment(self, name: str, value: int = 1, tags: Tags = None) -> None:
        with self._lock:
            self._counters[(name, _tag_key(tags))] += value

    def timing(self, name: str, value_ms: float, tags: Tags = None) -> None:
        with self._lock:
            self._timings[(name, _tag_key(tags))].append(value_ms)

    def get_counter(self, name: str, tags: Tags = None) -> int:
        """Counter value for an exact tag set, or the sum over all tag sets."""
        with self._lock:
            if tags is not None:
                return self._counters.get((name, _tag_key(tags)), 0)
            return sum(v for (n, _), v in self._counters.items() if n == name)

    def get_timings(self, name: str) -> List[float]:
        with self._lock:
            values: List[float] = []
            for (n, _), recorded in self._timings.items():
                if n == name:
                    values.extend(recorded)
            return values

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()
