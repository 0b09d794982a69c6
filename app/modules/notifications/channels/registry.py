"""Channel registry and router.

Transports are registered explicitly at startup from a static list (see
``register_transports``). ``ChannelRegistry.route`` sends one notification
through its channel's transport and always returns a ChannelResult; it
never raises.

Usage Example:
    registry = ChannelRegistry(metrics=MetricsRecorder(), send_timeout_seconds=30)
    register_transports(registry, [SmtpTransport(), TwilioTransport()])

    result = registry.route(notification)
    if not result.success and result.retryable:
        ...
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from infrastructure.logging import get_module_logger
from infrastructure.metrics import MetricsRecorder
from infrastructure.operations import OperationResult, classify_transport_error
from modules.notifications.channels.base import ChannelResult, ChannelTransport
from modules.notifications.domain.enums import ChannelType
from modules.notifications.domain.models import Notification

logger = get_module_logger()

CHANNEL_NOT_REGISTERED = "CHANNEL_NOT_REGISTERED"
CHANNEL_UNAVAILABLE = "CHANNEL_UNAVAILABLE"
INVALID_RECIPIENT = "INVALID_RECIPIENT"
TRANSPORT_ERROR = "TRANSPORT_ERROR"
TRANSPORT_TIMEOUT = "TRANSPORT_TIMEOUT"


@dataclass
class ChannelStats:
    """Per-channel routing counters."""

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    availability_failures: int = 0
    validation_failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "availability_failures": self.availability_failures,
            "validation_failures": self.validation_failures,
        }


class ChannelRegistry:
    """Maps channel types to transports and routes notifications.

    Recipient validation failures and availability failures are counted
    separately so an invalid address never looks like a transport outage.

    Each channel sends from its own executor. A send that times out keeps
    its thread until the transport returns, so hung sends on one channel
    only exhaust that channel's pool.

    Args:
        metrics: Recorder for ``channel.delivery`` metrics
        send_timeout_seconds: Upper bound for one ``send`` call
        max_workers: Executor size per channel
    """

    def __init__(
        self,
        metrics: Optional[MetricsRecorder] = None,
        send_timeout_seconds: float = 30.0,
        max_workers: int = 8,
    ):
        self._transports: Dict[ChannelType, ChannelTransport] = {}
        self._stats: Dict[ChannelType, ChannelStats] = {}
        self._lock = threading.Lock()
        self._metrics = metrics or MetricsRecorder()
        self._send_timeout = send_timeout_seconds
        self._max_workers = max_workers
        self._executors: Dict[ChannelType, ThreadPoolExecutor] = {}
        self._timed_out: Dict[ChannelType, Set[Future]] = {}

    def register(self, transport: ChannelTransport) -> None:
        channel = ChannelType(transport.channel_type)
        with self._lock:
            previous = self._transports.get(channel)
            self._transports[channel] = transport
            self._stats.setdefault(channel, ChannelStats())
        if previous is not None:
            logger.warning(
                "channel_transport_replaced",
                channel=channel.value,
                previous=type(previous).__name__,
                transport=type(transport).__name__,
            )
        else:
            logger.info(
                "channel_transport_registered",
                channel=channel.value,
                transport=type(transport).__name__,
            )

    def unregister(self, channel: ChannelType) -> bool:
        with self._lock:
            removed = self._transports.pop(ChannelType(channel), None)
        if removed is not None:
            logger.info("channel_transport_unregistered", channel=ChannelType(channel).value)
        return removed is not None

    def get(self, channel: ChannelType) -> Optional[ChannelTransport]:
        with self._lock:
            return self._transports.get(ChannelType(channel))

    def is_registered(self, channel: ChannelType) -> bool:
        return self.get(channel) is not None

    def registered_channels(self) -> List[ChannelType]:
        with self._lock:
            return list(self._transports.keys())

    def get_channel_stats(self) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return {channel.value: stats.to_dict() for channel, stats in self._stats.items()}

    def stuck_sends(self, channel: ChannelType) -> int:
        """Timed-out sends on ``channel`` whose transport has not returned yet."""
        with self._lock:
            pending = self._timed_out.get(ChannelType(channel), set())
            return sum(1 for future in pending if not future.done())

    def route(self, notification: Notification) -> ChannelResult:
        """Send a notification through its channel's transport.

        Never raises. Failures come back as ChannelResult with
        ``success=False``, an ``error_code`` and the ``retryable`` flag.
        """
        channel = ChannelType(notification.channel)
        started = time.monotonic()
        result = self._route(channel, notification)
        result.duration_ms = (time.monotonic() - started) * 1000

        self._count(channel, "successes" if result.success else "failures")
        self._metrics.record_channel_delivery(channel.value, result.success, result.duration_ms)

        log = logger.info if result.success else logger.warning
        log(
            "channel_route_completed",
            notification_id=notification.id,
            channel=channel.value,
            success=result.success,
            error_code=result.error_code,
            retryable=result.retryable,
            duration_ms=round(result.duration_ms, 2),
        )
        return result

    def _route(self, channel: ChannelType, notification: Notification) -> ChannelResult:
        transport = self.get(channel)
        self._count(channel, "attempts")
        if transport is None:
            return ChannelResult.failed(
                channel,
                f"Channel {channel.value} not registered",
                CHANNEL_NOT_REGISTERED,
                retryable=False,
            )

        try:
            available = transport.is_available()
        except Exception as e:  # pylint: disable=broad-except
            logger.warning("channel_availability_check_failed", channel=channel.value, error=str(e))
            available = False
        if not available:
            self._count(channel, "availability_failures")
            return ChannelResult.failed(
                channel,
                f"Channel {channel.value} is not available",
                CHANNEL_UNAVAILABLE,
                retryable=True,
            )

        try:
            recipient_ok = transport.validate_recipient(notification.recipient)
        except Exception as e:  # pylint: disable=broad-except
            logger.warning("channel_recipient_check_failed", channel=channel.value, error=str(e))
            recipient_ok = False
        if not recipient_ok:
            self._count(channel, "validation_failures")
            return ChannelResult.failed(
                channel,
                f"Invalid recipient for {channel.value}: {notification.recipient}",
                INVALID_RECIPIENT,
                retryable=False,
            )

        return self._send(transport, channel, notification)

    def _send(
        self, transport: ChannelTransport, channel: ChannelType, notification: Notification
    ) -> ChannelResult:
        future = self._executor_for(channel).submit(transport.send, notification)
        try:
            result = future.result(timeout=self._send_timeout)
        except FutureTimeoutError:
            if not future.cancel():
                self._track_timed_out(channel, future, notification)
            return ChannelResult.failed(
                channel,
                f"Send timed out after {self._send_timeout}s",
                TRANSPORT_TIMEOUT,
                retryable=True,
            )
        except Exception as e:  # pylint: disable=broad-except
            classified = classify_transport_error(e)
            failed = ChannelResult.failed(
                channel,
                classified.message,
                TRANSPORT_TIMEOUT
                if classified.error_code == TRANSPORT_TIMEOUT
                else TRANSPORT_ERROR,
                retryable=classified.is_retryable,
            )
            failed.metadata = {
                "classification": classified.error_code,
                "retry_after": classified.retry_after,
            }
            return failed

        if not isinstance(result, ChannelResult):
            return ChannelResult.failed(
                channel,
                f"Transport returned {type(result).__name__} instead of ChannelResult",
                TRANSPORT_ERROR,
                retryable=False,
            )
        if not result.success and not result.error_code:
            result.error_code = TRANSPORT_ERROR
        return result

    def health_check(self) -> Dict[str, OperationResult]:
        """Availability of every registered transport."""
        report: Dict[str, OperationResult] = {}
        for channel in self.registered_channels():
            transport = self.get(channel)
            try:
                available = transport.is_available()
            except Exception as e:  # pylint: disable=broad-except
                report[channel.value] = classify_transport_error(e)
                continue
            if available:
                report[channel.value] = OperationResult.success(message="available")
            else:
                report[channel.value] = OperationResult.transient_error(
                    message=f"Channel {channel.value} is not available",
                    error_code=CHANNEL_UNAVAILABLE,
                )
        return report

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executors = list(self._executors.values())
            self._executors.clear()
        for executor in executors:
            executor.shutdown(wait=wait)

    def _executor_for(self, channel: ChannelType) -> ThreadPoolExecutor:
        with self._lock:
            executor = self._executors.get(channel)
            if executor is None:
                executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix=f"channel-send-{channel.value}",
                )
                self._executors[channel] = executor
            return executor

    def _track_timed_out(
        self, channel: ChannelType, future: Future, notification: Notification
    ) -> None:
        with self._lock:
            running = {f for f in self._timed_out.get(channel, set()) if not f.done()}
            running.add(future)
            self._timed_out[channel] = running
            stuck = len(running)
        logger.warning(
            "channel_send_timed_out",
            notification_id=notification.id,
            channel=channel.value,
            stuck_sends=stuck,
            max_workers=self._max_workers,
        )
        if stuck >= self._max_workers:
            logger.error(
                "channel_send_pool_saturated",
                channel=channel.value,
                stuck_sends=stuck,
                max_workers=self._max_workers,
            )

    def _count(self, channel: ChannelType, counter: str) -> None:
        with self._lock:
            stats = self._stats.setdefault(channel, ChannelStats())
            setattr(stats, counter, getattr(stats, counter) + 1)


def register_transports(
    registry: ChannelRegistry, transports: Iterable[ChannelTransport]
) -> ChannelRegistry:
    """Register a static list of transports, in order."""
    for transport in transports:
        registry.register(transport)
    return registry
