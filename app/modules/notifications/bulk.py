"""Bulk operations over notifications.

Items are split into batches. Batches run concurrently on a thread pool;
a bounded semaphore is acquired before a batch is submitted and released
when it finishes, so at most ``max_parallelism`` batches are in flight.
Items inside a batch run one after the other, each as its own use case
call (and therefore its own transaction).

Per-item failures never escape: they are collected into the result,
ordered by input index.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from infrastructure.cache import Cache, InMemoryCache
from infrastructure.configuration import BulkSettings
from infrastructure.events import EventDispatcher
from infrastructure.logging import get_module_logger
from infrastructure.metrics import MetricsRecorder
from infrastructure.persistence import PersistenceUnavailableError
from modules.notifications.domain import events
from modules.notifications.orchestration import NotificationOrchestrationService
from modules.notifications.query import STATS_CACHE_PREFIX
from modules.notifications.repository.base import NotificationRepository
from modules.notifications.schemas import BulkUpdateItem, CreateNotificationRequest

logger = get_module_logger()

SKIPPED_MESSAGE = "Skipped after earlier failure in batch"
DEFAULT_CANCEL_REASON = "Bulk cancellation"


@dataclass
class BulkItemResult:
    index: int
    success: bool
    entity_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    data: Any = None


@dataclass
class BulkOperationResult:
    """Aggregate outcome of a bulk run.

    ``results`` holds one entry per input item, ordered by input index.
    """

    operation: str
    total_count: int
    success_count: int
    failure_count: int
    results: List[BulkItemResult] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def failures(self) -> List[Dict[str, Any]]:
        return [
            {"index": r.index, "entity_id": r.entity_id, "error": r.error}
            for r in self.results
            if not r.success
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "total_count": self.total_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "failures": self.failures,
            "duration_ms": round(self.duration_ms, 2),
        }


@dataclass
class BulkConfig:
    default_batch_size: int = 100
    max_parallelism: int = 5
    max_create_batch_size: int = 500
    max_update_batch_size: int = 200

    def __post_init__(self) -> None:
        if self.default_batch_size < 1:
            raise ValueError("default_batch_size must be at least 1")
        if self.max_parallelism < 1:
            raise ValueError("max_parallelism must be at least 1")

    @classmethod
    def from_settings(cls, settings: BulkSettings) -> "BulkConfig":
        return cls(
            default_batch_size=settings.default_batch_size,
            max_parallelism=settings.max_parallelism,
            max_create_batch_size=settings.max_create_batch_size,
            max_update_batch_size=settings.max_update_batch_size,
        )


class BulkOperationRunner:
    """Runs an operation over many items with bounded batch concurrency.

    Args:
        max_parallelism: Batches allowed in flight at once
    """

    def __init__(self, max_parallelism: int = 5):
        if max_parallelism < 1:
            raise ValueError("max_parallelism must be at least 1")
        self.max_parallelism = max_parallelism

    def run(
        self,
        items: Sequence[Any],
        operation: Callable[[Any], Any],
        batch_size: int,
        continue_on_error: bool = True,
        entity_id: Optional[Callable[[Any], Optional[str]]] = None,
        operation_name: str = "bulk",
    ) -> BulkOperationResult:
        """Apply ``operation`` to every item.

        Args:
            items: Inputs, reported back by index
            operation: Called once per item; its return value is kept
            batch_size: Items per batch
            continue_on_error: When False the first failure in a batch
                skips the rest of that batch; other batches are unaffected
            entity_id: Extracts an id from an item for failure reports
            operation_name: Label for logs

        Returns:
            BulkOperationResult with one entry per item
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        started = time.monotonic()
        indexed = list(enumerate(items))
        batches = [indexed[i : i + batch_size] for i in range(0, len(indexed), batch_size)]
        semaphore = threading.BoundedSemaphore(self.max_parallelism)
        results: List[BulkItemResult] = []

        logger.info(
            "bulk_operation_started",
            operation=operation_name,
            total=len(indexed),
            batches=len(batches),
            batch_size=batch_size,
            parallelism=self.max_parallelism,
        )

        with ThreadPoolExecutor(
            max_workers=self.max_parallelism, thread_name_prefix="bulk"
        ) as executor:
            futures: List[Future] = []
            for batch in batches:
                semaphore.acquire()
                try:
                    futures.append(
                        executor.submit(
                            self._run_batch,
                            semaphore,
                            batch,
                            operation,
                            continue_on_error,
                            entity_id,
                            operation_name,
                        )
                    )
                except Exception:
                    semaphore.release()
                    raise
            for future in futures:
                results.extend(future.result())

        results.sort(key=lambda r: r.index)
        success_count = sum(1 for r in results if r.success)
        result = BulkOperationResult(
            operation=operation_name,
            total_count=len(results),
            success_count=success_count,
            failure_count=len(results) - success_count,
            results=results,
            duration_ms=(time.monotonic() - started) * 1000,
        )
        logger.info(
            "bulk_operation_finished",
            operation=operation_name,
            total=result.total_count,
            succeeded=result.success_count,
            failed=result.failure_count,
            duration_ms=round(result.duration_ms, 2),
        )
        return result

    def _run_batch(
        self,
        semaphore: threading.BoundedSemaphore,
        batch: List[tuple],
        operation: Callable[[Any], Any],
        continue_on_error: bool,
        entity_id: Optional[Callable[[Any], Optional[str]]],
        operation_name: str,
    ) -> List[BulkItemResult]:
        try:
            results: List[BulkItemResult] = []
            aborted = False
            for index, item in batch:
                item_id = entity_id(item) if entity_id else None
                if aborted:
                    results.append(
                        BulkItemResult(index=index, success=False, entity_id=item_id, error=SKIPPED_MESSAGE)
                    )
                    continue
                try:
                    value = operation(item)
                except Exception as e:  # pylint: disable=broad-except
                    logger.warning(
                        "bulk_operation_item_failed",
                        operation=operation_name,
                        index=index,
                        entity_id=item_id,
                        error=str(e),
                    )
                    results.append(
                        BulkItemResult(
                            index=index,
                            success=False,
                            entity_id=item_id,
                            error=str(e),
                            error_code=getattr(e, "code", None),
                        )
                    )
                    if not continue_on_error:
                        aborted = True
                    continue
                results.append(
                    BulkItemResult(
                        index=index,
                        success=True,
                        entity_id=item_id or getattr(value, "id", None),
                        data=value,
                    )
                )
            return results
        finally:
            semaphore.release()


class NotificationBulkService:
    """Bulk create, update, cancel and retry.

    Args:
        orchestration: Service that performs each single-item operation
        repository: Pinged before every run
        runner: BulkOperationRunner (built from ``config`` when omitted)
        events: Event dispatcher
        metrics: Metrics recorder
        cache: Cache whose ``notification_stats`` entries are invalidated
        config: BulkConfig
    """

    def __init__(
        self,
        orchestration: NotificationOrchestrationService,
        repository: NotificationRepository,
        runner: Optional[BulkOperationRunner] = None,
        events: Optional[EventDispatcher] = None,
        metrics: Optional[MetricsRecorder] = None,
        cache: Optional[Cache] = None,
        config: Optional[BulkConfig] = None,
    ):
        self.orchestration = orchestration
        self.repository = repository
        self.config = config or BulkConfig()
        self.runner = runner or BulkOperationRunner(self.config.max_parallelism)
        self.events = events or EventDispatcher()
        self.metrics = metrics or MetricsRecorder()
        self.cache = cache or InMemoryCache()

    def bulk_create(
        self,
        requests: Sequence[Union[CreateNotificationRequest, Dict[str, Any]]],
        batch_size: Optional[int] = None,
        continue_on_error: bool = True,
    ) -> BulkOperationResult:
        def create(item):
            if not isinstance(item, CreateNotificationRequest):
                item = CreateNotificationRequest(**item)
            return self.orchestration.create(item)

        return self._execute(
            "create",
            requests,
            create,
            batch_size,
            self.config.max_create_batch_size,
            continue_on_error,
        )

    def bulk_update(
        self,
        updates: Sequence[Union[BulkUpdateItem, Dict[str, Any]]],
        batch_size: Optional[int] = None,
        continue_on_error: bool = True,
    ) -> BulkOperationResult:
        def update(item):
            if not isinstance(item, BulkUpdateItem):
                item = BulkUpdateItem(**item)
            return self.orchestration.update(item.notification_id, item.update)

        def item_id(item) -> Optional[str]:
            if isinstance(item, BulkUpdateItem):
                return item.notification_id
            return item.get("notification_id") if isinstance(item, dict) else None

        return self._execute(
            "update",
            updates,
            update,
            batch_size,
            self.config.max_update_batch_size,
            continue_on_error,
            item_id,
        )

    def bulk_cancel(
        self,
        notification_ids: Sequence[str],
        reason: str = DEFAULT_CANCEL_REASON,
        batch_size: Optional[int] = None,
        continue_on_error: bool = True,
    ) -> BulkOperationResult:
        return self._execute(
            "cancel",
            notification_ids,
            lambda notification_id: self.orchestration.cancel(notification_id, reason),
            batch_size,
            None,
            continue_on_error,
            lambda notification_id: notification_id,
        )

    def bulk_retry(
        self,
        notification_ids: Sequence[str],
        batch_size: Optional[int] = None,
        continue_on_error: bool = True,
    ) -> BulkOperationResult:
        return self._execute(
            "retry",
            notification_ids,
            self.orchestration.retry,
            batch_size,
            None,
            continue_on_error,
            lambda notification_id: notification_id,
        )

    def _execute(
        self,
        operation: str,
        items: Sequence[Any],
        func: Callable[[Any], Any],
        batch_size: Optional[int],
        max_batch_size: Optional[int],
        continue_on_error: bool,
        entity_id: Optional[Callable[[Any], Optional[str]]] = None,
    ) -> BulkOperationResult:
        if not self.repository.ping():
            logger.error("bulk_operation_store_unavailable", operation=operation)
            raise PersistenceUnavailableError(
                "Notification store is unavailable", details={"operation": operation}
            )

        size = batch_size or self.config.default_batch_size
        if max_batch_size is not None:
            size = min(size, max_batch_size)

        result = self.runner.run(
            list(items),
            func,
            batch_size=size,
            continue_on_error=continue_on_error,
            entity_id=entity_id,
            operation_name=operation,
        )

        self.events.publish(
            events.bulk_operation_event(
                operation,
                totalCount=result.total_count,
                successCount=result.success_count,
                failureCount=result.failure_count,
                durationMs=round(result.duration_ms, 2),
            )
        )
        self.metrics.record_bulk_operation(
            operation,
            result.total_count,
            result.success_count,
            result.failure_count,
            result.duration_ms,
        )
        self.cache.invalidate_prefix(STATS_CACHE_PREFIX)
        return result
