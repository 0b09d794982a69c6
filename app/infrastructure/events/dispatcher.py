"""Event dispatcher for the infrastructure event system.

In-process handler registry. Handlers are registered with a decorator and
called synchronously in registration order when an event is dispatched.
A handler failure is logged and never reaches the publisher.
"""

import atexit
from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from infrastructure.events.models import Event
from infrastructure.logging import get_module_logger

logger = get_module_logger()

# Event handler registry: event_type -> list of handlers
EVENT_HANDLERS: Dict[str, List[Callable]] = {}
_handlers_lock = Lock()

# Wildcard key receiving every event
ALL_EVENTS = "*"

_EXECUTOR: Optional[ThreadPoolExecutor] = None
_executor_lock = Lock()
_executor_shutdown = False


def register_event_handler(event_type: str):
    """Decorator to register an event handler for a specific event type.

    Args:
        event_type: The type of event to handle, or ``"*"`` for all events.
    """

    def decorator(handler_func: Callable) -> Callable:
        with _handlers_lock:
            handlers = EVENT_HANDLERS.setdefault(event_type, [])
            if handler_func not in handlers:
                handlers.append(handler_func)
            total = len(handlers)
        logger.debug(
            "registered_event_handler",
            handler=getattr(handler_func, "__name__", "unknown"),
            event_type=event_type,
            total_handlers=total,
        )
        return handler_func

    return decorator


def get_handlers_for_event(event_type: str) -> List[Callable]:
    """Get the handlers for an event type, wildcard handlers last."""
    with _handlers_lock:
        return list(EVENT_HANDLERS.get(event_type, [])) + list(
            EVENT_HANDLERS.get(ALL_EVENTS, [])
        )


def get_registered_events() -> List[str]:
    with _handlers_lock:
        return list(EVENT_HANDLERS.keys())


def clear_handlers() -> None:
    """Clear all registered handlers (tests only)."""
    with _handlers_lock:
        EVENT_HANDLERS.clear()
    logger.debug("cleared_all_event_handlers")


def dispatch_event(event: Event) -> List[Any]:
    """Dispatch event synchronously to all registered handlers.

    Args:
        event: The event to dispatch.

    Returns:
        List of return values from the handlers that succeeded.
    """
    results = []
    handlers = get_handlers_for_event(event.event_type)

    logger.debug(
        "dispatching_event",
        event_type=event.event_type,
        handler_count=len(handlers),
        aggregate_id=event.aggregate_id,
        correlation_id=str(event.correlation_id),
    )

    for handler in handlers:
        try:
            results.append(handler(event))
        except Exception as e:
            logger.error(
                "event_handler_failed",
                handler=getattr(handler, "__name__", "unknown"),
                event_type=event.event_type,
                error=str(e),
                correlation_id=str(event.correlation_id),
            )

    return results


def _background_worker(evt: Event) -> None:
    try:
        dispatch_event(evt)
    except Exception as e:
        logger.exception(
            "background_event_dispatch_failed",
            event_type=evt.event_type,
            error=str(e),
            correlation_id=str(evt.correlation_id),
        )


def _get_or_create_executor(max_workers: int = 4) -> Optional[ThreadPoolExecutor]:
    """Lazily create the module-scoped executor.

    Returns None once the executor has been shut down.
    """
    global _EXECUTOR
    with _executor_lock:
        if _executor_shutdown:
            return None
        if _EXECUTOR is None:
            _EXECUTOR = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="events"
            )
            logger.debug("created_background_event_executor", max_workers=max_workers)
        return _EXECUTOR


def start_event_executor(max_workers: int = 4) -> None:
    """Start the background executor, re-enabling it after a shutdown."""
    global _executor_shutdown
    with _executor_lock:
        _executor_shutdown = False
    _get_or_create_executor(max_workers=max_workers)


def shutdown_event_executor(wait: bool = True) -> None:
    """Shut down the background executor. Idempotent."""
    global _EXECUTOR, _executor_shutdown
    with _executor_lock:
        if _EXECUTOR is None:
            _executor_shutdown = True
            return
        try:
            _EXECUTOR.shutdown(wait=wait)
            logger.debug("background_event_executor_shut_down", wait=wait)
        finally:
            _EXECUTOR = None
            _executor_shutdown = True


@atexit.register
def _atexit_shutdown():
    try:
        shutdown_event_executor(wait=False)
    except Exception:
        pass


def dispatch_background(event: Event) -> None:
    """Fire-and-forget dispatch on the internal executor.

    Submissions after shutdown are dropped with an error log.
    """
    try:
        executor = _get_or_create_executor()
        if executor is None:
            logger.error(
                "event_executor_unavailable",
                event_type=event.event_type,
                correlation_id=str(event.correlation_id),
            )
            return
        executor.submit(_background_worker, event)
    except Exception:
        logger.exception(
            "failed_to_submit_event_to_executor",
            event_type=event.event_type,
            correlation_id=str(event.correlation_id),
        )
