"""Event dispatcher service for dependency injection."""

from typing import Any, Callable, List

from infrastructure.events.dispatcher import (
    dispatch_background,
    dispatch_event,
    get_handlers_for_event,
    get_registered_events,
    register_event_handler,
    shutdown_event_executor,
    start_event_executor,
)
from infrastructure.events.models import Event
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class EventDispatcher:
    """Class-based facade over the module-level event functions.

    Services receive an EventDispatcher by injection so tests can swap in a
    MagicMock. ``publish`` is the entry point used by domain code: it never
    raises, whatever the handlers or the executor do.

    Attributes:
        background: When True, ``publish`` hands events to the executor
            instead of calling handlers inline.
    """

    def __init__(self, background: bool = False) -> None:
        self.background = background

    def publish(self, event: Event) -> None:
        """Publish an event on a best-effort basis."""
        try:
            if self.background:
                dispatch_background(event)
            else:
                dispatch_event(event)
        except Exception as e:
            logger.error(
                "event_publish_failed",
                event_type=event.event_type,
                aggregate_id=event.aggregate_id,
                error=str(e),
            )

    def dispatch(self, event: Event) -> List[Any]:
        """Dispatch event synchronously and return handler results."""
        return dispatch_event(event)

    def dispatch_background(self, event: Event) -> None:
        dispatch_background(event)

    def register_handler(self, event_type: str) -> Callable:
        """Decorator to register an event handler."""
        return register_event_handler(event_type)

    def start_executor(self, max_workers: int = 4) -> None:
        start_event_executor(max_workers=max_workers)

    def shutdown_executor(self, wait: bool = True) -> None:
        shutdown_event_executor(wait=wait)

    def get_registered_events(self) -> List[str]:
        return get_registered_events()

    def get_handlers_for_event(self, event_type: str) -> List[Callable]:
        return get_handlers_for_event(event_type)
