"""Infrastructure event system - in-process event bus.

Usage:

    from infrastructure.events import Event, register_event_handler, EventDispatcher

    @register_event_handler("notification.sent")
    def record_sent(event: Event) -> None:
        ...

    EventDispatcher().publish(
        Event(event_type="notification.sent", aggregate_id=notification_id)
    )
"""

from infrastructure.events.dispatcher import (
    ALL_EVENTS,
    clear_handlers,
    dispatch_background,
    dispatch_event,
    get_handlers_for_event,
    get_registered_events,
    register_event_handler,
    shutdown_event_executor,
    start_event_executor,
)
from infrastructure.events.models import Event
from infrastructure.events.service import EventDispatcher

__all__ = [
    "ALL_EVENTS",
    "Event",
    "EventDispatcher",
    "clear_handlers",
    "dispatch_event",
    "dispatch_background",
    "register_event_handler",
    "get_registered_events",
    "get_handlers_for_event",
    "start_event_executor",
    "shutdown_event_executor",
]
