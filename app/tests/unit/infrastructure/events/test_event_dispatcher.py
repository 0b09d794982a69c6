"""Unit tests for the event dispatcher functions and EventDispatcher facade."""

import threading
from unittest.mock import MagicMock, patch

import pytest

from infrastructure.events import (
    ALL_EVENTS,
    Event,
    EventDispatcher,
    dispatch_background,
    dispatch_event,
    get_handlers_for_event,
    get_registered_events,
    register_event_handler,
)


@pytest.mark.unit
class TestRegisterEventHandler:
    def test_registers_handler(self):
        @register_event_handler("notification.sent")
        def handler(event):
            return "ok"

        assert handler in get_handlers_for_event("notification.sent")
        assert "notification.sent" in get_registered_events()

    def test_duplicate_registration_is_ignored(self):
        handler = MagicMock(__name__="handler")

        register_event_handler("notification.sent")(handler)
        register_event_handler("notification.sent")(handler)

        assert get_handlers_for_event("notification.sent").count(handler) == 1

    def test_wildcard_handlers_come_last(self):
        specific = MagicMock(__name__="specific")
        wildcard = MagicMock(__name__="wildcard")
        register_event_handler(ALL_EVENTS)(wildcard)
        register_event_handler("notification.sent")(specific)

        assert get_handlers_for_event("notification.sent") == [specific, wildcard]
        assert get_handlers_for_event("notification.failed") == [wildcard]


@pytest.mark.unit
class TestDispatchEvent:
    def test_calls_handlers_and_collects_results(self, sample_event):
        register_event_handler("notification.sent")(lambda e: e.aggregate_id)

        assert dispatch_event(sample_event) == ["n-1"]

    def test_failing_handler_does_not_stop_others(self, sample_event):
        def broken(event):
            raise RuntimeError("boom")

        register_event_handler("notification.sent")(broken)
        register_event_handler("notification.sent")(lambda e: "after")

        assert dispatch_event(sample_event) == ["after"]

    def test_no_handlers(self, sample_event):
        assert dispatch_event(sample_event) == []

    def test_background_dispatch_runs_handler(self, sample_event, background_executor):
        done = threading.Event()
        register_event_handler("notification.sent")(lambda e: done.set())

        dispatch_background(sample_event)

        assert done.wait(timeout=5)


@pytest.mark.unit
class TestEventDispatcher:
    def test_publish_dispatches_inline(self, sample_event):
        handler = MagicMock(__name__="handler")
        register_event_handler("notification.sent")(handler)

        EventDispatcher().publish(sample_event)

        handler.assert_called_once_with(sample_event)

    def test_publish_never_raises(self, sample_event):
        with patch(
            "infrastructure.events.service.dispatch_event",
            side_effect=RuntimeError("bus down"),
        ):
            EventDispatcher().publish(sample_event)

    def test_publish_in_background_mode(self, sample_event):
        with patch("infrastructure.events.service.dispatch_background") as background:
            EventDispatcher(background=True).publish(sample_event)

        background.assert_called_once_with(sample_event)

    def test_register_handler_decorator(self):
        dispatcher = EventDispatcher()

        @dispatcher.register_handler("notification.created")
        def handler(event):
            return None

        assert handler in dispatcher.get_handlers_for_event("notification.created")
