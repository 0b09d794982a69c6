"""Test data factories for deterministic test data generation."""

from tests.factories.notifications import (
    FakeTransport,
    ManualClock,
    make_create_request,
    make_job,
    make_notification,
)

__all__ = [
    "FakeTransport",
    "ManualClock",
    "make_create_request",
    "make_job",
    "make_notification",
]
