"""Context binding for structured logging.

Binds correlation ids and notification/job identifiers to structlog's
context variables so every log line emitted while handling a request or
processing a job carries them.

Usage:
    from infrastructure.logging import bind_notification_context

    with bind_notification_context(notification_id="...", job_id="42"):
        logger.info("delivery_started")
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_request_context(
    correlation_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[None, None, None]:
    """Bind a correlation id (generated when missing) plus extra context.

    Args:
        correlation_id: Unique request identifier.
        **extra_context: Additional key-value pairs to include in logs.
    """
    context: dict[str, Any] = {"correlation_id": correlation_id or str(uuid.uuid4())}
    context.update({k: v for k, v in extra_context.items() if v is not None})

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


@contextmanager
def bind_notification_context(
    notification_id: Optional[str] = None,
    job_id: Optional[str] = None,
    channel: Optional[str] = None,
    worker_id: Optional[str] = None,
) -> Generator[None, None, None]:
    """Bind notification processing identifiers for the duration of a block."""
    context = {
        key: value
        for key, value in (
            ("notification_id", notification_id),
            ("job_id", job_id),
            ("channel", channel),
            ("worker_id", worker_id),
        )
        if value is not None
    }

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from the logging context."""
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("correlation_id")


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current logging context."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_request_context() -> None:
    """Clear all bound context.

    Worker threads call this between jobs so identifiers do not leak.
    """
    structlog.contextvars.clear_contextvars()
