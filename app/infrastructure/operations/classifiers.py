"""Error classifiers for transport exceptions.

Converts exceptions raised by channel transports into OperationResult
objects so the router can tell retryable failures from permanent ones.

Usage:
    from infrastructure.operations.classifiers import classify_transport_error

    try:
        transport.send(notification)
    except Exception as exc:
        result = classify_transport_error(exc)
        if result.is_retryable:
            ...
"""

from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_RATE_LIMIT_RETRY_SECONDS = 60


def _extract_status_code(exc: Exception) -> Optional[int]:
    """Find an HTTP status code on common client exception shapes."""
    for attr in ("status_code", "status", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    if response is not None:
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
    return None


def _extract_retry_after(exc: Exception) -> int:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None) or {}
    try:
        return int(headers.get("Retry-After", DEFAULT_RATE_LIMIT_RETRY_SECONDS))
    except (TypeError, ValueError):
        return DEFAULT_RATE_LIMIT_RETRY_SECONDS


def classify_transport_error(exc: Exception) -> OperationResult:
    """Classify an exception raised while sending through a transport.

    Mapping:
    - explicit ``retryable`` attribute on the exception wins
    - TimeoutError / ConnectionError / OSError → TRANSIENT_ERROR
    - HTTP 429 → TRANSIENT_ERROR with retry_after
    - HTTP 401/403 → UNAUTHORIZED
    - HTTP 404 → NOT_FOUND
    - HTTP 5xx → TRANSIENT_ERROR
    - HTTP 4xx → PERMANENT_ERROR
    - ValueError / TypeError → PERMANENT_ERROR
    - anything else → TRANSIENT_ERROR

    Args:
        exc: Exception raised by a transport

    Returns:
        OperationResult carrying the original message
    """
    message = str(exc) or exc.__class__.__name__

    retryable = getattr(exc, "retryable", None)
    if isinstance(retryable, bool):
        if retryable:
            return OperationResult.transient_error(message, "TRANSPORT_ERROR")
        return OperationResult.permanent_error(message, "TRANSPORT_REJECTED")

    if isinstance(exc, (TimeoutError, FutureTimeoutError)):
        return OperationResult.transient_error(message, "TRANSPORT_TIMEOUT")

    status_code = _extract_status_code(exc)
    if status_code is not None:
        if status_code == 429:
            return OperationResult.transient_error(
                message, "RATE_LIMITED", retry_after=_extract_retry_after(exc)
            )
        if status_code in (401, 403):
            return OperationResult.error(
                OperationStatus.UNAUTHORIZED, message, "TRANSPORT_UNAUTHORIZED"
            )
        if status_code == 404:
            return OperationResult.error(
                OperationStatus.NOT_FOUND, message, "TRANSPORT_NOT_FOUND"
            )
        if 500 <= status_code < 600:
            return OperationResult.transient_error(message, "TRANSPORT_SERVER_ERROR")
        if 400 <= status_code < 500:
            return OperationResult.permanent_error(message, "TRANSPORT_REJECTED")

    if isinstance(exc, (ConnectionError, OSError)):
        return OperationResult.transient_error(message, "TRANSPORT_CONNECTION_ERROR")

    if isinstance(exc, (ValueError, TypeError)):
        return OperationResult.permanent_error(message, "TRANSPORT_REJECTED")

    return OperationResult.transient_error(message, "TRANSPORT_ERROR")
