"""Operation status enumeration.

Classifies the outcome of an operation against a transport, the queue or the
store so callers can decide whether a retry is worthwhile.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (network, timeout, rate limit, unavailable)
        PERMANENT_ERROR: Non-retryable error (bad recipient, rejected payload)
        UNAUTHORIZED: Credentials rejected by the remote side
        NOT_FOUND: Resource not found
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"

    @property
    def is_retryable(self) -> bool:
        return self is OperationStatus.TRANSIENT_ERROR
