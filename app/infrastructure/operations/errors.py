"""Base exception for infrastructure failures."""

from typing import Any, Dict, Optional


class InfrastructureError(Exception):
    """Failure of a backing service (store, queue).

    Fatal to the current operation, not to the process. Carries a machine
    readable code and the underlying exception when there is one.
    """

    code = "INFRASTRUCTURE_ERROR"

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}
