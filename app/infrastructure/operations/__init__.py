"""Operation result types, status enums and error classifiers."""

from infrastructure.operations.classifiers import classify_transport_error
from infrastructure.operations.errors import InfrastructureError
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "InfrastructureError",
    "OperationResult",
    "OperationStatus",
    "classify_transport_error",
]
