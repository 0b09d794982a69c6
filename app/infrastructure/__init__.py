"""Infrastructure modules for the notification engine.

Centralized infrastructure components:
- configuration: Settings management (Settings, QueueSettings, DatabaseSettings)
- logging: Structured logging and request context (get_module_logger)
- events: In-process event system
- operations: Operation results and error classification
- persistence: SQLAlchemy engine and session management
- queue: Durable job queue and worker
- cache: TTL cache for aggregate statistics
- metrics: Counters and timings
- services: Application-scoped providers (get_settings, get_database)
"""

# Configuration
from infrastructure.configuration import Settings

# Observability
from infrastructure.logging import get_module_logger

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

# Dependency Injection Services
from infrastructure.services import get_settings

__all__ = [
    # Configuration
    "Settings",
    # Observability
    "get_module_logger",
    # Operations
    "OperationResult",
    "OperationStatus",
    # Dependency Injection Services
    "get_settings",
]
