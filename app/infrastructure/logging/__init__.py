"""Structured logging infrastructure.

Centralized structlog configuration and helpers for the notification engine.

Public API:
    - configure_logging(): Initialize logging for the process
    - get_logger(): Get a logger instance with a specific name
    - get_module_logger(): Get a logger for the calling module
    - bind_request_context(): Context manager for correlation ids
    - bind_notification_context(): Context manager for job processing
    - get_correlation_id() / set_correlation_id() / clear_request_context()

Formatters:
    - add_app_info(), mask_sensitive_data(), mask_recipients(),
      truncate_large_values()
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_logger,
    get_module_logger,
)
from infrastructure.logging.context import (
    bind_notification_context,
    bind_request_context,
    clear_request_context,
    get_correlation_id,
    set_correlation_id,
)
from infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    add_app_info,
    mask_recipients,
    mask_sensitive_data,
    truncate_large_values,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_module_logger",
    "bind_request_context",
    "bind_notification_context",
    "get_correlation_id",
    "set_correlation_id",
    "clear_request_context",
    "add_app_info",
    "mask_sensitive_data",
    "mask_recipients",
    "truncate_large_values",
    "SENSITIVE_PATTERNS",
]
