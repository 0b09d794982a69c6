"""
Dependency injection services.

Provides application-scoped provider functions for infrastructure services.
"""

from infrastructure.services.providers import (
    get_cache,
    get_database,
    get_event_dispatcher,
    get_metrics_recorder,
    get_settings,
)

__all__ = [
    "get_settings",
    "get_event_dispatcher",
    "get_metrics_recorder",
    "get_database",
    "get_cache",
]
