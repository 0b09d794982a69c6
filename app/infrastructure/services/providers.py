"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for core infrastructure services.
"""

from functools import lru_cache

from infrastructure.cache import Cache, InMemoryCache
from infrastructure.configuration import Settings
from infrastructure.events import EventDispatcher
from infrastructure.metrics import LoggingMetricsSink, MetricsRecorder
from infrastructure.persistence import Database


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    This is the single source of truth for settings across the entire application.
    The @lru_cache decorator ensures only ONE instance is created per process.

    Components receive the section they need by injection:
        settings = get_settings()
        producer = NotificationProducer(queue, PriorityPolicy.from_settings(settings.queue))

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_event_dispatcher() -> EventDispatcher:
    """Get application-scoped event dispatcher singleton."""
    return EventDispatcher()


@lru_cache
def get_metrics_recorder() -> MetricsRecorder:
    """Get application-scoped metrics recorder writing to the structured log."""
    return MetricsRecorder(LoggingMetricsSink())


@lru_cache
def get_database() -> Database:
    """
    Get application-scoped database singleton.

    Returns:
        Database: Engine and session factory built from settings.database.
    """
    return Database.from_settings(get_settings().database)


@lru_cache
def get_cache() -> Cache:
    """Get application-scoped cache used for aggregate statistics."""
    return InMemoryCache()
