"""Infrastructure configuration module - public API.

Centralized configuration management for the notification engine using
Pydantic BaseSettings with domain-based organization.

Exports:
    Settings: Main settings class (for testing/overrides)
    QueueSettings, DatabaseSettings: Infrastructure sections
    NotificationFeatureSettings, BulkSettings: Feature sections

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()
    timeout = settings.notifications.send_timeout_seconds
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.features import (
    BulkSettings,
    NotificationFeatureSettings,
)
from infrastructure.configuration.infrastructure import (
    DatabaseSettings,
    QueueSettings,
)

__all__ = [
    "Settings",
    "BulkSettings",
    "NotificationFeatureSettings",
    "DatabaseSettings",
    "QueueSettings",
]
