"""Notification engine configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.configuration.features import (
    BulkSettings,
    NotificationFeatureSettings,
)
from infrastructure.configuration.infrastructure import (
    DatabaseSettings,
    QueueSettings,
)


class Settings(BaseSettings):
    """Notification engine configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object
    that is built once at startup and handed to each component:

    - **Features**: notification orchestration and bulk operation limits
    - **Infrastructure**: job queue and database

    Environment Variables:
        PREFIX: Environment prefix; empty means production
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        max_retries = settings.notifications.max_retries
        parallelism = settings.bulk.max_parallelism
        if settings.queue.backend == "sql":
            url = settings.database.url
        ```
    """

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Feature settings
    notifications: NotificationFeatureSettings
    bulk: BulkSettings

    # Infrastructure settings
    queue: QueueSettings
    database: DatabaseSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            "notifications": NotificationFeatureSettings,
            "bulk": BulkSettings,
            "queue": QueueSettings,
            "database": DatabaseSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
