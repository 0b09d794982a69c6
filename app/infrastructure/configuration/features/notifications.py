"""Notifications feature settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import FeatureSettings


class NotificationFeatureSettings(FeatureSettings):
    """Configuration for notification orchestration and queries.

    Environment Variables:
        NOTIFICATIONS_MAX_RETRIES: Manual retries allowed per notification (1-10)
        NOTIFICATIONS_DEFAULT_PAGE_SIZE: Page size used when none is requested
        NOTIFICATIONS_MAX_PAGE_SIZE: Upper bound for requested page sizes
        NOTIFICATIONS_RECENT_FAILURES_WINDOW_MINUTES: Window for failure stats
        NOTIFICATIONS_MAX_RECENT_FAILURES_DISPLAY: Failures listed in stats
        NOTIFICATIONS_PENDING_BATCH_SIZE: Pending records listed in stats
        NOTIFICATIONS_SEND_TIMEOUT_SECONDS: Budget for one transport send call
        NOTIFICATIONS_STATS_CACHE_TTL_SECONDS: Lifetime of cached statistics
        NOTIFICATIONS_REPOSITORY_BACKEND: 'memory' or 'sql'
    """

    max_retries: int = Field(
        default=3,
        alias="NOTIFICATIONS_MAX_RETRIES",
        description="Maximum manual retries for a failed notification",
    )
    default_page_size: int = Field(
        default=20,
        alias="NOTIFICATIONS_DEFAULT_PAGE_SIZE",
    )
    max_page_size: int = Field(
        default=100,
        alias="NOTIFICATIONS_MAX_PAGE_SIZE",
    )
    recent_failures_window_minutes: int = Field(
        default=60,
        alias="NOTIFICATIONS_RECENT_FAILURES_WINDOW_MINUTES",
    )
    max_recent_failures_display: int = Field(
        default=10,
        alias="NOTIFICATIONS_MAX_RECENT_FAILURES_DISPLAY",
    )
    pending_batch_size: int = Field(
        default=100,
        alias="NOTIFICATIONS_PENDING_BATCH_SIZE",
    )
    send_timeout_seconds: float = Field(
        default=30.0,
        alias="NOTIFICATIONS_SEND_TIMEOUT_SECONDS",
        description="Wall clock budget for a single transport send",
    )
    stats_cache_ttl_seconds: int = Field(
        default=30,
        alias="NOTIFICATIONS_STATS_CACHE_TTL_SECONDS",
    )
    repository_backend: str = Field(
        default="memory",
        alias="NOTIFICATIONS_REPOSITORY_BACKEND",
        description="Repository backend: 'memory' or 'sql'",
    )

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("NOTIFICATIONS_MAX_RETRIES must be between 1 and 10")
        return v
