"""Feature settings __init__ - exports all feature settings."""

from infrastructure.configuration.features.bulk import BulkSettings
from infrastructure.configuration.features.notifications import (
    NotificationFeatureSettings,
)

__all__ = [
    "BulkSettings",
    "NotificationFeatureSettings",
]
