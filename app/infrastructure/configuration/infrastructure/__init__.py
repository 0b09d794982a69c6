"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.database import DatabaseSettings
from infrastructure.configuration.infrastructure.queue import QueueSettings

__all__ = [
    "DatabaseSettings",
    "QueueSettings",
]
